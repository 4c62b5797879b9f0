from __future__ import annotations
from enum import Enum
from functools import lru_cache

import numpy as np

from ..exceptions import InvalidArgumentError


class DataType(Enum):
    """Element types supported by arrays, with their fixed byte widths."""

    BOOLEAN = ('boolean', 'bool', 1)
    UINT8 = ('uint8', 'uint8', 1)
    INT8 = ('int8', 'int8', 1)
    INT32 = ('int32', 'int32', 4)
    INT64 = ('int64', 'int64', 8)
    FLOAT16 = ('float16', 'float16', 2)
    FLOAT32 = ('float32', 'float32', 4)
    FLOAT64 = ('float64', 'float64', 8)

    def __init__(self, label: str, numpy_name: str, num_bytes: int):
        self.label = label
        self.numpy_name = numpy_name
        self.num_bytes = num_bytes

    @property
    def numpy_dtype(self) -> np.dtype:
        return np.dtype(self.numpy_name)

    def is_integer(self) -> bool:
        return self.numpy_dtype.kind in 'iu'

    def is_floating(self) -> bool:
        return self.numpy_dtype.kind == 'f'

    def is_boolean(self) -> bool:
        return self is DataType.BOOLEAN

    @classmethod
    def of(cls, label: str) -> DataType:
        for member in cls:
            if label in (member.label, member.numpy_name):
                return member
        raise InvalidArgumentError(f"Unknown data type: {label}", actual=label)

    @classmethod
    def from_numpy(cls, dtype) -> DataType:
        return _from_numpy(np.dtype(dtype))

    def __str__(self) -> str:
        return self.label


@lru_cache(maxsize=32)
def _from_numpy(dtype: np.dtype) -> DataType:
    for member in DataType:
        if member.numpy_dtype == dtype:
            return member
    raise InvalidArgumentError(f"Unsupported numpy dtype: {dtype}", actual=str(dtype))
