from __future__ import annotations
import numbers
from typing import Iterable, Iterator, Tuple, Union

from ..exceptions import InvalidArgumentError


class Shape:
    """Ordered sequence of non-negative dimension sizes."""

    __slots__ = ('_dims',)

    def __init__(self, *dims: int):
        if len(dims) == 1 and isinstance(dims[0], (tuple, list)):
            dims = tuple(dims[0])
        for dim in dims:
            if isinstance(dim, bool) or not isinstance(dim, numbers.Integral) or dim < 0:
                raise InvalidArgumentError(
                    f"Invalid dimension {dim!r} in shape {dims}", actual=dims
                )
        self._dims: Tuple[int, ...] = tuple(int(dim) for dim in dims)

    @classmethod
    def of(cls, shape: Union[Shape, Iterable[int], int]) -> Shape:
        if isinstance(shape, Shape):
            return shape
        if isinstance(shape, numbers.Integral):
            return cls(shape)
        return cls(*tuple(shape))

    @property
    def dims(self) -> Tuple[int, ...]:
        return self._dims

    def dimension(self) -> int:
        return len(self._dims)

    def size(self) -> int:
        result = 1
        for dim in self._dims:
            result *= dim
        return result

    def is_scalar(self) -> bool:
        return not self._dims

    def __len__(self) -> int:
        return len(self._dims)

    def __iter__(self) -> Iterator[int]:
        return iter(self._dims)

    def __getitem__(self, index: int) -> int:
        return self._dims[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Shape):
            return self._dims == other._dims
        if isinstance(other, tuple):
            return self._dims == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._dims)

    def __str__(self) -> str:
        return '(' + ', '.join(str(dim) for dim in self._dims) + ')'

    def __repr__(self) -> str:
        return f"Shape{self}"
