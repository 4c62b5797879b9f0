"""
Initializer strategies for ndarena.

An initializer is anything with ``initialize(manager, shape, dtype)``
returning a fresh array created by ``manager`` on the manager's context.
Built-in strategies and user-defined ones are interchangeable.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Union

import numpy as np

from .core.manager import NDManager
from .core.ndarray import NDArray
from .exceptions import InvalidArgumentError
from .types.datatype import DataType
from .types.protocols import IInitializer as Initializer
from .types.shape import Shape


class ConstantInitializer:
    """Fills every element with one value."""

    __slots__ = ('_value',)

    def __init__(self, value: Union[int, float, bool]):
        self._value = value

    @property
    def value(self) -> Union[int, float, bool]:
        return self._value

    def initialize(self, manager: NDManager, shape: Shape, dtype: DataType) -> NDArray:
        if self._value == 0:
            return manager.zeros(shape, dtype, manager.context)
        return manager.full(shape, self._value, dtype, manager.context)

    def __repr__(self) -> str:
        return f"ConstantInitializer({self._value!r})"


class _RandomInitializer(ABC):
    __slots__ = ('_rng',)

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self._rng = rng if rng is not None else np.random.default_rng()

    @abstractmethod
    def _sample(self, size) -> np.ndarray: ...

    def initialize(self, manager: NDManager, shape: Shape, dtype: DataType) -> NDArray:
        shape = Shape.of(shape)
        if not dtype.is_floating():
            raise InvalidArgumentError(
                f"{type(self).__name__} requires a floating data type, got {dtype}",
                expected="floating", actual=str(dtype)
            )
        values = self._sample(shape.dims).astype(dtype.numpy_dtype)
        array = manager.create(shape, dtype, manager.context)
        array.set(values)
        return array


class UniformInitializer(_RandomInitializer):
    """Samples from U[low, high)."""

    __slots__ = ('_low', '_high')

    def __init__(self, low: float = -0.07, high: float = 0.07, rng: Optional[np.random.Generator] = None):
        if high < low:
            raise InvalidArgumentError(f"Uniform bounds out of order: [{low}, {high})")
        super().__init__(rng)
        self._low = low
        self._high = high

    def _sample(self, size) -> np.ndarray:
        return self._rng.uniform(self._low, self._high, size=size)


class NormalInitializer(_RandomInitializer):
    """Samples from N(mean, sigma^2)."""

    __slots__ = ('_mean', '_sigma')

    def __init__(self, mean: float = 0.0, sigma: float = 0.01, rng: Optional[np.random.Generator] = None):
        if sigma < 0:
            raise InvalidArgumentError(f"Standard deviation must be non-negative: {sigma}")
        super().__init__(rng)
        self._mean = mean
        self._sigma = sigma

    def _sample(self, size) -> np.ndarray:
        return self._rng.normal(self._mean, self._sigma, size=size)


ZEROS: Initializer = ConstantInitializer(0)
ONES: Initializer = ConstantInitializer(1)

__all__ = [
    "Initializer",
    "ConstantInitializer",
    "UniformInitializer",
    "NormalInitializer",
    "ZEROS",
    "ONES",
]
