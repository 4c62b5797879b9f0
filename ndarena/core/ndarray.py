"""
NDArray handle implementation for ndarena.

An NDArray is a typed, shaped view over one backend buffer. It is owned by
exactly one manager at a time and becomes unusable once released, either
directly or by the closing of its owner.
"""

from __future__ import annotations
from threading import RLock
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

import numpy as np

from ..types.aliases import BufferHandle, ByteSize, Generation, SlotIndex
from ..types.context import Context
from ..types.datatype import DataType
from ..types.enums import ArrayLifecycleState
from ..types.protocols import IBackend
from ..types.shape import Shape
from ..exceptions import InvalidArgumentError, ResourceClosedError

if TYPE_CHECKING:
    from .manager import NDManager


class NDArray:
    """Handle to a backend buffer with shape, dtype and device."""

    __slots__ = (
        '_manager', '_shape', '_dtype', '_context', '_backend', '_handle',
        '_state', '_slot', '_lock', '__weakref__'
    )

    def __init__(
        self,
        manager: NDManager,
        shape: Shape,
        dtype: DataType,
        context: Context,
        backend: IBackend,
        handle: BufferHandle
    ):
        self._manager = manager
        self._shape = shape
        self._dtype = dtype
        self._context = context
        self._backend = backend
        self._handle = handle
        self._state = ArrayLifecycleState.ALLOCATED
        self._slot: Optional[Tuple[SlotIndex, Generation]] = None
        self._lock = RLock()

    @property
    def shape(self) -> Shape:
        self._check_open()
        return self._shape

    @property
    def dtype(self) -> DataType:
        self._check_open()
        return self._dtype

    @property
    def context(self) -> Context:
        self._check_open()
        return self._context

    @property
    def manager(self) -> NDManager:
        self._check_open()
        return self._manager

    @property
    def size(self) -> int:
        """Number of elements."""
        return self.shape.size()

    @property
    def nbytes(self) -> ByteSize:
        return ByteSize(self.size * self._dtype.num_bytes)

    @property
    def state(self) -> ArrayLifecycleState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state == ArrayLifecycleState.RELEASED

    def set(self, data: Any) -> None:
        """Overwrite the whole buffer.

        ``data`` may be a numpy array, a (nested) Python sequence, a scalar
        for single-element arrays, another NDArray, or a bytes-like raw
        buffer. Numeric narrowing is never implicit: numpy input must cast
        safely to this array's dtype, and Python literals must fit it.
        """
        with self._lock:
            self._check_open()
            if isinstance(data, (bytes, bytearray, memoryview)):
                payload = memoryview(data).cast('B')
                if payload.nbytes != self.nbytes:
                    raise InvalidArgumentError(
                        f"Raw buffer of {payload.nbytes} bytes does not match "
                        f"{self.nbytes} bytes of {self._shape} {self._dtype}",
                        expected=self.nbytes, actual=payload.nbytes
                    )
            else:
                payload = _coerce(data, self._dtype, self._shape.size()).tobytes()
            self._backend.write(self._handle, payload)
            self._state = ArrayLifecycleState.ACTIVE

    def to_numpy(self) -> np.ndarray:
        """Copy of the contents as a numpy array of this shape."""
        with self._lock:
            self._check_open()
            raw = self._backend.read(self._handle)
        flat = np.frombuffer(raw, dtype=self._dtype.numpy_dtype)
        return flat.reshape(self._shape.dims).copy()

    def to_list(self) -> List[Any]:
        return self.to_numpy().reshape(-1).tolist()

    def to_bytes(self) -> bytes:
        with self._lock:
            self._check_open()
            return self._backend.read(self._handle)

    def attach(self, manager: NDManager) -> NDManager:
        """Move ownership to ``manager`` and return the previous owner."""
        with self._lock:
            self._check_open()
            previous = self._manager
            if manager is previous:
                return previous
            slot = manager._register(self)
            previous._unregister(self._slot)
            self._slot = slot
            self._manager = manager
            return previous

    def close(self) -> None:
        """Release this array ahead of its manager."""
        with self._lock:
            if self.is_closed:
                return
            self._manager._unregister(self._slot)
            self._release()

    def _release(self) -> None:
        with self._lock:
            if self._state == ArrayLifecycleState.RELEASED:
                return
            self._state = ArrayLifecycleState.RELEASED
            self._slot = None
            self._backend.free(self._handle)

    def _check_open(self) -> None:
        if self._state == ArrayLifecycleState.RELEASED:
            raise ResourceClosedError("NDArray has been released", resource="NDArray")

    def __enter__(self) -> NDArray:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __str__(self) -> str:
        from ..formatting import format_array
        return format_array(self)

    def __repr__(self) -> str:
        if self.is_closed:
            return "NDArray(released)"
        return f"NDArray(shape={self._shape}, dtype={self._dtype}, context={self._context})"


def _coerce(data: Any, dtype: DataType, expected: int) -> np.ndarray:
    if isinstance(data, NDArray):
        data = data.to_numpy()
    strict = isinstance(data, (np.ndarray, np.generic))
    try:
        values = np.asarray(data)
    except (ValueError, OverflowError) as e:
        raise InvalidArgumentError(f"Cannot convert input to an array: {e}") from e

    if values.size != expected:
        raise InvalidArgumentError(
            f"Expected {expected} elements but got {values.size}",
            expected=expected, actual=values.size
        )

    target = dtype.numpy_dtype
    if values.dtype != target and values.size:
        if strict:
            if not np.can_cast(values.dtype, target, casting='safe'):
                raise InvalidArgumentError(
                    f"Cannot implicitly cast {values.dtype} to {dtype}; convert explicitly",
                    expected=str(dtype), actual=str(values.dtype)
                )
        else:
            _check_literals(values, dtype)
    return np.ascontiguousarray(values, dtype=target).reshape(-1)


def _check_literals(values: np.ndarray, dtype: DataType) -> None:
    kind = values.dtype.kind
    if kind == 'b':
        return
    if kind in 'iu' and not dtype.is_boolean():
        if dtype.is_integer():
            info = np.iinfo(dtype.numpy_dtype)
            low, high = values.min(), values.max()
            if low < info.min or high > info.max:
                raise InvalidArgumentError(
                    f"Values in [{low}, {high}] do not fit {dtype} [{info.min}, {info.max}]",
                    expected=str(dtype), actual=(int(low), int(high))
                )
        return
    if kind == 'f' and dtype.is_floating():
        return
    raise InvalidArgumentError(
        f"Cannot store {values.dtype} values in a {dtype} array; convert explicitly",
        expected=str(dtype), actual=str(values.dtype)
    )
