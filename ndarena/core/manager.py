"""
NDManager implementation for ndarena.

A manager is an arena: it owns a set of arrays and child managers and
releases all of them, recursively, when it is closed. A lazily created
system manager sits at the root of every ownership tree and is never
closed.
"""

from __future__ import annotations
import itertools
import logging
from functools import lru_cache
from threading import RLock
from typing import Any, Dict, List, Optional, Set, Tuple, Union

import numpy as np

from ..config import resolve_default_context, resolve_default_dtype
from ..exceptions import InvalidArgumentError, ResourceClosedError
from ..memory.backends import get_backend
from ..types.aliases import ByteSize, Generation, SlotIndex
from ..types.context import Context
from ..types.datatype import DataType
from ..types.shape import Shape
from .ndarray import NDArray
from .registry import ArrayRegistry

logger = logging.getLogger(__name__)

ShapeLike = Union[Shape, Tuple[int, ...], List[int], int]
DataTypeLike = Union[DataType, str, None]

_manager_ids = itertools.count()


def _resolve_dtype(dtype: DataTypeLike) -> DataType:
    if dtype is None:
        return resolve_default_dtype()
    if isinstance(dtype, DataType):
        return dtype
    return DataType.of(dtype)


class NDManager:
    """Scoped owner of arrays and sub-managers."""

    __slots__ = ('_parent', '_children', '_registry', '_context', '_lock', '_closed', '_name', '__weakref__')

    def __init__(
        self,
        parent: Optional[NDManager] = None,
        context: Optional[Context] = None,
        name: Optional[str] = None
    ):
        self._parent = parent
        self._context = context if context is not None else resolve_default_context()
        self._children: Set[NDManager] = set()
        self._registry = ArrayRegistry()
        self._lock = RLock()
        self._closed = False
        self._name = name or f"NDManager-{next(_manager_ids)}"

    @staticmethod
    def new_base_manager(context: Optional[Context] = None) -> NDManager:
        """Sub-manager of the system manager on ``context`` or the configured default."""
        return get_system_manager().new_sub_manager(context or resolve_default_context())

    def new_sub_manager(self, context: Optional[Context] = None) -> NDManager:
        with self._lock:
            self._check_open()
            child = NDManager(parent=self, context=context or self._context)
            self._children.add(child)
        logger.debug("Created %s under %s on %s", child.name, self._name, child.context)
        return child

    def create(
        self,
        shape: ShapeLike,
        dtype: DataTypeLike = None,
        context: Optional[Context] = None
    ) -> NDArray:
        """Allocate a zero-filled array owned by this manager."""
        shape = Shape.of(shape)
        dtype = _resolve_dtype(dtype)
        context = context or self._context
        with self._lock:
            self._check_open()
            backend = get_backend(context)
            handle = backend.allocate(ByteSize(shape.size() * dtype.num_bytes), context)
            array = NDArray(self, shape, dtype, context, backend, handle)
            array._slot = self._register(array)
        return array

    def create_from(
        self,
        data: Any,
        shape: Optional[ShapeLike] = None,
        dtype: DataTypeLike = None,
        context: Optional[Context] = None
    ) -> NDArray:
        """Create an array holding ``data``.

        The dtype is inferred from ``data`` unless given; an explicit dtype
        is an explicit conversion. ``shape`` defaults to the shape of
        ``data`` and may reshape it when the element counts agree.
        """
        if isinstance(data, NDArray):
            data = data.to_numpy()
        try:
            values = np.asarray(data)
        except (ValueError, OverflowError) as e:
            raise InvalidArgumentError(f"Cannot convert input to an array: {e}") from e

        if dtype is None:
            dtype = DataType.from_numpy(values.dtype)
        else:
            dtype = _resolve_dtype(dtype)
            values = values.astype(dtype.numpy_dtype)
        shape = Shape.of(shape) if shape is not None else Shape(*values.shape)

        array = self.create(shape, dtype, context)
        try:
            array.set(values)
        except Exception:
            array.close()
            raise
        return array

    def zeros(self, shape: ShapeLike, dtype: DataTypeLike = None, context: Optional[Context] = None) -> NDArray:
        return self.create(shape, dtype, context)

    def ones(self, shape: ShapeLike, dtype: DataTypeLike = None, context: Optional[Context] = None) -> NDArray:
        return self.full(shape, 1, dtype, context)

    def full(
        self,
        shape: ShapeLike,
        value: Union[int, float, bool],
        dtype: DataTypeLike = None,
        context: Optional[Context] = None
    ) -> NDArray:
        array = self.create(shape, dtype, context)
        try:
            if array.dtype.is_boolean():
                value = bool(value)
            array.set([value] * array.size)
        except Exception:
            array.close()
            raise
        return array

    def attach(self, array: NDArray) -> NDManager:
        """Take ownership of ``array``; returns its previous manager."""
        return array.attach(self)

    def _register(self, array: NDArray) -> Tuple[SlotIndex, Generation]:
        with self._lock:
            self._check_open()
            return self._registry.register(array)

    def _unregister(self, slot: Optional[Tuple[SlotIndex, Generation]]) -> None:
        if slot is None:
            return
        with self._lock:
            self._registry.remove(*slot)

    def _detach_child(self, child: NDManager) -> None:
        with self._lock:
            self._children.discard(child)

    def _check_open(self) -> None:
        if self._closed:
            raise ResourceClosedError(f"{self._name} has been closed", resource="NDManager")

    @property
    def name(self) -> str:
        return self._name

    @property
    def context(self) -> Context:
        return self._context

    @property
    def parent(self) -> Optional[NDManager]:
        return self._parent

    @property
    def children(self) -> List[NDManager]:
        with self._lock:
            return list(self._children)

    @property
    def arrays(self) -> List[NDArray]:
        return self._registry.list_active()

    def is_closed(self) -> bool:
        return self._closed

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'name': self._name,
                'context': str(self._context),
                'closed': self._closed,
                'sub_managers': len(self._children),
                'registry': self._registry.get_statistics(),
            }

    def close(self) -> None:
        """Close sub-managers, release owned arrays, then leave the parent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            children = list(self._children)

        for child in children:
            child.close()

        with self._lock:
            arrays = self._registry.drain()
            self._children.clear()
        for array in arrays:
            array._release()

        if self._parent is not None:
            self._parent._detach_child(self)
        logger.debug("Closed %s: released %d arrays and %d sub-managers",
                     self._name, len(arrays), len(children))

    def __enter__(self) -> NDManager:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"NDManager(name={self._name}, context={self._context}, "
            f"arrays={len(self._registry)}, closed={self._closed})"
        )


class _SystemManager(NDManager):
    __slots__ = ()

    def close(self) -> None:
        logger.warning("Ignoring close() on the system manager")


@lru_cache(maxsize=1)
def get_system_manager() -> NDManager:
    """Process-wide root manager, created on first use and never closed."""
    return _SystemManager(name="system")
