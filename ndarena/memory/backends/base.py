from __future__ import annotations
import itertools
import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Dict, Generic, TypeVar

from ...types.aliases import BufferHandle, ByteSize
from ...types.context import Context
from ...types.enums import DeviceKind
from ...exceptions import AllocationFailure, BackendError

logger = logging.getLogger(__name__)

BufferT = TypeVar('BufferT')


class MemoryBackend(ABC, Generic[BufferT]):
    """Handle-based buffer store for one device kind.

    Subclasses provide the raw buffer operations; this class owns the
    handle table, validation and allocation statistics.
    """

    def __init__(self, device_kind: DeviceKind):
        self._device_kind = device_kind
        self._buffers: Dict[BufferHandle, BufferT] = {}
        self._sizes: Dict[BufferHandle, ByteSize] = {}
        self._handles = itertools.count(1)
        self._lock = RLock()
        self._capabilities: Dict[str, Any] = {}
        self._initialized = False
        self._stats = {
            'allocations': 0,
            'frees': 0,
            'live_bytes': 0,
            'peak_bytes': 0,
        }

    @property
    def name(self) -> str:
        return self._device_kind.name.lower()

    @property
    def device_kind(self) -> DeviceKind:
        return self._device_kind

    @property
    def capabilities(self) -> Dict[str, Any]:
        return self._capabilities.copy()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @abstractmethod
    def _allocate_impl(self, byte_length: ByteSize, context: Context) -> BufferT: ...

    @abstractmethod
    def _write_impl(self, buffer: BufferT, data: memoryview) -> None: ...

    @abstractmethod
    def _read_impl(self, buffer: BufferT) -> bytes: ...

    @abstractmethod
    def detect_capabilities(self) -> Dict[str, Any]: ...

    def initialize(self) -> None:
        if not self._initialized:
            self._capabilities = self.detect_capabilities()
            self._initialized = True

    def allocate(self, byte_length: ByteSize, context: Context) -> BufferHandle:
        if byte_length < 0:
            raise AllocationFailure(
                f"Cannot allocate negative size {byte_length}",
                requested_size=byte_length, backend_type=self.name
            )
        if context.kind != self._device_kind:
            raise BackendError(
                f"Context {context} does not belong to the {self.name} backend",
                backend_type=self.name
            )
        if not self._initialized:
            self.initialize()

        buffer = self._allocate_impl(byte_length, context)
        with self._lock:
            handle = BufferHandle(next(self._handles))
            self._buffers[handle] = buffer
            self._sizes[handle] = byte_length
            self._stats['allocations'] += 1
            self._stats['live_bytes'] += byte_length
            self._stats['peak_bytes'] = max(self._stats['peak_bytes'], self._stats['live_bytes'])
        logger.debug("Allocated %d bytes on %s as handle %d", byte_length, context, handle)
        return handle

    def free(self, handle: BufferHandle) -> None:
        with self._lock:
            if handle not in self._buffers:
                raise BackendError(f"Unknown or freed buffer handle {handle}", backend_type=self.name)
            del self._buffers[handle]
            size = self._sizes.pop(handle)
            self._stats['frees'] += 1
            self._stats['live_bytes'] -= size
        logger.debug("Freed handle %d (%d bytes)", handle, size)

    def write(self, handle: BufferHandle, data: bytes | memoryview) -> None:
        view = memoryview(data).cast('B')
        buffer, size = self._lookup(handle)
        if view.nbytes != size:
            raise BackendError(
                f"Write of {view.nbytes} bytes into a {size}-byte buffer",
                backend_type=self.name
            )
        self._write_impl(buffer, view)

    def read(self, handle: BufferHandle) -> bytes:
        buffer, _ = self._lookup(handle)
        return self._read_impl(buffer)

    def size_of(self, handle: BufferHandle) -> ByteSize:
        return self._lookup(handle)[1]

    def _lookup(self, handle: BufferHandle):
        with self._lock:
            try:
                return self._buffers[handle], self._sizes[handle]
            except KeyError:
                raise BackendError(
                    f"Unknown or freed buffer handle {handle}", backend_type=self.name
                ) from None

    def get_memory_info(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'backend': self.name,
                'live_buffers': len(self._buffers),
                'capabilities': self._capabilities.copy(),
                **self._stats,
            }

    def __len__(self) -> int:
        return len(self._buffers)

    def __contains__(self, handle: BufferHandle) -> bool:
        with self._lock:
            return handle in self._buffers
