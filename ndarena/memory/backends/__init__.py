from __future__ import annotations
from functools import lru_cache

from .base import MemoryBackend
from .host import HostBackend
from .cuda import CudaBackend
from ...types.context import Context
from ...types.enums import DeviceKind


@lru_cache(maxsize=None)
def _backend_for(kind: DeviceKind) -> MemoryBackend:
    if kind == DeviceKind.GPU:
        return CudaBackend()
    return HostBackend()


def get_backend(context: Context) -> MemoryBackend:
    """Process-wide backend serving the context's device kind."""
    return _backend_for(context.kind)


__all__ = [
    "MemoryBackend",
    "HostBackend",
    "CudaBackend",
    "get_backend",
]
