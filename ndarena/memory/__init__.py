"""
Memory management components for ndarena.

This module provides the handle-based buffer backends that own the
raw storage behind every array, one per device kind.
"""

from .backends import (
    MemoryBackend,
    HostBackend,
    CudaBackend,
    get_backend
)

__all__ = [
    "MemoryBackend",
    "HostBackend",
    "CudaBackend",
    "get_backend",
]
