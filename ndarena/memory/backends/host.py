from __future__ import annotations
import mmap
import os
import sys
from typing import Any, Dict

import numpy as np

from .base import MemoryBackend
from ...types.aliases import ByteSize
from ...types.context import Context
from ...types.enums import DeviceKind
from ...exceptions import AllocationFailure


class HostBackend(MemoryBackend[np.ndarray]):
    """CPU buffers held as flat numpy ``uint8`` arrays."""

    def __init__(self):
        super().__init__(DeviceKind.CPU)

    def _allocate_impl(self, byte_length: ByteSize, context: Context) -> np.ndarray:
        try:
            return np.zeros(byte_length, dtype=np.uint8)
        except MemoryError as e:
            raise AllocationFailure(
                f"Cannot allocate {byte_length} bytes on {context}: {e}",
                requested_size=byte_length, backend_type=self.name
            ) from e

    def _write_impl(self, buffer: np.ndarray, data: memoryview) -> None:
        buffer[:] = np.frombuffer(data, dtype=np.uint8)

    def _read_impl(self, buffer: np.ndarray) -> bytes:
        return buffer.tobytes()

    def detect_capabilities(self) -> Dict[str, Any]:
        return {
            'page_size': mmap.PAGESIZE,
            'cpu_count': os.cpu_count() or 1,
            'byte_order': sys.byteorder,
        }
