from __future__ import annotations
from typing import Any, Dict

import torch

from .base import MemoryBackend
from ...types.aliases import ByteSize
from ...types.context import Context, gpu_count
from ...types.enums import DeviceKind
from ...exceptions import AllocationFailure, DeviceUnavailableError


class CudaBackend(MemoryBackend[torch.Tensor]):
    """GPU buffers held as torch ``uint8`` tensors on the context's device."""

    def __init__(self):
        super().__init__(DeviceKind.GPU)

    def _allocate_impl(self, byte_length: ByteSize, context: Context) -> torch.Tensor:
        if context.index >= gpu_count():
            raise DeviceUnavailableError(f"Device {context} is not available", device=str(context))
        try:
            return torch.zeros(byte_length, dtype=torch.uint8, device=context.to_torch_device())
        except RuntimeError as e:
            raise AllocationFailure(
                f"Cannot allocate {byte_length} bytes on {context}: {e}",
                requested_size=byte_length, backend_type=self.name
            ) from e

    def _write_impl(self, buffer: torch.Tensor, data: memoryview) -> None:
        if data.nbytes == 0:
            return
        host = torch.frombuffer(bytearray(data), dtype=torch.uint8)
        buffer.copy_(host)

    def _read_impl(self, buffer: torch.Tensor) -> bytes:
        return buffer.cpu().numpy().tobytes()

    def detect_capabilities(self) -> Dict[str, Any]:
        capabilities = {
            'cuda_available': torch.cuda.is_available(),
            'device_count': gpu_count(),
            'devices': [],
        }
        for i in range(capabilities['device_count']):
            props = torch.cuda.get_device_properties(i)
            capabilities['devices'].append({
                'id': i,
                'name': props.name,
                'memory': props.total_memory,
                'compute_capability': f"{props.major}.{props.minor}"
            })
        return capabilities
