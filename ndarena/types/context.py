from __future__ import annotations
import re
from dataclasses import dataclass

import torch

from ..exceptions import DeviceUnavailableError, InvalidArgumentError
from .enums import DeviceKind

_CONTEXT_PATTERN = re.compile(r"(cpu|gpu|cuda)(?:\((\d+)\)|:(\d+))?")


def gpu_count() -> int:
    """Number of CUDA devices visible to this process."""
    if not torch.cuda.is_available():
        return 0
    return torch.cuda.device_count()


@dataclass(frozen=True)
class Context:
    """Immutable device binding for arrays and managers."""

    kind: DeviceKind
    index: int = 0

    def __post_init__(self):
        if isinstance(self.index, bool) or not isinstance(self.index, int) or self.index < 0:
            raise InvalidArgumentError(f"Invalid device index: {self.index!r}", actual=self.index)

    @classmethod
    def cpu(cls, index: int = 0) -> Context:
        return cls(DeviceKind.CPU, index)

    @classmethod
    def gpu(cls, index: int = 0) -> Context:
        """GPU context, checked against the visible devices right away."""
        count = gpu_count()
        if index >= count:
            raise DeviceUnavailableError(
                f"GPU {index} requested but {count} GPU(s) available",
                device=f"gpu({index})",
            )
        return cls(DeviceKind.GPU, index)

    @classmethod
    def default_context(cls) -> Context:
        if gpu_count() > 0:
            return cls.gpu()
        return cls.cpu()

    @classmethod
    def from_string(cls, text: str) -> Context:
        match = _CONTEXT_PATTERN.fullmatch(text.strip().lower())
        if match is None:
            raise InvalidArgumentError(f"Invalid device string: {text!r}", actual=text)
        kind, paren_index, colon_index = match.groups()
        index = int(paren_index or colon_index or 0)
        if kind == 'cpu':
            return cls.cpu(index)
        return cls.gpu(index)

    @property
    def is_gpu(self) -> bool:
        return self.kind == DeviceKind.GPU

    def to_torch_device(self) -> torch.device:
        if self.is_gpu:
            return torch.device('cuda', self.index)
        return torch.device('cpu')

    def __str__(self) -> str:
        return f"{self.kind.name.lower()}({self.index})"
