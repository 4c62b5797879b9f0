from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Protocol, runtime_checkable

from .aliases import BufferHandle, ByteSize
from .context import Context
from .datatype import DataType
from .shape import Shape

if TYPE_CHECKING:
    from ..core.manager import NDManager
    from ..core.ndarray import NDArray


@runtime_checkable
class IBackend(Protocol):
    @property
    def name(self) -> str:
        ...

    def allocate(self, byte_length: ByteSize, context: Context) -> BufferHandle:
        ...

    def free(self, handle: BufferHandle) -> None:
        ...

    def write(self, handle: BufferHandle, data: bytes | memoryview) -> None:
        ...

    def read(self, handle: BufferHandle) -> bytes:
        ...

    def get_memory_info(self) -> Dict[str, Any]:
        ...


@runtime_checkable
class IInitializer(Protocol):
    def initialize(self, manager: NDManager, shape: Shape, dtype: DataType) -> NDArray:
        ...
