"""
Type definitions and protocols for ndarena.

This module provides the value types shared by managers, arrays,
backends and codecs: device contexts, shapes and data types.
"""

from .aliases import (
    BufferHandle,
    ByteSize,
    SlotIndex,
    Generation
)
from .enums import (
    DeviceKind,
    ArrayLifecycleState,
    CompressionType
)
from .datatype import DataType
from .shape import Shape
from .context import Context, gpu_count
from .protocols import IBackend, IInitializer

__all__ = [
    # Value types
    "Context",
    "Shape",
    "DataType",
    "gpu_count",

    # Enums
    "DeviceKind",
    "ArrayLifecycleState",
    "CompressionType",

    # Protocols
    "IBackend",
    "IInitializer",

    # Type aliases
    "BufferHandle",
    "ByteSize",
    "SlotIndex",
    "Generation",
]
