"""
Enumeration types for ndarena.

This module defines the enumeration types used for device selection,
array lifecycle tracking and checkpoint compression.
"""

from enum import IntEnum


class DeviceKind(IntEnum):
    """Kinds of compute device an array can live on."""
    CPU = 0
    GPU = 1


class ArrayLifecycleState(IntEnum):
    """Lifecycle states of an array handle."""
    ALLOCATED = 0
    ACTIVE = 1
    RELEASED = 2


class CompressionType(IntEnum):
    """Compression algorithms for parameter payloads."""
    NONE = 0
    LZ4 = 1
