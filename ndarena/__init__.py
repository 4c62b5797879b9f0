"""
ndarena - Device-aware, arena-owned n-dimensional arrays

Arrays are created by managers and released when their manager closes.
Managers form a tree under one process-wide system manager, so scoped
clean-up of every intermediate result is a single close() call.

Key Features:
- Hierarchical NDManager arenas with explicit ownership transfer
- NDArray handles on host (numpy) or CUDA (torch) buffers
- Pluggable initializers
- Aligned text rendering of array contents
- Checkpointed models with integrity-checked parameter files
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Core components
from .core.manager import NDManager, get_system_manager
from .core.ndarray import NDArray
from .core.registry import ArrayRegistry

# Memory backends
from .memory.backends import MemoryBackend, HostBackend, CudaBackend, get_backend

# Initializers and formatting
from .initializers import (
    Initializer,
    ConstantInitializer,
    UniformInitializer,
    NormalInitializer,
    ZEROS,
    ONES
)
from .formatting import format_array

# Engine and checkpoints
from .engine import Engine, MemoryUsage
from .model import Model
from .checkpoint import resolve_epoch, list_epochs
from .codecs.codec import ParameterCodec

# Configuration
from .config import ArenaConfig, configure, get_config, reset_config, load_config

# Types
from .types.context import Context
from .types.shape import Shape
from .types.datatype import DataType
from .types.enums import DeviceKind, ArrayLifecycleState, CompressionType

# Exceptions
from .exceptions import (
    NDArenaError,
    InvalidArgumentError,
    ResourceClosedError,
    DeviceUnavailableError,
    BackendError,
    AllocationFailure,
    CheckpointError,
    CheckpointNotFoundError,
    CheckpointCorruption
)

# Public API
__all__ = [
    # Core components
    "NDManager",
    "NDArray",
    "ArrayRegistry",
    "get_system_manager",

    # Memory backends
    "MemoryBackend",
    "HostBackend",
    "CudaBackend",
    "get_backend",

    # Initializers and formatting
    "Initializer",
    "ConstantInitializer",
    "UniformInitializer",
    "NormalInitializer",
    "ZEROS",
    "ONES",
    "format_array",

    # Engine and checkpoints
    "Engine",
    "MemoryUsage",
    "Model",
    "resolve_epoch",
    "list_epochs",
    "ParameterCodec",

    # Configuration
    "ArenaConfig",
    "configure",
    "get_config",
    "reset_config",
    "load_config",

    # Types
    "Context",
    "Shape",
    "DataType",
    "DeviceKind",
    "ArrayLifecycleState",
    "CompressionType",

    # Exceptions
    "NDArenaError",
    "InvalidArgumentError",
    "ResourceClosedError",
    "DeviceUnavailableError",
    "BackendError",
    "AllocationFailure",
    "CheckpointError",
    "CheckpointNotFoundError",
    "CheckpointCorruption",
]

# Version info
VERSION_INFO = tuple(map(int, __version__.split('.')))

def get_version() -> str:
    """Get the current version string."""
    return __version__

def get_version_info() -> tuple[int, ...]:
    """Get version as tuple of integers."""
    return VERSION_INFO
