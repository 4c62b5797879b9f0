"""
Core components of ndarena.

This module contains the array handle, the manager arena that owns
arrays, and the slot registry each manager keeps.
"""

from .manager import NDManager, get_system_manager
from .ndarray import NDArray
from .registry import ArrayRegistry

__all__ = [
    "NDManager",
    "NDArray",
    "ArrayRegistry",
    "get_system_manager",
]
