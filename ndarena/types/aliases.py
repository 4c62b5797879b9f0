"""
Type aliases for ndarena.

This module defines type aliases used throughout the library
for better type safety and code clarity.
"""

from typing import NewType

# Core type aliases
BufferHandle = NewType('BufferHandle', int)
ByteSize = NewType('ByteSize', int)
SlotIndex = NewType('SlotIndex', int)
Generation = NewType('Generation', int)
