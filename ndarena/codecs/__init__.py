"""
Codec components for ndarena.

This module provides the binary parameter file format used by model
checkpoints, with integrity checksums and optional compression.
"""

from .codec import FORMAT_VERSION, MAGIC, ParameterCodec, compute_checksum

__all__ = [
    "ParameterCodec",
    "compute_checksum",
    "MAGIC",
    "FORMAT_VERSION",
]
