"""
Parameter file codec for ndarena.

This module encodes named arrays into a single binary blob and back,
with per-entry integrity checksums and optional LZ4 compression.

Layout (little endian)::

    header   magic "NDAP" | version u16 | compression u8 | entries u32
    entry    name_len u16 | name | dtype_len u8 | dtype | ndim u8 |
             dims u64 * ndim | checksum u64 | payload_len u64 | payload
"""

from __future__ import annotations
import hashlib
import logging
import struct
from typing import Dict, Mapping, Optional, Tuple

import lz4.frame

from ..core.manager import NDManager
from ..core.ndarray import NDArray
from ..exceptions import CheckpointCorruption, InvalidArgumentError
from ..types.datatype import DataType
from ..types.enums import CompressionType
from ..types.shape import Shape

logger = logging.getLogger(__name__)

MAGIC = b"NDAP"
FORMAT_VERSION = 1

_HEADER = struct.Struct('<4sHBI')
_NAME_LEN = struct.Struct('<H')
_SMALL_LEN = struct.Struct('<B')
_DIM = struct.Struct('<Q')
_PAYLOAD_INFO = struct.Struct('<QQ')


class ParameterCodec:
    """Serializes a mapping of names to arrays."""

    __slots__ = ('_compression',)

    def __init__(self, compression: CompressionType = CompressionType.LZ4):
        self._compression = compression

    @property
    def compression(self) -> CompressionType:
        return self._compression

    def encode(self, arrays: Mapping[str, NDArray], compression: Optional[CompressionType] = None) -> bytes:
        compression = self._compression if compression is None else CompressionType(compression)
        chunks = [_HEADER.pack(MAGIC, FORMAT_VERSION, int(compression), len(arrays))]
        for name, array in arrays.items():
            raw = array.to_bytes()
            payload = _compress(raw, compression)
            encoded_name = name.encode('utf-8')
            label = array.dtype.label.encode('ascii')
            dims = array.shape.dims
            if len(encoded_name) > 0xFFFF:
                raise InvalidArgumentError(f"Parameter name too long: {name[:32]}...")
            chunks.append(_NAME_LEN.pack(len(encoded_name)))
            chunks.append(encoded_name)
            chunks.append(_SMALL_LEN.pack(len(label)))
            chunks.append(label)
            chunks.append(_SMALL_LEN.pack(len(dims)))
            chunks.extend(_DIM.pack(dim) for dim in dims)
            chunks.append(_PAYLOAD_INFO.pack(compute_checksum(raw), len(payload)))
            chunks.append(payload)
        data = b''.join(chunks)
        logger.debug("Encoded %d parameters into %d bytes (%s)",
                     len(arrays), len(data), compression.name)
        return data

    def decode(self, data: bytes, manager: NDManager) -> Dict[str, NDArray]:
        """Decode ``data`` into arrays owned by ``manager``.

        Arrays created before a failure are closed again, so a corrupt file
        leaves nothing behind in the manager.
        """
        view = memoryview(data)
        try:
            magic, version, compression_id, count = _HEADER.unpack_from(view, 0)
        except struct.error as e:
            raise CheckpointCorruption(f"Truncated parameter header: {e}") from e
        if magic != MAGIC:
            raise CheckpointCorruption(f"Bad magic {bytes(magic)!r}, expected {MAGIC!r}")
        if version != FORMAT_VERSION:
            raise CheckpointCorruption(f"Unsupported parameter format version {version}")
        try:
            compression = CompressionType(compression_id)
        except ValueError as e:
            raise CheckpointCorruption(f"Unknown compression id {compression_id}") from e

        offset = _HEADER.size
        arrays: Dict[str, NDArray] = {}
        try:
            for _ in range(count):
                name, dtype, shape, checksum, payload, offset = _read_entry(view, offset)
                if name in arrays:
                    raise CheckpointCorruption(f"Duplicate parameter {name!r}", entry=name)
                raw = _decompress(payload, compression, name)
                actual = compute_checksum(raw)
                if actual != checksum:
                    raise CheckpointCorruption(
                        f"Checksum mismatch for parameter {name!r}",
                        entry=name, expected_checksum=checksum, actual_checksum=actual
                    )
                expected = shape.size() * dtype.num_bytes
                if len(raw) != expected:
                    raise CheckpointCorruption(
                        f"Parameter {name!r} has {len(raw)} bytes but {shape} {dtype} needs {expected}",
                        entry=name
                    )
                array = manager.create(shape, dtype)
                arrays[name] = array
                array.set(raw)
        except Exception:
            for array in arrays.values():
                array.close()
            raise
        if offset != len(view):
            for array in arrays.values():
                array.close()
            raise CheckpointCorruption(f"{len(view) - offset} trailing bytes after last parameter")
        return arrays


def compute_checksum(data: bytes) -> int:
    """64-bit BLAKE2b digest of ``data``."""
    return int(hashlib.blake2b(data, digest_size=8).hexdigest(), 16)


def _compress(raw: bytes, compression: CompressionType) -> bytes:
    if compression == CompressionType.LZ4:
        return lz4.frame.compress(raw, compression_level=1)
    return raw


def _decompress(payload: bytes, compression: CompressionType, name: str) -> bytes:
    if compression == CompressionType.LZ4:
        try:
            return lz4.frame.decompress(payload)
        except RuntimeError as e:
            raise CheckpointCorruption(f"Cannot decompress parameter {name!r}: {e}", entry=name) from e
    return payload


def _read_entry(view: memoryview, offset: int) -> Tuple[str, DataType, Shape, int, bytes, int]:
    try:
        (name_len,) = _NAME_LEN.unpack_from(view, offset)
        offset += _NAME_LEN.size
        name = _take(view, offset, name_len).decode('utf-8')
        offset += name_len

        (label_len,) = _SMALL_LEN.unpack_from(view, offset)
        offset += _SMALL_LEN.size
        label = _take(view, offset, label_len).decode('ascii')
        offset += label_len

        (ndim,) = _SMALL_LEN.unpack_from(view, offset)
        offset += _SMALL_LEN.size
        dims = []
        for _ in range(ndim):
            (dim,) = _DIM.unpack_from(view, offset)
            dims.append(dim)
            offset += _DIM.size

        checksum, payload_len = _PAYLOAD_INFO.unpack_from(view, offset)
        offset += _PAYLOAD_INFO.size
        payload = _take(view, offset, payload_len)
        offset += payload_len
    except (struct.error, UnicodeDecodeError) as e:
        raise CheckpointCorruption(f"Truncated or malformed parameter entry: {e}") from e

    try:
        dtype = DataType.of(label)
    except InvalidArgumentError as e:
        raise CheckpointCorruption(f"Unknown data type {label!r} for parameter {name!r}", entry=name) from e
    return name, dtype, Shape(*dims), checksum, payload, offset


def _take(view: memoryview, offset: int, length: int) -> bytes:
    if offset + length > len(view):
        raise CheckpointCorruption(f"Entry needs {length} bytes at offset {offset}, file has {len(view)}")
    return bytes(view[offset:offset + length])
