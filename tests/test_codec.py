import struct

import numpy as np
import pytest

from ndarena import CompressionType, DataType, NDManager, Shape
from ndarena.codecs import MAGIC, ParameterCodec, compute_checksum
from ndarena.exceptions import CheckpointCorruption


class TestParameterCodec:
    def setup_method(self):
        self.manager = NDManager.new_base_manager()
        self.parameters = {
            'conv0_weight': self.manager.create_from(np.arange(12, dtype=np.float32).reshape(3, 4)),
            'conv0_bias': self.manager.create_from(np.array([1, -1], dtype=np.int64)),
            'mask': self.manager.create_from([True, False, True]),
            'scale': self.manager.create_from(np.float64(0.5)),
        }

    def teardown_method(self):
        self.manager.close()

    @pytest.mark.parametrize("compression", [CompressionType.NONE, CompressionType.LZ4])
    def test_encode_decode(self, compression):
        data = ParameterCodec().encode(self.parameters, compression)
        assert data[:4] == MAGIC

        target = self.manager.new_sub_manager()
        decoded = ParameterCodec().decode(data, target)

        assert list(decoded) == list(self.parameters)
        for name, original in self.parameters.items():
            restored = decoded[name]
            assert restored.manager is target
            assert restored.shape == original.shape
            assert restored.dtype is original.dtype
            assert restored.to_bytes() == original.to_bytes()

    def test_default_compression_from_constructor(self):
        codec = ParameterCodec(CompressionType.NONE)
        data = codec.encode(self.parameters)
        _, _, compression_id, count = struct.unpack_from('<4sHBI', data)
        assert compression_id == CompressionType.NONE
        assert count == 4

    def test_compression_shrinks_repetitive_data(self):
        zeros = {'zeros': self.manager.zeros(Shape(1024), DataType.FLOAT64)}
        plain = ParameterCodec().encode(zeros, CompressionType.NONE)
        packed = ParameterCodec().encode(zeros, CompressionType.LZ4)
        assert len(packed) < len(plain)

    def test_empty_mapping(self):
        data = ParameterCodec().encode({})
        assert ParameterCodec().decode(data, self.manager) == {}

    def test_bad_magic(self):
        data = bytearray(ParameterCodec().encode(self.parameters))
        data[:4] = b"XXXX"
        with pytest.raises(CheckpointCorruption, match="Bad magic"):
            ParameterCodec().decode(bytes(data), self.manager)

    def test_truncated_data(self):
        data = ParameterCodec().encode(self.parameters, CompressionType.NONE)
        target = self.manager.new_sub_manager()
        with pytest.raises(CheckpointCorruption):
            ParameterCodec().decode(data[:-5], target)
        assert target.arrays == []

    def test_truncated_header(self):
        with pytest.raises(CheckpointCorruption, match="Truncated parameter header"):
            ParameterCodec().decode(b"ND", self.manager)

    def test_checksum_mismatch(self):
        data = bytearray(ParameterCodec().encode({'w': self.parameters['conv0_weight']}, CompressionType.NONE))
        data[-1] ^= 0xFF
        target = self.manager.new_sub_manager()
        with pytest.raises(CheckpointCorruption, match="Checksum mismatch") as exc_info:
            ParameterCodec().decode(bytes(data), target)
        assert exc_info.value.entry == 'w'
        assert exc_info.value.expected_checksum != exc_info.value.actual_checksum
        assert target.arrays == []

    def test_trailing_bytes(self):
        data = ParameterCodec().encode(self.parameters) + b"\x00"
        target = self.manager.new_sub_manager()
        with pytest.raises(CheckpointCorruption, match="trailing bytes"):
            ParameterCodec().decode(data, target)
        assert target.arrays == []

    def test_checksum_is_stable(self):
        assert compute_checksum(b"abc") == compute_checksum(b"abc")
        assert compute_checksum(b"abc") != compute_checksum(b"abd")
        assert compute_checksum(b"abc") < 2 ** 64


def _pack_file(*entries):
    """Hand-assemble an uncompressed parameter file from (name, label, dims, raw) tuples."""
    chunks = [struct.pack('<4sHBI', MAGIC, 1, CompressionType.NONE, len(entries))]
    for name, label, dims, raw in entries:
        chunks.append(struct.pack('<H', len(name)) + name.encode())
        chunks.append(struct.pack('<B', len(label)) + label.encode())
        chunks.append(struct.pack('<B', len(dims)) + b''.join(struct.pack('<Q', d) for d in dims))
        chunks.append(struct.pack('<QQ', compute_checksum(raw), len(raw)) + raw)
    return b''.join(chunks)


class TestMalformedEntries:
    def setup_method(self):
        self.manager = NDManager.new_base_manager()

    def teardown_method(self):
        self.manager.close()

    def test_hand_built_file_decodes(self):
        raw = np.array([1.0, 2.0, 3.0], dtype=np.float32).tobytes()
        decoded = ParameterCodec().decode(_pack_file(('w', 'float32', [3], raw)), self.manager)
        assert decoded['w'].to_list() == [1.0, 2.0, 3.0]

    def test_oversized_dims(self):
        raw = bytes(12)
        with pytest.raises(CheckpointCorruption, match="needs") as exc_info:
            ParameterCodec().decode(_pack_file(('w', 'float32', [2 ** 40, 2 ** 20], raw)), self.manager)
        assert exc_info.value.entry == 'w'
        assert self.manager.arrays == []

    def test_payload_shorter_than_dims(self):
        raw = bytes(12)
        with pytest.raises(CheckpointCorruption, match="has 12 bytes but \\(4\\) float32 needs 16") as exc_info:
            ParameterCodec().decode(_pack_file(('w', 'float32', [4], raw)), self.manager)
        assert exc_info.value.entry == 'w'
        assert self.manager.arrays == []

    def test_payload_mismatch_after_valid_entry_releases_it(self):
        good = np.zeros(2, dtype=np.int32).tobytes()
        data = _pack_file(('a', 'int32', [2], good), ('b', 'int64', [3], bytes(8)))
        with pytest.raises(CheckpointCorruption):
            ParameterCodec().decode(data, self.manager)
        assert self.manager.arrays == []

    def test_duplicate_names(self):
        raw = np.zeros(2, dtype=np.float32).tobytes()
        data = _pack_file(('w', 'float32', [2], raw), ('w', 'float32', [2], raw))
        with pytest.raises(CheckpointCorruption, match="Duplicate parameter 'w'") as exc_info:
            ParameterCodec().decode(data, self.manager)
        assert exc_info.value.entry == 'w'
        assert self.manager.arrays == []
