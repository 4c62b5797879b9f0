import math

import numpy as np
import pytest

from ndarena import NDManager, DataType, Shape, format_array
from ndarena.formatting import FloatFormat, IntFormat


class TestFormatArray:
    def setup_method(self):
        self.manager = NDManager.new_base_manager()

    def teardown_method(self):
        self.manager.close()

    def test_uint8_format(self):
        array = self.manager.create(Shape(3), DataType.UINT8)
        array.set(np.array([127, 128, 1], dtype=np.uint8))
        assert format_array(array) == "ND: (3) cpu(0) uint8\n[0x7F, 0x80, 0x01]\n"

    def test_int8_format(self):
        array = self.manager.create_from(np.array([127, -128, 1], dtype=np.int8))
        assert format_array(array) == "ND: (3) cpu(0) int8\n[ 127, -128,    1]\n"

    def test_int32_format(self):
        array = self.manager.create_from(np.array([1, -256, 1000], dtype=np.int32))
        assert format_array(array) == "ND: (3) cpu(0) int32\n[   1, -256, 1000]\n"

    def test_int32_large_values_use_scientific(self):
        info = np.iinfo(np.int32)
        array = self.manager.create_from(np.array([info.max, info.min, 1], dtype=np.int32))
        assert format_array(array) == (
            "ND: (3) cpu(0) int32\n"
            "[ 2.14748365e+09, -2.14748365e+09,  1.00000000e+00]\n"
        )

    def test_int64_large_values_use_scientific(self):
        info = np.iinfo(np.int64)
        array = self.manager.create_from(np.array([info.max, info.min, 1], dtype=np.int64))
        assert format_array(array) == (
            "ND: (3) cpu(0) int64\n"
            "[ 9.22337204e+18, -9.22337204e+18,  1.00000000e+00]\n"
        )

    def test_float64_extremes(self):
        data = np.array([-math.inf, np.finfo(np.float64).max, math.nan, -1.0])
        array = self.manager.create_from(data)
        assert format_array(array) == (
            "ND: (4) cpu(0) float64\n"
            "[       -inf,  1.79769313e+308,         nan, -1.00000000e+00]\n"
        )

    def test_float64_non_finite_width(self):
        array = self.manager.create_from(np.array([-math.inf, math.nan, -1.0]))
        assert format_array(array) == "ND: (3) cpu(0) float64\n[-inf,  nan,  -1.]\n"

    def test_float64_column(self):
        array = self.manager.create_from(np.array([123.0, 0.123, -math.inf]), shape=Shape(3, 1))
        assert format_array(array) == (
            "ND: (3, 1) cpu(0) float64\n"
            "[[123.   ],\n"
            " [  0.123],\n"
            " [   -inf],\n"
            "]\n"
        )

    def test_float64_fraction_with_infinity(self):
        array = self.manager.create_from(np.array([0.123, -math.inf]))
        assert format_array(array) == "ND: (2) cpu(0) float64\n[0.123,  -inf]\n"

    def test_float64_whole_numbers(self):
        array = self.manager.create_from(np.array([1.0, 2.0, 100.0]))
        assert format_array(array) == "ND: (3) cpu(0) float64\n[  1.,   2., 100.]\n"

    def test_boolean_format(self):
        array = self.manager.create_from([True, False])
        assert format_array(array) == "ND: (2) cpu(0) boolean\n[ true, false]\n"

    def test_scalar_format(self):
        array = self.manager.create_from(np.int32(7))
        assert format_array(array) == "ND: () cpu(0) int32\n7\n"

    def test_nested_matrix(self):
        array = self.manager.create_from(np.arange(6, dtype=np.int32).reshape(2, 3))
        assert format_array(array) == (
            "ND: (2, 3) cpu(0) int32\n"
            "[[0, 1, 2],\n"
            " [3, 4, 5],\n"
            "]\n"
        )

    def test_three_dimensions_indent_by_level(self):
        array = self.manager.create_from(np.arange(4, dtype=np.int64).reshape(2, 1, 2))
        assert format_array(array) == (
            "ND: (2, 1, 2) cpu(0) int64\n"
            "[[[0, 1],\n"
            " ],\n"
            " [[2, 3],\n"
            " ],\n"
            "]\n"
        )

    def test_str_uses_formatter(self):
        array = self.manager.create_from(np.array([1, 2], dtype=np.int32))
        assert str(array) == format_array(array)


class TestFloatFormat:
    def test_small_values_switch_to_scientific(self):
        fmt = FloatFormat([0.00001, 1.0])
        assert fmt.exponential
        assert fmt.format(0.00001) == " 1.00000000e-05"

    def test_ratio_boundary_stays_fixed(self):
        fmt = FloatFormat([123.0, 0.123])
        assert not fmt.exponential

    def test_trailing_zeros_become_spaces(self):
        fmt = FloatFormat([1.5, 2.25])
        assert fmt.format(1.5) == "1.5 "
        assert fmt.format(2.25) == "2.25"

    @pytest.mark.parametrize("values", [[], [0.0], [math.nan]])
    def test_degenerate_inputs(self, values):
        fmt = FloatFormat(values)
        assert not fmt.exponential


class TestIntFormat:
    def test_width_from_widest_element(self):
        fmt = IntFormat([5, -12, 300])
        assert fmt.total_length == 3
        assert fmt.format(5) == "  5"

    def test_threshold_is_inclusive(self):
        assert IntFormat([100_000_000]).exponential
        assert not IntFormat([99_999_999]).exponential
