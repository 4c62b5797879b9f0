"""
Text rendering of arrays for diagnostics.

The output is a header line ``ND: <shape> <context> <dtype>`` followed by a
row-major nested bracket rendering. All elements of one array share a
column width, and the notation (hex, decimal, fixed-point or scientific) is
chosen once per array from its values.
"""

from __future__ import annotations
import math
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Sequence

from .types.datatype import DataType

if TYPE_CHECKING:
    from .core.ndarray import NDArray

PRECISION = 8
LF = "\n"

_EXPONENT_PATTERN = re.compile(r"\s*\d\.(\d*?)0*e[+-](\d+)")


class NDFormat(ABC):
    """Per-array formatting rule for single elements."""

    @abstractmethod
    def format(self, value) -> str: ...

    def dump(self, array: NDArray, values: Sequence) -> str:
        header = f"ND: {str(array.shape)} {str(array.context)} {str(array.dtype)}"
        parts: List[str] = [header, LF]
        shape = array.shape.dims
        if not shape:
            parts.append(self.format(values[0]))
        else:
            self._dump(parts, values, shape, 0, 0)
        parts.append(LF)
        return ''.join(parts)

    def _dump(self, parts: List[str], values: Sequence, shape, level: int, offset: int) -> None:
        parts.append('[')
        length = shape[level]
        if level == len(shape) - 1:
            parts.append(', '.join(self.format(values[offset + i]) for i in range(length)))
        else:
            stride = 1
            for dim in shape[level + 1:]:
                stride *= dim
            for i in range(length):
                if i > 0:
                    parts.append(' ' * (level + 1))
                self._dump(parts, values, shape, level + 1, offset + i * stride)
                parts.append(',' + LF)
            parts.append(' ' * level)
        parts.append(']')


class HexFormat(NDFormat):
    def format(self, value) -> str:
        return f"0x{int(value) & 0xFF:02X}"


class BooleanFormat(NDFormat):
    def format(self, value) -> str:
        return " true" if value else "false"


class IntFormat(NDFormat):
    """Decimal integers, or scientific once any magnitude reaches 1e8."""

    def __init__(self, values: Sequence[int]):
        largest = max((abs(v) for v in values), default=0)
        self.exponential = largest >= 1e8
        if self.exponential:
            self.total_length = 0
        else:
            self.total_length = max((len(str(v)) for v in values), default=1)

    def format(self, value) -> str:
        if self.exponential:
            return f"% .{PRECISION}e" % float(value)
        return f"{int(value):>{self.total_length}d}"


class FloatFormat(NDFormat):
    """Fixed-point or scientific notation chosen from the value range."""

    def __init__(self, values: Sequence[float]):
        max_int_part = 0
        max_fraction = 0
        exp_fraction = 0
        sign = False
        largest = 0.0
        smallest = math.inf
        self.total_length = 0

        for v in values:
            if v < 0:
                sign = True
            if not math.isfinite(v):
                self.total_length = max(self.total_length, 4 if v < 0 else 3)
                continue

            magnitude = abs(v)
            match = _EXPONENT_PATTERN.fullmatch("%16e" % magnitude)
            fraction = len(match.group(1))
            exp_fraction = max(exp_fraction, fraction)

            if magnitude >= 1:
                int_part = int(math.log10(magnitude)) + 1
                if v < 0:
                    int_part += 1
                max_int_part = max(max_int_part, int_part)
                max_fraction = max(max_fraction, fraction + 1 - int_part)
            else:
                max_int_part = max(max_int_part, 2 if v < 0 else 1)
                max_fraction = max(max_fraction, fraction + int(match.group(2)))

            largest = max(largest, magnitude)
            if 0 < magnitude < smallest:
                smallest = magnitude

        ratio = largest / smallest
        self.exponential = largest > 1e8 or smallest < 1e-4 or ratio > 1000.
        if self.exponential:
            self.precision = min(PRECISION, exp_fraction)
            self.total_length = self.precision + 4 + (1 if sign else 0)
        else:
            self.precision = min(4, max_fraction)
            self.total_length = max(self.total_length, max_int_part + self.precision + 1)

    def format(self, value) -> str:
        d = float(value)
        if math.isnan(d):
            return f"{'nan':>{self.total_length}}"
        if math.isinf(d):
            return f"{'inf' if d > 0 else '-inf':>{self.total_length}}"
        if self.exponential:
            return f"% .{PRECISION}e" % d
        if self.precision == 0:
            return "%*.0f." % (self.total_length - 1, d)

        text = "%*.*f" % (self.total_length, self.precision, d)
        trimmed = text.rstrip('0')
        return trimmed + ' ' * (len(text) - len(trimmed))


def format_array(array: NDArray) -> str:
    """Render ``array`` as a header line plus nested, aligned brackets."""
    values = array.to_list()
    dtype = array.dtype
    if dtype is DataType.UINT8:
        fmt: NDFormat = HexFormat()
    elif dtype is DataType.BOOLEAN:
        fmt = BooleanFormat()
    elif dtype.is_integer():
        fmt = IntFormat(values)
    else:
        fmt = FloatFormat(values)
    return fmt.dump(array, values)
