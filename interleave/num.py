"""Numeric-like values stored as 64-bit unsigned integers."""

from __future__ import annotations

import operator
from enum import Enum

_U64_MASK = (1 << 64) - 1


class NumericKind(Enum):
    """A numeric-like value type whose values are stored as a u64."""

    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    USIZE = "usize"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    ISIZE = "isize"
    PTR = "ptr"
    BOOL = "bool"

    def _range(self) -> tuple[int, int]:
        bits, signed = _LAYOUT[self]
        if signed:
            half = 1 << (bits - 1)
            return -half, half - 1
        return 0, (1 << bits) - 1

    def into_u64(self, value) -> int:
        """Convert a value of this kind into its u64 representation."""
        if self is NumericKind.BOOL:
            return 1 if value else 0
        number = operator.index(value)
        low, high = self._range()
        if not low <= number <= high:
            raise ValueError(f"{number} is out of range for {self.value}")
        return number & _U64_MASK

    def from_u64(self, src):
        """Convert a u64 representation back into a value of this kind."""
        raw = operator.index(src)
        if not 0 <= raw <= _U64_MASK:
            raise ValueError(f"{raw} is not a u64 value")
        if self is NumericKind.BOOL:
            return raw != 0
        bits, signed = _LAYOUT[self]
        truncated = raw & ((1 << bits) - 1)
        if signed and truncated >= 1 << (bits - 1):
            truncated -= 1 << bits
        return truncated


_LAYOUT = {
    NumericKind.U8: (8, False),
    NumericKind.U16: (16, False),
    NumericKind.U32: (32, False),
    NumericKind.U64: (64, False),
    NumericKind.USIZE: (64, False),
    NumericKind.I8: (8, True),
    NumericKind.I16: (16, True),
    NumericKind.I32: (32, True),
    NumericKind.I64: (64, True),
    NumericKind.ISIZE: (64, True),
    NumericKind.PTR: (64, False),
    NumericKind.BOOL: (1, False),
}