"""
BN254 scalar field elements.

`FieldElement` is the coefficient domain of every circuit and the value type
of every witness slot. Elements are immutable and always held in canonical
form (0 <= value < MODULUS).

Textual form:  "0x"-prefixed hex (odd lengths allowed; values >= MODULUS are
               reduced, as the solving engine does for authored inputs).
Binary form:   32-byte big-endian block; non-canonical blocks are rejected.
"""

from __future__ import annotations

import re
from typing import Union

MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617
FIELD_BYTES = 32
MAX_NUM_BITS = MODULUS.bit_length()

_HEX_PREFIXES = ("0x", "0X")
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")


class FieldElement:
    __slots__ = ("_value",)

    def __init__(self, value: int = 0) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"field element value must be int, got {type(value).__name__}")
        self._value = value % MODULUS

    # ---- constructors -----------------------------------------------------

    @classmethod
    def zero(cls) -> "FieldElement":
        return cls(0)

    @classmethod
    def one(cls) -> "FieldElement":
        return cls(1)

    @classmethod
    def from_hex(cls, text: str) -> "FieldElement":
        """Parse a "0x"-prefixed hex literal. Raises ValueError on anything else."""
        if not isinstance(text, str):
            raise ValueError("hex literal must be a string")
        s = text.strip()
        if not s.startswith(_HEX_PREFIXES):
            raise ValueError(f"missing 0x prefix in {text!r}")
        digits = s[2:]
        if not digits:
            raise ValueError(f"empty hex literal {text!r}")
        if not _HEX_DIGITS.fullmatch(digits):
            raise ValueError(f"invalid hex digits in {text!r}")
        return cls(int(digits, 16))

    @classmethod
    def from_be_bytes(cls, data: bytes) -> "FieldElement":
        """Strict decode of a FIELD_BYTES big-endian block."""
        if len(data) != FIELD_BYTES:
            raise ValueError(f"expected {FIELD_BYTES} bytes, got {len(data)}")
        n = int.from_bytes(data, "big")
        if n >= MODULUS:
            raise ValueError("non-canonical field element (value >= modulus)")
        return cls(n)

    @classmethod
    def from_be_bytes_reduce(cls, data: bytes) -> "FieldElement":
        return cls(int.from_bytes(data, "big"))

    @classmethod
    def coerce(cls, value: Union["FieldElement", int, str]) -> "FieldElement":
        if isinstance(value, FieldElement):
            return value
        if isinstance(value, str):
            return cls.from_hex(value)
        return cls(value)

    # ---- accessors --------------------------------------------------------

    def to_int(self) -> int:
        return self._value

    def to_be_bytes(self) -> bytes:
        return self._value.to_bytes(FIELD_BYTES, "big")

    def to_hex(self) -> str:
        return "0x" + self.to_be_bytes().hex()

    def is_zero(self) -> bool:
        return self._value == 0

    def is_one(self) -> bool:
        return self._value == 1

    def num_bits(self) -> int:
        return self._value.bit_length()

    # ---- arithmetic -------------------------------------------------------

    def inverse(self) -> "FieldElement":
        if self._value == 0:
            raise ZeroDivisionError("zero has no inverse in the field")
        return FieldElement(pow(self._value, MODULUS - 2, MODULUS))

    def __add__(self, other: object) -> "FieldElement":
        o = _as_fe(other)
        if o is None:
            return NotImplemented
        return FieldElement(self._value + o._value)

    __radd__ = __add__

    def __sub__(self, other: object) -> "FieldElement":
        o = _as_fe(other)
        if o is None:
            return NotImplemented
        return FieldElement(self._value - o._value)

    def __rsub__(self, other: object) -> "FieldElement":
        o = _as_fe(other)
        if o is None:
            return NotImplemented
        return FieldElement(o._value - self._value)

    def __mul__(self, other: object) -> "FieldElement":
        o = _as_fe(other)
        if o is None:
            return NotImplemented
        return FieldElement(self._value * o._value)

    __rmul__ = __mul__

    def __truediv__(self, other: object) -> "FieldElement":
        o = _as_fe(other)
        if o is None:
            return NotImplemented
        return self * o.inverse()

    def __neg__(self) -> "FieldElement":
        return FieldElement(-self._value)

    # ---- dunder -----------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldElement):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("FieldElement", self._value))

    def __lt__(self, other: "FieldElement") -> bool:
        return self._value < other._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __int__(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"FieldElement({self.to_hex()})"


def _as_fe(other: object) -> FieldElement | None:
    if isinstance(other, FieldElement):
        return other
    if isinstance(other, int) and not isinstance(other, bool):
        return FieldElement(other)
    return None


__all__ = ["FieldElement", "MODULUS", "FIELD_BYTES", "MAX_NUM_BITS"]
