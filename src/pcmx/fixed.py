"""
pcmx.fixed

Fixed-width integer helpers.

Byte-level decoding wraps at 16 bits; prediction clamps every step to the
int16 range.
"""

from __future__ import annotations

I16_MIN = -32768
I16_MAX = 32767


def as_i8(value: int) -> int:
    v = int(value) & 0xFF
    return v - 0x100 if v & 0x80 else v


def wrap16(value: int) -> int:
    return ((int(value) + 0x8000) & 0xFFFF) - 0x8000


def sat16(value: int) -> int:
    v = int(value)
    if v > I16_MAX:
        return I16_MAX
    if v < I16_MIN:
        return I16_MIN
    return v


def sat_add(a: int, b: int) -> int:
    return sat16(int(a) + int(b))


def sat_sub(a: int, b: int) -> int:
    return sat16(int(a) - int(b))


def sat_mul(a: int, b: int) -> int:
    return sat16(int(a) * int(b))
