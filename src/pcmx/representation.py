"""
pcmx.representation

Bit-level interpretations of a single raw byte.

All arithmetic here wraps at 16 bits; nothing is clamped.
"""

from __future__ import annotations

import numpy as np

from .config import DecodeConfig, Representation, SignBit
from .fixed import as_i8, wrap16

__all__ = ["decode_one", "decode_table", "fold_custom"]


def fold_custom(byte: int, *, flip: int, mirror: int) -> int:
    """
    Mirror-fold then flip-fold a byte, all in 8-bit wraparound arithmetic.

    The mirror step is arithmetically a no-op.
    """
    b = int(byte) & 0xFF
    m = int(mirror) & 0xFF
    f = int(flip) & 0xFF
    if b > m:
        b = (m + ((b - m) & 0xFF)) & 0xFF
    if b < f:
        b = (f - b) & 0xFF
    return b


def _ones_complement(b: int) -> int:
    if b < 0x80:
        return b
    return -(~b & 0xFF)


def _signed_magnitude(b: int, sign_bit: SignBit) -> int:
    if sign_bit is SignBit.MSB:
        negative = bool(b & 0x80)
        magnitude = b & 0x7F
    else:
        negative = bool(b & 0x01)
        magnitude = (b & 0xFE) >> 1
    return -magnitude if negative else magnitude


def decode_one(byte: int, config: DecodeConfig) -> int:
    """Map one raw byte to a signed 16-bit amplitude under ``config.representation``."""
    b = int(byte) & 0xFF
    rep = config.representation
    if rep is Representation.TWOS_COMPLEMENT:
        return as_i8(b)
    if rep is Representation.ONES_COMPLEMENT:
        return _ones_complement(b)
    if rep is Representation.SIGNED_MAGNITUDE:
        return _signed_magnitude(b, config.sign_bit)
    if rep is Representation.EXCESS_K:
        return wrap16(b - int(config.bias))
    if rep is Representation.CUSTOM:
        folded = fold_custom(b, flip=config.flip, mirror=config.mirror)
        return wrap16(as_i8(folded) - int(config.offset))
    raise ValueError(f"unhandled representation: {rep!r}")


def decode_table(config: DecodeConfig) -> np.ndarray:
    """
    Lookup table of decode_one over all 256 byte values.

    Whole windows are decoded as ``decode_table(cfg)[raw]``.
    """
    return np.array([decode_one(b, config) for b in range(256)], dtype=np.int16)
