"""
pcmx.predict

Predictive (DPCM-family) reconstruction of decoded residuals.

Prediction runs in saturating int16 arithmetic, one operation at a time.
"""

from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .config import Compression
from .fixed import sat_add, sat_mul, sat_sub, wrap16

__all__ = ["HISTORY_LEN", "PredictiveReconstructor", "reconstruct"]

HISTORY_LEN = 3


class PredictiveReconstructor:
    """
    Stateful reconstructor for one decode pass.

    ``history`` holds the last three reconstructed samples, newest first, and
    starts at zero. ``push`` takes the raw byte as well as its decoded value
    because the nonlinear modes read sign and reset flags from the raw bits.
    """

    def __init__(self, compression: Compression = Compression.NONE) -> None:
        self.compression = compression
        self._hist = [0] * HISTORY_LEN

    @property
    def history(self) -> Tuple[int, ...]:
        return tuple(self._hist)

    def reset(self) -> None:
        self._hist = [0] * HISTORY_LEN

    def _predict(self, raw: int, value: int) -> int:
        mode = self.compression
        h1, h2, h3 = self._hist
        if mode is Compression.NONE:
            return wrap16(value * 256)
        if mode is Compression.ORDER1:
            return sat_add(h1, value)
        if mode is Compression.ORDER2:
            return sat_add(sat_sub(sat_mul(h1, 2), h2), value)
        if mode is Compression.ORDER3:
            acc = sat_sub(sat_mul(h1, 3), sat_mul(h2, 3))
            return sat_add(sat_add(acc, h3), value)
        if mode is Compression.SQUARED_DELTA:
            magnitude = raw & 0x7F
            delta = sat_mul(magnitude, magnitude)
            return sat_sub(h1, delta) if raw & 0x80 else sat_add(h1, delta)
        if mode is Compression.TOGGLE_SIGN:
            if not raw & 0x01:
                self.reset()
                h1 = 0
            delta = sat_mul(sat_mul(value, value), 2)
            return sat_add(h1, delta) if value >= 0 else sat_sub(h1, delta)
        raise ValueError(f"unhandled compression: {mode!r}")

    def push(self, raw: int, value: int) -> int:
        sample = self._predict(int(raw) & 0xFF, int(value))
        self._hist = [sample] + self._hist[: HISTORY_LEN - 1]
        return sample


def reconstruct(raw: Iterable[int], values: Iterable[int], compression: Compression) -> np.ndarray:
    """Run a full reconstruction pass from a zeroed history."""
    raw_arr = np.asarray(raw, dtype=np.uint8)
    val_arr = np.asarray(values, dtype=np.int16)
    if raw_arr.shape != val_arr.shape:
        raise ValueError("raw bytes and decoded values must have the same length")

    if compression is Compression.NONE:
        # Same as pushing each value; the history is never read in this mode.
        return (val_arr.astype(np.int32) * 256).astype(np.int16)

    rec = PredictiveReconstructor(compression)
    out = np.empty(val_arr.size, dtype=np.int16)
    for i, (b, v) in enumerate(zip(raw_arr.tolist(), val_arr.tolist())):
        out[i] = rec.push(b, v)
    return out
