"""
pcmx.plot

Waveform views: a terminal step chart for the shell and a PNG snapshot.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
from PIL import Image, ImageDraw

__all__ = ["render_text_chart", "save_waveform_png"]


def _view(samples: Sequence[int], x_min: float, x_max: float) -> tuple[np.ndarray, int]:
    data = np.asarray(samples)
    lo = max(0, int(np.floor(x_min)))
    hi = min(data.size, int(np.ceil(x_max)))
    if hi <= lo:
        return np.zeros(0, dtype=np.int64), lo
    return data[lo:hi].astype(np.int64), lo


def render_text_chart(
    samples: Sequence[int],
    *,
    x_min: float = 0.0,
    x_max: float = 128.0,
    width: int = 100,
    height: int = 16,
    y_range: Optional[tuple[int, int]] = None,
    title: str = "",
) -> str:
    """
    Render samples in ``[x_min, x_max)`` as a step chart of ``width`` x ``height`` cells.

    Each column covers an equal slice of the x-range and is filled between the
    slice's minimum and maximum, so steps and spikes both stay visible.
    """
    width = max(8, int(width))
    height = max(4, int(height))
    view, lo = _view(samples, x_min, x_max)
    grid = np.full((height, width), " ", dtype="<U1")

    if view.size:
        if y_range is None:
            y_lo, y_hi = int(view.min()), int(view.max())
        else:
            y_lo, y_hi = int(y_range[0]), int(y_range[1])
        if y_hi == y_lo:
            y_hi = y_lo + 1

        span = max(1e-9, float(x_max) - float(x_min))
        xs = lo + np.arange(view.size, dtype=np.float64)
        cols = np.clip(((xs - float(x_min)) / span * width).astype(np.int64), 0, width - 1)
        rows = np.clip(
            np.round((y_hi - np.clip(view, y_lo, y_hi)) / float(y_hi - y_lo) * (height - 1)).astype(np.int64),
            0,
            height - 1,
        )
        prev_row = None
        for c in range(width):
            hit = rows[cols == c]
            if hit.size == 0:
                if prev_row is not None:
                    grid[prev_row, c] = "_"
                continue
            top, bottom = int(hit.min()), int(hit.max())
            if prev_row is not None:
                top, bottom = min(top, prev_row), max(bottom, prev_row)
            grid[top:bottom + 1, c] = "|"
            prev_row = int(hit[-1])
    else:
        y_lo, y_hi = 0, 0

    label_hi = f"{y_hi:>7d} "
    label_lo = f"{y_lo:>7d} "
    pad = " " * len(label_hi)
    lines = []
    if title:
        lines.append(title)
    for r in range(height):
        prefix = label_hi if r == 0 else label_lo if r == height - 1 else pad
        lines.append(prefix + "".join(grid[r]))
    axis = f"{float(x_min):g}"
    right = f"{float(x_max):g}"
    lines.append(pad + axis + " " * max(1, width - len(axis) - len(right)) + right)
    return "\n".join(lines)


def save_waveform_png(
    path: str,
    samples: Sequence[int],
    *,
    width: int = 1200,
    height: int = 300,
    x_min: float = 0.0,
    x_max: Optional[float] = None,
) -> None:
    """Draw the int16 waveform as a polyline on a white RGB image."""
    data = np.asarray(samples)
    if x_max is None:
        x_max = float(data.size)
    view, lo = _view(data, x_min, x_max)
    img = Image.new("RGB", (int(width), int(height)), (255, 255, 255))
    draw = ImageDraw.Draw(img)
    mid = (int(height) - 1) / 2.0
    draw.line([(0, mid), (int(width) - 1, mid)], fill=(200, 200, 200))
    if view.size:
        span = max(1e-9, float(x_max) - float(x_min))
        xs = (lo + np.arange(view.size) - float(x_min)) / span * (int(width) - 1)
        ys = mid - view.astype(np.float64) / 32768.0 * mid
        points = list(zip(xs.tolist(), ys.tolist()))
        if len(points) == 1:
            points.append(points[0])
        draw.line(points, fill=(0, 90, 160))
    img.save(path, format="PNG")
