"""
pcmx.session

Decode session: the current DecodeConfig plus the buffer it produces.

The buffer is always recomputed in full from the raw stream. A rejected edit
(bad config or bad addressing) leaves both config and buffer as they were.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

import numpy as np

from .config import ConfigError, DecodeConfig
from .predict import reconstruct
from .representation import decode_table

__all__ = ["AddressingError", "DecodeSession", "addressed_bytes", "addressed_indices", "decode"]

logger = logging.getLogger(__name__)


class AddressingError(IndexError):
    """The addressed window starts outside the raw stream."""


def addressed_indices(length: int, config: DecodeConfig) -> np.ndarray:
    """
    Stream positions visited by a decode pass.

    The walk starts at ``window_start + start_offset`` and steps by
    ``stride`` while it stays below both ``window_end`` and the stream length.

    Raises AddressingError when ``window_start`` is past the end of the
    stream, and also when ``window_start`` is in bounds but the first
    addressed byte ``window_start + start_offset`` is not. Either way the pass
    would have nothing to read, and an empty buffer is never produced for it.
    """
    n = int(length)
    start = int(config.window_start)
    if start >= n:
        raise AddressingError(f"window start {start} is beyond the input ({n} bytes)")
    first = start + int(config.start_offset)
    if first >= n:
        raise AddressingError(
            f"first addressed byte {first} (window start {start} + offset {config.start_offset}) "
            f"is beyond the input ({n} bytes)"
        )
    end = n if config.window_end is None else min(int(config.window_end), n)
    return np.arange(first, max(first, end), int(config.stride), dtype=np.int64)


def addressed_bytes(raw: bytes, config: DecodeConfig) -> np.ndarray:
    data = np.frombuffer(raw, dtype=np.uint8)
    return data[addressed_indices(data.size, config)]


def decode(raw: bytes, config: DecodeConfig) -> np.ndarray:
    """Decode the addressed window of ``raw`` into a fresh int16 buffer."""
    config.validate()
    picked = addressed_bytes(raw, config)
    values = decode_table(config)[picked]
    out = reconstruct(picked, values, config.compression)
    logger.debug("decoded %d samples (%s)", out.size, config.describe())
    return out


class DecodeSession:
    """
    Owns the raw stream, the active config and the decoded buffer.

    Construction decodes immediately, so an AddressingError there means the
    input cannot be decoded at all.
    """

    def __init__(self, raw: bytes, config: Optional[DecodeConfig] = None) -> None:
        self._raw = bytes(raw)
        cfg = config or DecodeConfig()
        self._buffer = decode(self._raw, cfg)
        self._config = cfg

    @property
    def raw(self) -> bytes:
        return self._raw

    @property
    def config(self) -> DecodeConfig:
        return self._config

    @property
    def buffer(self) -> np.ndarray:
        view = self._buffer.view()
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return int(self._buffer.size)

    def snapshot(self) -> np.ndarray:
        """Independent copy of the current buffer, safe to hand to another thread."""
        return self._buffer.copy()

    def set_config(self, config: DecodeConfig) -> np.ndarray:
        if not isinstance(config, DecodeConfig):
            raise ConfigError(f"expected DecodeConfig, got {type(config).__name__}")
        config.validate()
        buffer = decode(self._raw, config)
        self._config = config
        self._buffer = buffer
        return self.buffer

    def update(self, **changes) -> np.ndarray:
        try:
            config = dataclasses.replace(self._config, **changes)
        except TypeError as exc:
            raise ConfigError(str(exc)) from None
        return self.set_config(config)

    def raw_window(self) -> np.ndarray:
        return addressed_bytes(self._raw, self._config)
