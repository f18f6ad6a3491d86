"""
pcmx.wav

Mono 16-bit PCM WAV output for decoded buffers.
"""

from __future__ import annotations

import wave

import numpy as np

from .playback import DECODE_RATE


def write_wav(path: str, samples: np.ndarray, sample_rate: int = DECODE_RATE) -> None:
    """
    Write an int16 mono PCM WAV file.

    Parameters
    ----------
    path : str
        Output path.
    samples : np.ndarray
        Decoded samples; anything outside int16 is a caller bug.
    sample_rate : int
        Sample rate in Hz.
    """
    audio = np.asarray(samples)
    if audio.ndim != 1:
        raise ValueError(f"expected a 1-D sample buffer, got shape {audio.shape}")
    if int(sample_rate) <= 0:
        raise ValueError(f"sample rate must be positive, got {sample_rate}")
    audio = audio.astype(np.int16, copy=False)
    with wave.open(path, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(int(sample_rate))
        wf.writeframes(audio.astype("<i2", copy=False).tobytes())
