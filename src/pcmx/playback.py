"""
pcmx.playback

Real-time playback of a decoded buffer on the default output device.

The device pulls frames through a callback running on the audio thread. Each
decoded sample is held for ``upsample`` output frames (zero-order hold) and
copied to every device channel. When the callback first runs past the end of
the window it meets the controlling thread at a two-party barrier; ``play``
does not return before that.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import numpy as np

__all__ = [
    "DECODE_RATE",
    "DeviceError",
    "OutputDevice",
    "PlaybackScheduler",
    "clamp_window",
    "default_output_device",
]

logger = logging.getLogger(__name__)

DECODE_RATE = 16000


class DeviceError(RuntimeError):
    """No usable output device, or the output stream could not be built."""


@dataclass(frozen=True)
class OutputDevice:
    name: str
    channels: int
    sample_rate: int
    index: Optional[int] = None


def default_output_device() -> OutputDevice:
    """Query the default output device once; raises DeviceError if there is none."""
    try:
        import sounddevice
    except (ImportError, OSError) as exc:  # PortAudio shared library missing
        raise DeviceError(f"audio backend unavailable: {exc}") from exc

    try:
        info = sounddevice.query_devices(kind="output")
    except (sounddevice.PortAudioError, ValueError) as exc:
        raise DeviceError(f"no default output device: {exc}") from exc

    channels = int(info["max_output_channels"])
    if channels <= 0:
        raise DeviceError(f"device {info['name']!r} has no output channels")
    device = OutputDevice(
        name=str(info["name"]),
        channels=channels,
        sample_rate=int(round(float(info["default_samplerate"]))),
        index=int(info["index"]) if "index" in info else None,
    )
    logger.info("output device: %s (%d ch @ %d Hz)", device.name, device.channels, device.sample_rate)
    return device


def clamp_window(length: int, start: int = 0, stop: Optional[int] = None) -> Tuple[int, int]:
    n = max(0, int(length))
    lo = min(max(0, int(start)), n)
    hi = n if stop is None else min(max(0, int(stop)), n)
    return lo, max(lo, hi)


@dataclass
class _CallbackState:
    """Owned by one callback closure; never touched by the controlling thread."""

    samples: np.ndarray
    start: int
    stop: int
    upsample: int
    frame: int = 0
    finished: bool = False


class PlaybackScheduler:
    """
    Drive an output device from a decoded int16 buffer.

    ``stream_factory`` is called with sounddevice.OutputStream keyword
    arguments and must return a context manager that starts calling the
    callback on entry. It defaults to sounddevice.OutputStream.
    """

    def __init__(
        self,
        device: OutputDevice,
        *,
        upsample: Optional[int] = None,
        stream_factory: Optional[Callable[..., Any]] = None,
        blocksize: int = 0,
    ) -> None:
        if upsample is None:
            upsample = max(1, int(device.sample_rate) // DECODE_RATE)
        if int(upsample) < 1:
            raise ValueError(f"upsample factor must be >= 1, got {upsample}")
        self.device = device
        self.upsample = int(upsample)
        self.blocksize = int(blocksize)
        self._stream_factory = stream_factory

    def _make_callback(self, state: _CallbackState, barrier: threading.Barrier):
        channels = int(self.device.channels)

        def callback(outdata, frames, time_info, status) -> None:
            if status:
                logger.debug("audio callback status: %s", status)
            frame0 = state.frame
            state.frame += int(frames)
            try:
                idx = state.start + (frame0 + np.arange(int(frames), dtype=np.int64)) // state.upsample
                live = idx < state.stop
                outdata.fill(0)
                if live.any():
                    block = state.samples[idx[live]]
                    outdata[: block.size, :channels] = block[:, None]
            except Exception:
                logger.exception("error in audio callback")
                outdata.fill(0)
            if not state.finished and state.start + state.frame // state.upsample >= state.stop:
                state.finished = True
                try:
                    barrier.wait()
                except threading.BrokenBarrierError:
                    logger.debug("playback abandoned by the controlling thread")

        return callback

    def _open_stream(self, callback):
        factory = self._stream_factory
        if factory is None:
            try:
                import sounddevice
            except (ImportError, OSError) as exc:
                raise DeviceError(f"audio backend unavailable: {exc}") from exc
            factory = sounddevice.OutputStream
        return factory(
            samplerate=int(self.device.sample_rate),
            channels=int(self.device.channels),
            dtype="int16",
            blocksize=self.blocksize,
            device=self.device.index,
            callback=callback,
        )

    def play(self, buffer: np.ndarray, start: int = 0, stop: Optional[int] = None) -> Tuple[int, int]:
        """
        Play ``buffer[start:stop]`` (clamped) and block until it has been consumed.

        Returns the clamped window actually played.
        """
        samples = np.array(buffer, dtype=np.int16, copy=True)
        lo, hi = clamp_window(samples.size, start, stop)
        if lo == hi:
            logger.info("nothing to play in window [%d, %d)", lo, hi)
            return lo, hi

        state = _CallbackState(samples=samples, start=lo, stop=hi, upsample=self.upsample)
        barrier = threading.Barrier(2)
        callback = self._make_callback(state, barrier)

        logger.info(
            "playing samples [%d, %d) at %d Hz (x%d hold)",
            lo,
            hi,
            self.device.sample_rate,
            self.upsample,
        )
        try:
            stream = self._open_stream(callback)
        except DeviceError:
            raise
        except Exception as exc:
            raise DeviceError(f"cannot open output stream: {exc}") from exc

        # Aborting releases a callback still parked at the rendezvous; it has to
        # happen before the stream is closed, which waits for the callback.
        try:
            with stream:
                try:
                    barrier.wait()
                    latency = float(stream.latency or 0.0)
                    if latency > 0.0:
                        time.sleep(latency)
                finally:
                    barrier.abort()
        except threading.BrokenBarrierError as exc:
            raise DeviceError("output stream stopped before playback finished") from exc
        except Exception as exc:
            raise DeviceError(f"output stream failed: {exc}") from exc
        finally:
            barrier.abort()
        logger.info("playback finished")
        return lo, hi
