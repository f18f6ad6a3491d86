"""
pcmx

Find the encoding of raw 8-bit PCM-derived audio dumps by trial and listening.

The package keeps a hard separation between:
- per-byte bit representations (pcmx.representation)
- predictive reconstruction (pcmx.predict)
- the decode session that ties them to an addressed window (pcmx.session)
- real-time playback (pcmx.playback)
- the shell, plot and WAV collaborators around them
"""

from __future__ import annotations

__all__ = [
    "__version__",
    "AddressingError",
    "Compression",
    "ConfigError",
    "DecodeConfig",
    "DecodeSession",
    "DeviceError",
    "OutputDevice",
    "PlaybackScheduler",
    "PredictiveReconstructor",
    "Representation",
    "SignBit",
    "decode",
    "decode_one",
    "default_output_device",
    "write_wav",
]

__version__ = "0.1.0"


from .config import Compression, ConfigError, DecodeConfig, Representation, SignBit  # noqa: E402
from .playback import DeviceError, OutputDevice, PlaybackScheduler, default_output_device  # noqa: E402
from .predict import PredictiveReconstructor  # noqa: E402
from .representation import decode_one  # noqa: E402
from .session import AddressingError, DecodeSession, decode  # noqa: E402
from .wav import write_wav  # noqa: E402
