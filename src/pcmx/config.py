"""Decode configuration and the text parsers the shell and CLI share."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class ConfigError(ValueError):
    """Rejected configuration input. The previous config stays in effect."""


class Representation(enum.Enum):
    TWOS_COMPLEMENT = "twos"
    ONES_COMPLEMENT = "ones"
    SIGNED_MAGNITUDE = "signmag"
    EXCESS_K = "excess"
    CUSTOM = "custom"


class SignBit(enum.Enum):
    LSB = "lsb"
    MSB = "msb"


class Compression(enum.Enum):
    NONE = "none"
    ORDER1 = "order1"
    ORDER2 = "order2"
    ORDER3 = "order3"
    SQUARED_DELTA = "squared"
    TOGGLE_SIGN = "toggle"


_REPR_ALIASES = {
    "2c": Representation.TWOS_COMPLEMENT,
    "twos-complement": Representation.TWOS_COMPLEMENT,
    "1c": Representation.ONES_COMPLEMENT,
    "ones-complement": Representation.ONES_COMPLEMENT,
    "sm": Representation.SIGNED_MAGNITUDE,
    "signed-magnitude": Representation.SIGNED_MAGNITUDE,
    "excess-k": Representation.EXCESS_K,
    "k": Representation.EXCESS_K,
}

_COMPRESSION_ALIASES = {
    "0": Compression.NONE,
    "1": Compression.ORDER1,
    "2": Compression.ORDER2,
    "3": Compression.ORDER3,
    "dpcm": Compression.ORDER1,
    "squared-delta": Compression.SQUARED_DELTA,
    "toggle-sign": Compression.TOGGLE_SIGN,
}

# bias/offset are applied with 16-bit wraparound, so accept either signedness.
OFFSET_MIN = -32768
OFFSET_MAX = 65535


@dataclass(frozen=True)
class DecodeConfig:
    """
    Everything that determines the decoded buffer.

    Instances are never mutated; edits go through dataclasses.replace and are
    validated before a session accepts them.
    """

    representation: Representation = Representation.TWOS_COMPLEMENT
    sign_bit: SignBit = SignBit.MSB
    bias: int = 0
    offset: int = 0
    flip: int = 0
    mirror: int = 0
    compression: Compression = Compression.NONE
    start_offset: int = 0
    stride: int = 1
    window_start: int = 0
    window_end: Optional[int] = None

    def validate(self) -> None:
        if not isinstance(self.representation, Representation):
            raise ConfigError(f"unknown representation: {self.representation!r}")
        if not isinstance(self.sign_bit, SignBit):
            raise ConfigError(f"unknown sign bit position: {self.sign_bit!r}")
        if not isinstance(self.compression, Compression):
            raise ConfigError(f"unknown compression: {self.compression!r}")
        for name in ("bias", "offset"):
            v = getattr(self, name)
            if not OFFSET_MIN <= int(v) <= OFFSET_MAX:
                raise ConfigError(f"{name} must be in [{OFFSET_MIN}, {OFFSET_MAX}], got {v}")
        for name in ("flip", "mirror"):
            v = getattr(self, name)
            if not 0 <= int(v) <= 255:
                raise ConfigError(f"{name} must be a byte value in [0, 255], got {v}")
        if int(self.stride) < 1:
            raise ConfigError(f"stride must be >= 1, got {self.stride}")
        if int(self.start_offset) < 0:
            raise ConfigError(f"start offset must be >= 0, got {self.start_offset}")
        if int(self.window_start) < 0:
            raise ConfigError(f"window start must be >= 0, got {self.window_start}")
        if self.window_end is not None and int(self.window_end) < int(self.window_start):
            raise ConfigError(
                f"window end ({self.window_end}) must not precede window start ({self.window_start})"
            )

    def describe(self) -> str:
        parts = [f"repr={self.representation.value}"]
        if self.representation is Representation.SIGNED_MAGNITUDE:
            parts.append(f"sign={self.sign_bit.value}")
        elif self.representation is Representation.EXCESS_K:
            parts.append(f"bias={self.bias}")
        elif self.representation is Representation.CUSTOM:
            parts.append(f"offset={self.offset} flip={self.flip} mirror={self.mirror}")
        parts.append(f"compression={self.compression.value}")
        end = "end" if self.window_end is None else str(self.window_end)
        parts.append(f"start={self.start_offset} stride={self.stride} window={self.window_start}..{end}")
        return " ".join(parts)


def _parse_enum(value: str, enum_cls, aliases: dict, what: str):
    key = str(value).strip().lower()
    for member in enum_cls:
        if key == member.value or key == member.name.lower():
            return member
    if key in aliases:
        return aliases[key]
    choices = ", ".join(m.value for m in enum_cls)
    raise ConfigError(f"unknown {what} {value!r}; choose one of: {choices}")


def parse_representation(value: str) -> Representation:
    return _parse_enum(value, Representation, _REPR_ALIASES, "representation")


def parse_sign_bit(value: str) -> SignBit:
    return _parse_enum(value, SignBit, {}, "sign bit position")


def parse_compression(value: str) -> Compression:
    return _parse_enum(value, Compression, _COMPRESSION_ALIASES, "compression")


def parse_int(value: str, what: str = "value") -> int:
    """Parse a decimal or 0x-prefixed hex integer."""
    text = str(value).strip()
    try:
        if text.lower().startswith(("0x", "-0x")):
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        raise ConfigError(f"{what} must be an integer, got {value!r}") from None
