"""
pcmx.shell

Interactive command loop: edit the decode config, look at the waveform,
listen to it. Every accepted edit recomputes the buffer and redraws the plot.
"""

from __future__ import annotations

import cmd
import logging
import math
import shlex
from typing import Callable, Optional

from .config import (
    ConfigError,
    parse_compression,
    parse_int,
    parse_representation,
    parse_sign_bit,
)
from .playback import DeviceError, PlaybackScheduler
from .plot import render_text_chart, save_waveform_png
from .session import AddressingError, DecodeSession

logger = logging.getLogger(__name__)


def _args(line: str, lo: int, hi: int, usage: str) -> list[str]:
    try:
        parts = shlex.split(line)
    except ValueError as exc:
        raise ConfigError(str(exc)) from None
    if not lo <= len(parts) <= hi:
        raise ConfigError(f"usage: {usage}")
    return parts


def _parse_float(value: str, what: str) -> float:
    try:
        v = float(value)
    except ValueError:
        raise ConfigError(f"{what} must be a number, got {value!r}") from None
    if not math.isfinite(v):
        raise ConfigError(f"{what} must be finite, got {value!r}")
    return v


class DecodeShell(cmd.Cmd):
    intro = "pcmx: type help for commands, quit to write the output and exit."
    prompt = "pcmx> "

    def __init__(
        self,
        session: DecodeSession,
        *,
        scheduler: Optional[PlaybackScheduler] = None,
        device_error: Optional[Exception] = None,
        plot: bool = True,
        plot_width: int = 100,
        plot_height: int = 16,
        stdin=None,
        stdout=None,
    ) -> None:
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.session = session
        self.scheduler = scheduler
        self.device_error = device_error
        self.plot_enabled = bool(plot)
        self.plot_width = int(plot_width)
        self.plot_height = int(plot_height)
        self.x_min = 0.0
        self.x_max = 128.0

    # -- output ----------------------------------------------------------

    def _say(self, text: str) -> None:
        self.stdout.write(text + "\n")

    def _error(self, text: str) -> None:
        self.stdout.write(f"error: {text}\n")

    def draw(self) -> None:
        if not self.plot_enabled:
            return
        kw = dict(x_min=self.x_min, x_max=self.x_max, width=self.plot_width, height=self.plot_height)
        self._say(render_text_chart(self.session.buffer, y_range=(-32768, 32767), title="decoded", **kw))
        self._say(render_text_chart(self.session.raw_window(), y_range=(0, 255), title="raw", **kw))

    # -- edits -----------------------------------------------------------

    def _edit(self, build: Callable[[], dict]) -> bool:
        try:
            changes = build()
            self.session.update(**changes)
        except (ConfigError, AddressingError) as exc:
            self._error(str(exc))
            return False
        logger.debug("config now %s", self.session.config.describe())
        self._say(f"{self.session.config.describe()} -> {len(self.session)} samples")
        self.draw()
        return True

    def _edit_int(self, line: str, field: str, usage: str) -> bool:
        return self._edit(lambda: {field: parse_int(_args(line, 1, 1, usage)[0], field)})

    def do_repr(self, line: str) -> bool:
        """repr twos|ones|signmag|excess|custom -- set the bit representation"""
        self._edit(lambda: {"representation": parse_representation(_args(line, 1, 1, "repr NAME")[0])})
        return False

    def do_sign(self, line: str) -> bool:
        """sign lsb|msb -- sign bit position for signmag"""
        self._edit(lambda: {"sign_bit": parse_sign_bit(_args(line, 1, 1, "sign lsb|msb")[0])})
        return False

    def do_bias(self, line: str) -> bool:
        """bias N -- value subtracted by the excess representation"""
        self._edit_int(line, "bias", "bias N")
        return False

    def do_offset(self, line: str) -> bool:
        """offset N -- value subtracted by the custom representation"""
        self._edit_int(line, "offset", "offset N")
        return False

    def do_flip(self, line: str) -> bool:
        """flip N -- custom: bytes below N are folded to N - byte"""
        self._edit_int(line, "flip", "flip N")
        return False

    def do_mirror(self, line: str) -> bool:
        """mirror N -- custom: mirror-fold threshold"""
        self._edit_int(line, "mirror", "mirror N")
        return False

    def do_compression(self, line: str) -> bool:
        """compression none|order1|order2|order3|squared|toggle -- predictive reconstruction"""
        self._edit(lambda: {"compression": parse_compression(_args(line, 1, 1, "compression NAME")[0])})
        return False

    def do_start(self, line: str) -> bool:
        """start N -- skip N bytes into the window before the stride walk"""
        self._edit_int(line, "start_offset", "start N")
        return False

    def do_stride(self, line: str) -> bool:
        """stride N -- take every Nth byte"""
        self._edit_int(line, "stride", "stride N")
        return False

    def do_step(self, line: str) -> bool:
        """step N -- alias for stride"""
        return self.do_stride(line)

    def do_window(self, line: str) -> bool:
        """window START [END|end] -- decode only raw bytes [START, END)"""

        def build() -> dict:
            parts = _args(line, 1, 2, "window START [END|end]")
            start = parse_int(parts[0], "window start")
            end = None
            if len(parts) == 2 and parts[1].lower() != "end":
                end = parse_int(parts[1], "window end")
            return {"window_start": start, "window_end": end}

        self._edit(build)
        return False

    # -- views -----------------------------------------------------------

    def do_range(self, line: str) -> bool:
        """range X0 X1 -- sample range shown by the plot"""
        try:
            parts = _args(line, 2, 2, "range X0 X1")
            x0 = _parse_float(parts[0], "X0")
            x1 = _parse_float(parts[1], "X1")
            if x1 <= x0:
                raise ConfigError("X1 must be greater than X0")
        except ConfigError as exc:
            self._error(str(exc))
            return False
        self.x_min, self.x_max = x0, x1
        self.draw()
        return False

    def do_plot(self, line: str) -> bool:
        """plot -- redraw the waveform"""
        self.draw()
        return False

    def do_show(self, line: str) -> bool:
        """show -- print the current configuration"""
        self._say(f"{self.session.config.describe()} -> {len(self.session)} samples")
        return False

    def do_snapshot(self, line: str) -> bool:
        """snapshot PATH -- save the whole decoded waveform as a PNG"""
        try:
            path = _args(line, 1, 1, "snapshot PATH")[0]
            save_waveform_png(path, self.session.snapshot())
        except ValueError as exc:
            self._error(str(exc))
            return False
        except OSError as exc:
            self._error(f"cannot write {exc.filename or 'snapshot'}: {exc.strerror or exc}")
            return False
        self._say(path)
        return False

    def do_play(self, line: str) -> bool:
        """play [FROM [TO]] -- play decoded samples [FROM, TO) and wait for the end"""
        try:
            parts = _args(line, 0, 2, "play [FROM [TO]]")
            start = parse_int(parts[0], "FROM") if parts else 0
            stop = parse_int(parts[1], "TO") if len(parts) > 1 else None
        except ConfigError as exc:
            self._error(str(exc))
            return False
        if self.scheduler is None:
            self._error(f"playback unavailable: {self.device_error or 'no output device'}")
            return False
        try:
            lo, hi = self.scheduler.play(self.session.snapshot(), start, stop)
        except DeviceError as exc:
            self._error(str(exc))
            return False
        self._say(f"played samples {lo}..{hi}")
        return False

    # -- loop control ----------------------------------------------------

    def do_quit(self, line: str) -> bool:
        """quit -- leave the shell and write the output file"""
        return True

    do_exit = do_quit

    def do_EOF(self, line: str) -> bool:
        self._say("")
        return True

    def emptyline(self) -> bool:
        return False

    def default(self, line: str) -> bool:
        self._error(f"unknown command: {line.split()[0] if line.split() else line!r} (try help)")
        return False
