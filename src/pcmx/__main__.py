"""
pcmx.__main__

CLI entry point.

Parse args, load the raw file, build the session, run the shell (or decode
once with --batch) and write the WAV. Decoding and playback logic live in the
package modules.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from pcmx.config import (
    Compression,
    ConfigError,
    DecodeConfig,
    Representation,
    SignBit,
    parse_compression,
    parse_int,
    parse_representation,
    parse_sign_bit,
)
from pcmx.playback import DECODE_RATE, DeviceError, PlaybackScheduler, default_output_device
from pcmx.session import AddressingError, DecodeSession
from pcmx.wav import write_wav

logger = logging.getLogger("pcmx")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _arg_type(parser):
    def convert(value: str):
        try:
            return parser(value)
        except ConfigError as exc:
            raise argparse.ArgumentTypeError(str(exc)) from None

    return convert


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="pcmx",
        description="Interactively try bit representations and DPCM schemes on a raw byte dump until it sounds like audio.",
    )
    p.add_argument("-i", "--input", required=True, help="Raw binary file to decode.")
    p.add_argument("-o", "--output", required=True, help="WAV file written with the last decoded buffer.")
    p.add_argument("--rate", type=int, default=DECODE_RATE, help=f"Output WAV sample rate (default: {DECODE_RATE}).")

    g = p.add_argument_group("initial decode config")
    g.add_argument(
        "--repr",
        type=_arg_type(parse_representation),
        default=Representation.TWOS_COMPLEMENT,
        help="twos, ones, signmag, excess or custom (default: twos).",
    )
    g.add_argument("--sign-bit", type=_arg_type(parse_sign_bit), default=SignBit.MSB, help="lsb or msb (signmag only).")
    g.add_argument("--bias", type=_arg_type(lambda v: parse_int(v, "bias")), default=0, help="Excess-K bias.")
    g.add_argument("--offset", type=_arg_type(lambda v: parse_int(v, "offset")), default=0, help="Custom offset.")
    g.add_argument("--flip", type=_arg_type(lambda v: parse_int(v, "flip")), default=0, help="Custom flip threshold.")
    g.add_argument("--mirror", type=_arg_type(lambda v: parse_int(v, "mirror")), default=0, help="Custom mirror threshold.")
    g.add_argument(
        "--compression",
        type=_arg_type(parse_compression),
        default=Compression.NONE,
        help="none, order1, order2, order3, squared or toggle (default: none).",
    )
    g.add_argument("--start-offset", type=_arg_type(lambda v: parse_int(v, "start offset")), default=0)
    g.add_argument("--stride", type=_arg_type(lambda v: parse_int(v, "stride")), default=1)
    g.add_argument(
        "--window",
        nargs="+",
        metavar="N",
        default=None,
        help="START [END]: decode raw bytes [START, END); END defaults to the end of the file.",
    )

    p.add_argument("--upsample", type=int, default=None, help="Output frames per decoded sample (default: device rate // 16000).")
    p.add_argument("--batch", action="store_true", help="Decode once with the given config and write the output; no shell.")
    p.add_argument("--no-plot", action="store_true", help="Do not draw the waveform after each edit.")
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get("PCMX_LOG", "WARNING"),
        help="Logging level (default: $PCMX_LOG or WARNING).",
    )
    return p.parse_args(argv)


def _config_from_args(args: argparse.Namespace) -> DecodeConfig:
    window_start, window_end = 0, None
    if args.window:
        if len(args.window) > 2:
            raise ConfigError("--window takes START and an optional END")
        window_start = parse_int(args.window[0], "window start")
        if len(args.window) == 2:
            window_end = parse_int(args.window[1], "window end")
    cfg = DecodeConfig(
        representation=args.repr,
        sign_bit=args.sign_bit,
        bias=args.bias,
        offset=args.offset,
        flip=args.flip,
        mirror=args.mirror,
        compression=args.compression,
        start_offset=args.start_offset,
        stride=args.stride,
        window_start=window_start,
        window_end=window_end,
    )
    cfg.validate()
    return cfg


def _run_shell(session: DecodeSession, args: argparse.Namespace) -> None:
    from pcmx.shell import DecodeShell

    scheduler = None
    device_error = None
    try:
        scheduler = PlaybackScheduler(default_output_device(), upsample=args.upsample)
    except (DeviceError, ValueError) as exc:
        device_error = exc
        print(f"playback disabled: {exc}", file=sys.stderr)

    shell = DecodeShell(session, scheduler=scheduler, device_error=device_error, plot=not args.no_plot)
    shell.draw()
    shell.cmdloop()


def main(argv: Optional[list[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    # argparse does not check a default taken from $PCMX_LOG against choices
    if args.log_level not in LOG_LEVELS:
        print(f"pcmx: invalid log level {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})", file=sys.stderr)
        return 2
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = _config_from_args(args)
        raw = Path(args.input).read_bytes()
        logger.info("read %d bytes from %s", len(raw), args.input)
        session = DecodeSession(raw, config)
    except (ConfigError, AddressingError) as exc:
        print(f"pcmx: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"pcmx: cannot read {args.input}: {exc.strerror or exc}", file=sys.stderr)
        return 2

    if not args.batch:
        _run_shell(session, args)

    try:
        write_wav(args.output, session.snapshot(), int(args.rate))
    except OSError as exc:
        print(f"pcmx: cannot write {args.output}: {exc.strerror or exc}", file=sys.stderr)
        return 2
    print(args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
