import contextlib
import io
import os
import tempfile
import unittest
import wave
from pathlib import Path
from unittest import mock

import numpy as np

from pcmx.__main__ import main
from pcmx.playback import DeviceError
from pcmx.wav import write_wav


def _read_wav(path: Path) -> tuple[np.ndarray, int, int, int]:
    with wave.open(str(path), "rb") as wf:
        data = np.frombuffer(wf.readframes(wf.getnframes()), dtype="<i2")
        return data, wf.getframerate(), wf.getnchannels(), wf.getsampwidth()


class TestWriteWav(unittest.TestCase):
    def test_mono_16bit(self) -> None:
        samples = np.array([0, 32512, -32768, -256], dtype=np.int16)
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "out.wav"
            write_wav(str(path), samples)
            data, sr, ch, width = _read_wav(path)
        self.assertEqual((sr, ch, width), (16000, 1, 2))
        np.testing.assert_array_equal(data, samples)

    def test_rejects_bad_input(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = str(Path(td) / "out.wav")
            with self.assertRaises(ValueError):
                write_wav(path, np.zeros((4, 2), dtype=np.int16))
            with self.assertRaises(ValueError):
                write_wav(path, np.zeros(4, dtype=np.int16), 0)


class TestMain(unittest.TestCase):
    def _main(self, argv: list[str]) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(argv)
        return code, out.getvalue(), err.getvalue()

    def test_batch_decode(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "dump.bin"
            dst = Path(td) / "dump.wav"
            src.write_bytes(bytes([0x00, 0x7F, 0x80, 0xFF, 0x10, 0x20]))
            code, out, _ = self._main(["-i", str(src), "-o", str(dst), "--batch", "--stride", "2", "--rate", "8000"])
            self.assertEqual(code, 0)
            self.assertIn(str(dst), out)
            data, sr, ch, _ = _read_wav(dst)
        self.assertEqual((sr, ch), (8000, 1))
        self.assertEqual(data.tolist(), [0, -32768, 0x10 * 256])

    def test_batch_with_prediction_and_window(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "dump.bin"
            dst = Path(td) / "dump.wav"
            src.write_bytes(bytes([9, 9, 1, 1, 1, 9]))
            argv = ["-i", str(src), "-o", str(dst), "--batch", "--compression", "order1", "--window", "2", "5"]
            self.assertEqual(self._main(argv)[0], 0)
            data, _, _, _ = _read_wav(dst)
        self.assertEqual(data.tolist(), [1, 2, 3])

    def test_window_start_beyond_input_is_fatal(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "dump.bin"
            dst = Path(td) / "dump.wav"
            src.write_bytes(bytes(4))
            code, _, err = self._main(["-i", str(src), "-o", str(dst), "--batch", "--window", "10"])
            self.assertEqual(code, 2)
            self.assertIn("window start", err)
            self.assertFalse(dst.exists())

    def test_missing_input(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            code, _, err = self._main(["-i", str(Path(td) / "nope.bin"), "-o", str(Path(td) / "x.wav"), "--batch"])
        self.assertEqual(code, 2)
        self.assertIn("cannot read", err)

    def test_invalid_config_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "dump.bin"
            src.write_bytes(bytes(4))
            code, _, err = self._main(["-i", str(src), "-o", str(Path(td) / "x.wav"), "--batch", "--stride", "0"])
        self.assertEqual(code, 2)
        self.assertIn("stride", err)

    def test_bad_enum_is_a_usage_error(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._main(["-i", "a", "-o", "b", "--repr", "ulaw"])
        self.assertEqual(ctx.exception.code, 2)

    def test_log_level(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "dump.bin"
            src.write_bytes(bytes(4))
            argv = ["-i", str(src), "-o", str(Path(td) / "x.wav"), "--batch"]
            self.assertEqual(self._main(argv + ["--log-level", "debug"])[0], 0)
            with self.assertRaises(SystemExit) as ctx:
                self._main(argv + ["--log-level", "verbose"])
            self.assertEqual(ctx.exception.code, 2)
            with mock.patch.dict(os.environ, {"PCMX_LOG": "loud"}):
                code, _, err = self._main(argv)
        self.assertEqual(code, 2)
        self.assertIn("invalid log level", err)

    def test_unwritable_output(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "dump.bin"
            src.write_bytes(bytes(4))
            dst = Path(td) / "missing" / "x.wav"
            code, out, err = self._main(["-i", str(src), "-o", str(dst), "--batch"])
        self.assertEqual(code, 2)
        self.assertIn("cannot write", err)
        self.assertEqual(out, "")

    def test_shell_without_output_device(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "dump.bin"
            dst = Path(td) / "dump.wav"
            src.write_bytes(bytes([0, 1, 2, 3, 4, 5]))
            script = io.StringIO("stride 2\nplay\nquit\n")
            no_device = DeviceError("no default output device")
            with mock.patch("pcmx.__main__.default_output_device", side_effect=no_device), mock.patch(
                "sys.stdin", script
            ):
                code, out, err = self._main(["-i", str(src), "-o", str(dst), "--no-plot"])
            self.assertEqual(code, 0)
            data, _, _, _ = _read_wav(dst)
        self.assertIn("playback disabled: no default output device", err)
        self.assertIn("playback unavailable", out)
        self.assertEqual(data.tolist(), [0, 2 * 256, 4 * 256])


if __name__ == "__main__":
    unittest.main()
