import tempfile
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from pcmx.plot import render_text_chart, save_waveform_png


class TestTextChart(unittest.TestCase):
    def test_dimensions(self) -> None:
        samples = (np.sin(np.arange(200) / 8.0) * 20000).astype(np.int16)
        text = render_text_chart(samples, x_min=0, x_max=200, width=60, height=10, title="decoded")
        lines = text.splitlines()
        self.assertEqual(lines[0], "decoded")
        # title + rows + x axis
        self.assertEqual(len(lines), 1 + 10 + 1)
        self.assertTrue(all(len(line) == len(lines[1]) for line in lines[1:11]))
        self.assertIn("|", text)

    def test_fixed_y_range_puts_extremes_on_edges(self) -> None:
        samples = np.array([32767, -32768], dtype=np.int16)
        text = render_text_chart(samples, x_min=0, x_max=2, width=8, height=4, y_range=(-32768, 32767))
        rows = text.splitlines()
        self.assertIn("|", rows[0])
        self.assertIn("|", rows[3])

    def test_range_outside_data(self) -> None:
        text = render_text_chart(np.arange(10), x_min=50, x_max=60, width=20, height=4)
        self.assertNotIn("|", text)


class TestPng(unittest.TestCase):
    def test_snapshot_size(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "w.png"
            save_waveform_png(str(path), np.array([0, 1000, -1000], dtype=np.int16), width=320, height=100)
            with Image.open(path) as img:
                self.assertEqual(img.size, (320, 100))

    def test_empty_buffer(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "w.png"
            save_waveform_png(str(path), np.zeros(0, dtype=np.int16))
            self.assertTrue(path.exists())

    def test_always_png_regardless_of_extension(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "w.txt"
            save_waveform_png(str(path), np.arange(16, dtype=np.int16) * 1000, width=64, height=32)
            with Image.open(path) as img:
                self.assertEqual(img.format, "PNG")


if __name__ == "__main__":
    unittest.main()
