"""Tests for the preview module.

This module tests the preview/display and preview/export functionality:
- Plain-text pixel stream layout
- Writing to streams and files
- PNG export
- Display processing

Note: Tests avoid displaying actual windows; show_preview is exercised with
plt.show replaced.
"""

import io
import os
import tempfile

import numpy as np
import pytest
from PIL import Image as PILImage


def _gradient_pixels(height=2, width=3):
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    for row in range(height):
        for column in range(width):
            pixels[row, column] = (row * 10 + column, 100 + column, 200 + row)
    return pixels


class TestPpmLines:
    """Test the plain-text pixel stream."""

    def test_header(self):
        from pathtracer.preview.export import ppm_lines

        lines = list(ppm_lines(_gradient_pixels(2, 3)))
        assert lines[:3] == ["P3", "3 2", "255"]

    def test_line_count(self):
        from pathtracer.preview.export import ppm_lines

        lines = list(ppm_lines(_gradient_pixels(4, 5)))
        assert len(lines) == 3 + 4 * 5

    def test_row_major_top_row_first(self):
        from pathtracer.preview.export import ppm_lines

        lines = list(ppm_lines(_gradient_pixels(2, 3)))[3:]
        assert lines == [
            "0 100 200",
            "1 101 200",
            "2 102 200",
            "10 100 201",
            "11 101 201",
            "12 102 201",
        ]

    @pytest.mark.parametrize(
        "pixels",
        [
            np.zeros((2, 2), dtype=np.uint8),
            np.zeros((2, 2, 4), dtype=np.uint8),
            np.zeros((2, 2, 3), dtype=np.float32),
        ],
    )
    def test_rejects_invalid_arrays(self, pixels):
        from pathtracer.preview.export import ppm_lines

        with pytest.raises(ValueError):
            list(ppm_lines(pixels))


class TestWritePpm:
    """Test writing the stream to text destinations."""

    def test_write_to_stream(self):
        from pathtracer.preview.export import write_ppm

        buffer = io.StringIO()
        count = write_ppm(_gradient_pixels(2, 3), buffer)

        text = buffer.getvalue()
        assert count == 9
        assert text.startswith("P3\n3 2\n255\n0 100 200\n")
        assert text.endswith("12 102 201\n")
        assert text.count("\n") == 9

    def test_defaults_to_stdout(self, capsys):
        from pathtracer.preview.export import write_ppm

        write_ppm(_gradient_pixels(1, 1))
        assert capsys.readouterr().out == "P3\n1 1\n255\n0 100 200\n"

    def test_save_ppm(self, tmp_path):
        from pathtracer.preview.export import save_ppm

        path = tmp_path / "out.ppm"
        save_ppm(_gradient_pixels(2, 3), path)
        lines = path.read_text(encoding="ascii").splitlines()
        assert lines[:3] == ["P3", "3 2", "255"]
        assert len(lines) == 9


class TestSavePng:
    """Test PNG export functionality."""

    def test_save_png_creates_file(self):
        from pathtracer.preview.export import save_png

        pixels = _gradient_pixels(4, 6)
        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name

        try:
            save_png(pixels, filepath)

            assert os.path.exists(filepath)

            img = PILImage.open(filepath)
            assert img.size == (6, 4)
            assert img.mode == "RGB"
            assert np.array_equal(np.asarray(img), pixels)
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)

    def test_save_image_dispatches_on_suffix(self, tmp_path):
        from pathtracer.preview.export import save_image

        image = np.full((2, 3, 3), 0.25, dtype=np.float32)

        png_path = tmp_path / "render.png"
        save_image(image, png_path)
        assert np.all(np.asarray(PILImage.open(png_path)) == 128)

        ppm_path = tmp_path / "render.ppm"
        save_image(image, ppm_path)
        lines = ppm_path.read_text(encoding="ascii").splitlines()
        assert lines[0] == "P3"
        assert lines[3] == "128 128 128"


class TestDisplay:
    """Test display processing and the preview window."""

    def test_process_image_matches_encoding(self):
        from pathtracer.preview.display import process_image_for_display

        image = np.array([[[0.5, 0.25, 0.125], [2.0, -1.0, 0.0]]], dtype=np.float32)
        result = process_image_for_display(image)

        assert result.dtype == np.float32
        assert np.allclose(result[0, 0], np.array([181, 128, 90]) / 255.0)
        assert np.allclose(result[0, 1], [1.0, 0.0, 0.0])

    def test_show_preview(self, monkeypatch):
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from pathtracer.preview.display import show_preview

        calls = []
        monkeypatch.setattr(plt, "show", lambda **kwargs: calls.append(kwargs))

        show_preview(np.zeros((4, 6, 3), dtype=np.float32), block=False)
        assert calls == [{"block": False}]
        assert plt.gca().get_title() == "Render Preview - 6x4"
        plt.close("all")


class TestModuleExports:
    def test_preview_exports(self):
        from pathtracer import preview

        for name in ["ppm_lines", "write_ppm", "save_ppm", "save_png", "save_image", "show_preview"]:
            assert hasattr(preview, name)
