"""Tests for image output."""

import numpy as np
import pytest
from PIL import Image

from prismtrace.errors import ImageError
from prismtrace.framebuffer import FrameBuffer
from prismtrace.image_io import save_image, to_image
from prismtrace.vec3 import Color


@pytest.fixture
def buffer():
    fb = FrameBuffer(3, 2)
    fb.set_pixel(0, 0, Color(1.0, 0.0, 0.0))
    fb.set_pixel(2, 1, Color(0.0, 0.5, 4.0))
    return fb


class TestImageIO:
    """Test encoding and writing images."""

    def test_to_image(self, buffer):
        image = to_image(buffer)
        assert image.size == (3, 2)
        assert image.mode == "RGB"
        assert image.getpixel((0, 0)) == (255, 0, 0)
        assert image.getpixel((2, 1)) == (0, 128, 255)

    def test_save_png(self, buffer, tmp_path):
        path = save_image(buffer, str(tmp_path / "out.png"))
        assert path.exists()
        with Image.open(path) as image:
            assert image.size == (3, 2)
            assert np.asarray(image)[0, 0].tolist() == [255, 0, 0]

    def test_creates_directories(self, buffer, tmp_path):
        path = save_image(buffer, str(tmp_path / "a" / "b" / "out.png"))
        assert path.exists()

    def test_gamma_applied(self, tmp_path):
        fb = FrameBuffer(1, 1)
        fb.set_pixel(0, 0, Color(0.25, 0.25, 0.25))
        path = save_image(fb, str(tmp_path / "g.png"), gamma=2.0)
        with Image.open(path) as image:
            assert image.getpixel((0, 0)) == (128, 128, 128)

    def test_empty_buffer(self, tmp_path):
        with pytest.raises(ImageError):
            save_image(FrameBuffer(0, 4), str(tmp_path / "empty.png"))

    def test_unknown_extension(self, buffer, tmp_path):
        with pytest.raises(ImageError):
            save_image(buffer, str(tmp_path / "out.unknownformat"))
