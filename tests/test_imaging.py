"""Tests for image loading."""

import numpy as np
import pytest
import tifffile
from PIL import Image

from insect_agent.imaging.loader import load_image, to_pil, validate_image_path


class TestValidateImagePath:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            validate_image_path(str(tmp_path / "nope.jpg"))

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "bug.gif"
        path.write_bytes(b"GIF89a")
        with pytest.raises(ValueError):
            validate_image_path(str(path))


class TestLoadImage:

    def test_png_is_rgb(self, tmp_path):
        path = tmp_path / "bug.png"
        Image.new("RGB", (4, 3), color=(255, 0, 0)).save(path)

        img = load_image(str(path))
        assert img.mode == "RGB"
        assert img.size == (4, 3)
        assert img.getpixel((0, 0)) == (255, 0, 0)

    def test_uint16_channel_first_tif(self, tmp_path):
        path = tmp_path / "bug.tif"
        data = np.zeros((4, 16, 12), dtype=np.uint16)
        data[0] = 65535
        tifffile.imwrite(str(path), data, photometric="minisblack")

        img = load_image(str(path))
        assert img.mode == "RGB"
        assert img.size == (12, 16)
        assert img.getpixel((0, 0)) == (255, 0, 0)

    def test_grayscale_tif(self, tmp_path):
        path = tmp_path / "bug.tiff"
        tifffile.imwrite(str(path), np.full((16, 16), 128, dtype=np.uint8))

        img = load_image(str(path))
        assert img.getpixel((3, 3)) == (128, 128, 128)

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "bug.jpg"
        path.write_bytes(b"not an image")
        with pytest.raises(ValueError):
            load_image(str(path))


class TestToPil:

    def test_passthrough(self):
        img = Image.new("RGB", (2, 2))
        assert to_pil(img) is img

    def test_converts_mode(self):
        assert to_pil(Image.new("L", (2, 2))).mode == "RGB"

    def test_numpy_array(self):
        assert to_pil(np.zeros((2, 3, 3), dtype=np.uint8)).size == (3, 2)

    def test_unsupported(self):
        with pytest.raises(TypeError):
            to_pil(42)
