"""Tests for image textures."""

import pytest
import numpy as np
from PIL import Image
from phongtrace.color import Color
from phongtrace.textures import Texture


RED = (1.0, 0.0, 0.0)
GREEN = (0.0, 1.0, 0.0)
BLUE = (0.0, 0.0, 1.0)
WHITE = (1.0, 1.0, 1.0)


@pytest.fixture
def checker():
    # Row 0: red, green; row 1: blue, white
    return np.array([[RED, GREEN], [BLUE, WHITE]], dtype=np.float64)


class TestTextureSampling:

    def test_corners(self, checker):
        tex = Texture(checker)
        assert tex.get_color(0.0, 0.0) == Color(*RED)
        assert tex.get_color(0.99, 0.0) == Color(*GREEN)
        assert tex.get_color(0.0, 0.99) == Color(*BLUE)
        assert tex.get_color(0.99, 0.99) == Color(*WHITE)

    def test_nearest_pixel(self, checker):
        tex = Texture(checker)
        assert tex.get_color(0.4, 0.0) == Color(*RED)
        assert tex.get_color(0.6, 0.0) == Color(*GREEN)

    def test_wraps_periodically(self, checker):
        tex = Texture(checker)
        for u in (0.1, 0.3, 0.7, 0.9):
            assert tex.get_color(u + 1.0, 0.2) == tex.get_color(u, 0.2)
            assert tex.get_color(u + 3.0, 0.2) == tex.get_color(u, 0.2)

    def test_whole_numbers_wrap_to_zero(self, checker):
        tex = Texture(checker)
        assert tex.get_color(1.0, 2.0) == Color(*RED)

    def test_negative_coordinates_mirror_fraction(self, checker):
        tex = Texture(checker)
        assert tex.get_color(-0.75, 0.0) == tex.get_color(0.75, 0.0)

    def test_repeat_period(self, checker):
        tex = Texture(checker, u_max=0.5, v_max=0.5)
        assert tex.get_color(0.45, 0.0) == Color(*GREEN)
        assert tex.get_color(0.5, 0.0) == Color(*RED)
        assert tex.get_color(0.95, 0.45) == Color(*WHITE)

    def test_dimensions(self, checker):
        tex = Texture(checker)
        assert tex.width == 2
        assert tex.height == 2


class TestTextureValidation:

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            Texture(np.zeros((4, 4)))

    def test_empty(self):
        with pytest.raises(ValueError):
            Texture(np.zeros((0, 4, 3)))

    def test_bad_period(self, checker):
        with pytest.raises(ValueError):
            Texture(checker, u_max=0.0)


class TestTextureLoading:

    def test_load_png(self, tmp_path):
        img = Image.new('RGB', (3, 2), (0, 0, 0))
        img.putpixel((2, 0), (255, 0, 0))
        img.putpixel((0, 1), (0, 0, 255))
        path = tmp_path / "tex.png"
        img.save(path)

        tex = Texture.load(str(path))
        assert tex.width == 3
        assert tex.height == 2
        assert tex.get_color(0.99, 0.0) == Color(1, 0, 0)
        assert tex.get_color(0.0, 0.99) == Color(0, 0, 1)

    def test_load_converts_to_rgb(self, tmp_path):
        img = Image.new('L', (2, 2), 255)
        path = tmp_path / "gray.png"
        img.save(path)

        tex = Texture.load(str(path))
        assert tex.get_color(0.0, 0.0) == Color(1, 1, 1)

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Texture.load(str(tmp_path / "missing.png"))
