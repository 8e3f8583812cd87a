"""
Image textures for textured Phong materials.

Textures tile: (u, v) is divided by the repeat periods u_max / v_max and
only the fractional part is used, then the nearest pixel is sampled.
"""

from __future__ import annotations
import logging
import math
from pathlib import Path

import numpy as np
from PIL import Image

from .color import Color

logger = logging.getLogger(__name__)


class Texture:
    """An RGB image addressed by normalized, tiled (u, v) coordinates."""

    def __init__(self, pixels: np.ndarray, u_max: float = 1.0, v_max: float = 1.0):
        """Create a texture from a pixel array.

        Args:
            pixels: Array of shape (height, width, 3) with values in [0, 1]
            u_max: Repeat period along u
            v_max: Repeat period along v
        """
        pixels = np.asarray(pixels, dtype=np.float64)
        if pixels.ndim != 3 or pixels.shape[2] != 3 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError(f"Texture pixels must have shape (h, w, 3), got {pixels.shape}")
        if u_max <= 0 or v_max <= 0:
            raise ValueError("Texture repeat periods must be positive")

        self._data = pixels
        self._height, self._width = pixels.shape[:2]
        self.u_max = u_max
        self.v_max = v_max

    @classmethod
    def load(cls, filename: str, u_max: float = 1.0, v_max: float = 1.0) -> Texture:
        """Load a texture from an image file.

        Raises:
            FileNotFoundError: if the file does not exist
        """
        path = Path(filename)
        if not path.exists():
            raise FileNotFoundError(f"Texture file not found: {filename}")

        with Image.open(path) as img:
            data = np.array(img.convert('RGB'), dtype=np.float64) / 255.0

        logger.info("Loaded texture %s (%dx%d)", path.name, data.shape[1], data.shape[0])
        return cls(data, u_max, v_max)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def get_color(self, u: float, v: float) -> Color:
        """Sample the nearest pixel at tiled (u, v)."""
        u_mapped = abs(math.modf(u / self.u_max)[0])
        v_mapped = abs(math.modf(v / self.v_max)[0])

        i = int(round(u_mapped * (self._width - 1)))
        j = int(round(v_mapped * (self._height - 1)))

        pixel = self._data[j, i]
        return Color(pixel[0], pixel[1], pixel[2])
