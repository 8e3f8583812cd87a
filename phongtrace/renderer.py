"""
Renderer module - drives the per-pixel loop.

Implements:
- Look-at pinhole camera with vertical field of view
- Optional n x n supersampling per pixel
- Procedural sky gradient with a sparse star field for missed rays
- Volumetric effects applied after surface shading
- Multi-threaded tile-based rendering over a read-only scene
"""

from __future__ import annotations
import itertools
import logging
import math
import os
import random
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from PIL import Image

from .vec3 import Vec3, Point3
from .color import Color
from .ray import Ray
from .scene import SceneNode
from .lights import Light
from .volumes import VolumetricSolid
from .intersection import Intersection

logger = logging.getLogger(__name__)

# Distance from the eye to the image plane, looking down -z in camera space
Z_NEAR = -1.0

# Sky gradient and star field
SKY_RATE = Color(67.0 / 255.0, 133.0 / 255.0, 1.0)
SKY_START = 0.2
STAR_BAND = 0.35
STAR_CHANCE_TOP = 0.005
STAR_CHANCE_FADE = 0.003


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = 256
    height: int = 256
    num_threads: int = 0  # 0 = auto-detect
    tile_rows: int = 8
    supersampling: int = 1  # samples per pixel side
    shadows: bool = True
    textures: bool = True
    phong_lighting: bool = True
    stars: bool = True
    seed: Optional[int] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.supersampling < 1:
            raise ValueError("supersampling must be at least 1")
        if self.tile_rows < 1:
            raise ValueError("tile_rows must be at least 1")
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4


class Raytracer:
    """Owns a scene and its viewing/lighting parameters and renders it."""

    def __init__(
        self,
        root_node: SceneNode,
        eye: Optional[Point3] = None,
        view: Optional[Point3] = None,
        up: Optional[Vec3] = None,
        fov_y: float = 30.0,
        ambient: Optional[Color] = None,
        lights: Sequence[Light] = (),
        volumes: Sequence[VolumetricSolid] = (),
        settings: Optional[RenderSettings] = None
    ):
        """Create a raytracer.

        Args:
            root_node: Root of the scene graph
            eye: Camera position (origin if None)
            view: Point the camera looks at (down -z if None)
            up: Approximate up direction (+y if None)
            fov_y: Vertical field of view in degrees
            ambient: Ambient light color (black if None)
            lights: Lights used for shading
            volumes: Volumetric solids, applied in order
            settings: Render configuration (uses defaults if None)
        """
        self.root_node = root_node
        self.eye = eye if eye is not None else Point3(0, 0, 0)
        self.view = view if view is not None else Point3(0, 0, -1)
        self.up = up if up is not None else Vec3(0, 1, 0)
        self.fov_y = fov_y
        self.ambient = ambient if ambient is not None else Color(0, 0, 0)
        self.lights = list(lights)
        self.volumes = list(volumes)
        self.settings = settings if settings else RenderSettings()
        self._progress_callback: Optional[Callable[[float], None]] = None

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def camera_basis(self) -> Tuple[Vec3, Vec3, Vec3]:
        """Orthonormal (right, up, backward) basis of the look-at camera."""
        w = (self.eye - self.view).normalize()  # Points backward from camera
        u = self.up.cross(w).normalize()         # Points right
        v = w.cross(u)                           # Points up
        return u, v, w

    def primary_ray(self, fx: float, fy: float, width: int, height: int,
                    basis: Tuple[Vec3, Vec3, Vec3]) -> Ray:
        """Ray from the eye through image position (fx, fy) in pixels."""
        u, v, w = basis
        side = 2.0 * math.tan(math.radians(self.fov_y) / 2.0)
        x = ((fx / width) - 0.5) * side * width / height
        y = -((fy / height) - 0.5) * side
        return Ray(self.eye, u * x + v * y + w * Z_NEAR)

    def render(self, file_name: str, width: int, height: int) -> np.ndarray:
        """Render the scene and write it to an image file.

        Args:
            file_name: Output path; the extension selects the format
            width: Image width in pixels
            height: Image height in pixels

        Returns:
            The 8-bit RGB image as an array of shape (height, width, 3)
        """
        image = self.render_image(width, height)
        save_image(image, file_name)
        return image

    def render_image(self, width: int, height: int) -> np.ndarray:
        """Render the scene into an 8-bit RGB buffer."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Image size must be positive, got {width}x{height}")

        logger.info("Rendering %dx%d with %d thread(s)", width, height, self.settings.num_threads)
        logger.info("Eye: %s, View: %s, Up: %s", self.eye, self.view, self.up)
        start_time = time.time()

        image = np.zeros((height, width, 3), dtype=np.uint8)
        basis = self.camera_basis()

        tiles = self._generate_tiles(height)
        rows_done = itertools.count(1)

        def render_tile(tile: Tuple[int, int]) -> None:
            """Render rows [y0, y1) straight into the shared buffer."""
            y0, y1 = tile
            rng = self._tile_rng(y0)
            for y in range(y0, y1):
                for x in range(width):
                    color = self._trace_pixel(x, y, width, height, basis, rng)
                    image[y, x] = color.as_rgb()

                done = next(rows_done)
                if self._progress_callback:
                    self._progress_callback(done / height)

        if self.settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=self.settings.num_threads) as executor:
                # list() re-raises the first worker exception
                list(executor.map(render_tile, tiles))
        else:
            for tile in tiles:
                render_tile(tile)

        logger.info("Render completed in %.2f seconds", time.time() - start_time)
        return image

    def _tile_rng(self, y0: int) -> random.Random:
        if self.settings.seed is None:
            return random.Random()
        return random.Random(self.settings.seed * 1_000_003 + y0)

    def _trace_pixel(self, x: int, y: int, width: int, height: int,
                     basis: Tuple[Vec3, Vec3, Vec3], rng: random.Random) -> Color:
        n = self.settings.supersampling
        if n == 1:
            ray = self.primary_ray(x + 0.5, y + 0.5, width, height, basis)
            return self.trace_ray(ray, y, height, rng)

        # Average in floating point; Color clamps every operation
        total = np.zeros(3)
        for i in range(n):
            for j in range(n):
                ray = self.primary_ray(x + (i + 0.5) / n, y + (j + 0.5) / n, width, height, basis)
                total += self.trace_ray(ray, y, height, rng).to_tuple()
        total /= n * n
        return Color(total[0], total[1], total[2])

    def trace_ray(self, ray: Ray, y: int, height: int,
                  rng: Optional[random.Random] = None) -> Color:
        """Shade a primary ray: surface or background, then volumes."""
        intersect: Optional[Intersection] = self.root_node.intersects(ray)
        if intersect is not None:
            color = intersect.node.material.get_color(ray, self, intersect)
        else:
            color = self.background_color(y, height, rng)

        for volume in self.volumes:
            color = volume.apply(ray, intersect, color)
        return color

    def background_color(self, y: int, height: int,
                         rng: Optional[random.Random] = None) -> Color:
        """Vertical sky gradient; rows near the top occasionally get a star."""
        height_rate = max(0.0, (y / height) - SKY_START)

        if self.settings.stars and height_rate <= STAR_BAND:
            rand_chance = STAR_CHANCE_TOP
            if height_rate >= 0.05:
                reverse_height = (STAR_BAND + 0.05) - height_rate
                rand_chance = (reverse_height / STAR_BAND) * STAR_CHANCE_FADE

            rng = rng if rng is not None else random
            if rng.random() <= rand_chance:
                gray = (55 + int(rng.random() * 200.0)) / 255.0
                return Color(gray, gray, gray)

        return SKY_RATE * height_rate

    def _generate_tiles(self, height: int) -> list[Tuple[int, int]]:
        """Split the image into bands of rows as (y0, y1) tuples."""
        tile_rows = self.settings.tile_rows
        return [(y, min(y + tile_rows, height)) for y in range(0, height, tile_rows)]


def save_image(image: np.ndarray, filename: str) -> None:
    """Save an 8-bit RGB buffer to file.

    Args:
        image: Array of shape (height, width, 3), dtype uint8
        filename: Output filename (extension determines format)
    """
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected (h, w, 3) uint8 image, got {image.shape} {image.dtype}")

    path = Path(filename)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    Image.fromarray(image, 'RGB').save(path)
    logger.info("Saved %s", path)
