"""
Light sources for the ray tracer.

A light is a point light by default. Calling `set_soft` turns it into a
square area light represented by a grid of sample positions; shadow rays
are cast to every sample to produce soft penumbrae.
"""

from __future__ import annotations
from typing import Sequence, TYPE_CHECKING

from .vec3 import Vec3, Point3
from .color import Color
from .ray import Ray
from .primitives import EPSILON

if TYPE_CHECKING:
    from .scene import SceneNode


class Light:
    """A point or area light with polynomial distance falloff."""

    def __init__(
        self,
        color: Color,
        position: Point3,
        falloff: Sequence[float] = (1.0, 0.0, 0.0),
        radius: float = 0.0,
        samples: int = 1
    ):
        """Create a light.

        Args:
            color: Color of the light
            position: Centre of the light
            falloff: Constant, linear and quadratic attenuation coefficients
            radius: Half-width of the sample grid (0 for a point light)
            samples: Samples along each side of the grid
        """
        if len(falloff) != 3:
            raise ValueError(f"Falloff needs 3 coefficients, got {len(falloff)}")
        if min(falloff) < 0 or max(falloff) <= 0:
            raise ValueError(f"Falloff must be non-negative and not all zero: {falloff}")
        self.color = color
        self.position = position
        self.falloff = tuple(float(c) for c in falloff)
        self.radius = 0.0
        self.light_samples: list[Point3] = [position]
        self.set_soft(radius, samples)

    def set_soft(self, radius: float, samples: int) -> None:
        """Lay out a samples x samples grid spanning [-radius, radius] in the
        light's xz-plane.

        A zero radius or a single sample degenerates to the light position.
        """
        if radius < 0:
            raise ValueError("Light radius must be non-negative")
        if samples < 1:
            raise ValueError("Light needs at least one sample")

        self.radius = float(radius)
        if radius == 0 or samples == 1:
            self.light_samples = [self.position]
            return

        step = 2.0 * radius / (samples - 1)
        self.light_samples = [
            self.position + Vec3(-radius + i * step, 0.0, -radius + k * step)
            for i in range(samples)
            for k in range(samples)
        ]

    @property
    def num_samples(self) -> int:
        return len(self.light_samples)

    def attenuation(self, distance: float) -> float:
        """Evaluate c0 + c1*d + c2*d^2."""
        c0, c1, c2 = self.falloff
        return c0 + c1 * distance + c2 * distance * distance

    def __repr__(self) -> str:
        return (f"Light(color={self.color}, position={self.position}, "
                f"falloff={self.falloff}, samples={self.num_samples})")


def shadow_fraction(point: Point3, light: Light, root: SceneNode) -> float:
    """Fraction of a light's samples visible from a surface point.

    A sample is occluded when the shadow ray toward it hits geometry
    closer than the sample itself.

    Args:
        point: World-space surface point
        light: Light whose samples are tested
        root: Root of the scene to cast shadow rays against

    Returns:
        Visible samples divided by total samples, in [0, 1]
    """
    lit = 0
    for sample in light.light_samples:
        distance_sq = point.distance_squared(sample)
        if distance_sq <= EPSILON * EPSILON:
            lit += 1
            continue

        hit = root.intersects(Ray.between(point, sample))
        if hit is None or point.distance_squared(hit.point) >= distance_sq:
            lit += 1

    return lit / len(light.light_samples)
