"""
Volumetric effects for the ray tracer.

A VolumetricSolid pairs a volume (a box or a posed cone) with an effect
that is applied to the color of every ray passing through it:
- Fog: blend toward a fog color with distance travelled
- Light: brighten with distance travelled (shafts of light, glow)
- Solid: replace the color outright
- None: pass-through

Effects run after surface shading, in registration order.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence
import logging

import numpy as np

from .vec3 import Vec3, Point3
from .color import Color
from .ray import Ray
from .transform import Transform
from .primitives import aabb_collision, cone_boundary_hits, EPSILON
from .intersection import Intersection

logger = logging.getLogger(__name__)


@dataclass
class VolumeIntersection:
    """Where a ray enters and leaves a volume, as world ray parameters.

    t_enter is 0 when the ray starts inside the volume.
    """
    t_enter: float
    t_leave: float


class Volume(ABC):
    """Abstract base class for volume shapes."""

    @abstractmethod
    def passes_through(self, ray: Ray) -> Optional[VolumeIntersection]:
        """Compute the ray's entry and exit parameters.

        Returns:
            VolumeIntersection if the ray crosses the volume ahead of its
            origin, None otherwise
        """
        pass


class BoxVolume(Volume):
    """An axis-aligned box [position, position + size]."""

    def __init__(self, position: Point3, size: Vec3):
        self.position = position
        self.size = size

    def passes_through(self, ray: Ray) -> Optional[VolumeIntersection]:
        roots = aabb_collision(ray, self.position.to_array(), self.size.to_array())
        if len(roots) == 2:
            return VolumeIntersection(roots[0], roots[1])
        if len(roots) == 1:
            return VolumeIntersection(0.0, roots[0])
        return None

    def __repr__(self) -> str:
        return f"BoxVolume(position={self.position}, size={self.size})"


class ConeVolume(Volume):
    """A solid cone x^2 + z^2 <= y^2, 0 <= y <= height, placed by a pose.

    The pose is built as scale(1, scale_y, 1), then rotations about x, y
    and z (degrees), then a translation to position.
    """

    def __init__(
        self,
        position: Point3,
        scale_y: float = 1.0,
        rotation: Sequence[float] = (0.0, 0.0, 0.0),
        height: float = 1.0
    ):
        if height <= 0:
            raise ValueError("Cone volume height must be positive")
        self.position = position
        self.scale_y = scale_y
        self.rotation = tuple(rotation)
        self.height = height

        self.transform = Transform.identity()
        self.inv_transform = Transform.identity()
        self._apply_transform(Transform.scaling(1.0, scale_y, 1.0))
        for axis, angle in zip('xyz', self.rotation):
            if angle:
                self._apply_transform(Transform.rotation(axis, angle))
        self._apply_transform(Transform.translation(*position.to_tuple()))

    def _apply_transform(self, t: Transform) -> None:
        self.transform = t @ self.transform
        self.inv_transform = self.transform.inverse()

    def passes_through(self, ray: Ray) -> Optional[VolumeIntersection]:
        canonical = ray.transformed(self.inv_transform)
        hits = cone_boundary_hits(canonical, 0.0, self.height, capped=True)
        if len(hits) < 2:
            return None

        # The clipped cone is convex: first and last crossings bound it
        t_enter = self._world_t(ray, hits[0].point)
        t_leave = self._world_t(ray, hits[-1].point)
        if t_leave <= EPSILON:
            return None
        return VolumeIntersection(t_enter, t_leave)

    def _world_t(self, ray: Ray, canonical_point: Point3) -> float:
        return (self.transform.apply_point(canonical_point) - ray.src).dot(ray.dir)

    def __repr__(self) -> str:
        return (f"ConeVolume(position={self.position}, scale_y={self.scale_y}, "
                f"rotation={self.rotation}, height={self.height})")


def travelled_distance(
    ray: Ray,
    intersect: Optional[Intersection],
    vi: VolumeIntersection
) -> Optional[float]:
    """Distance the ray spends inside a volume before reaching the surface.

    Returns:
        None when the surface hit lies before the volume entry, otherwise
        the length of [entry, min(exit, surface hit)]
    """
    enter = max(vi.t_enter, 0.0)
    leave = vi.t_leave

    if intersect is not None:
        t_intersect = (intersect.point - ray.src).dot(ray.dir)
        if enter >= t_intersect:
            return None
        leave = min(leave, t_intersect)

    return max(0.0, leave - enter)


class VolumeEffect(ABC):
    """Abstract base class for the effect a volume has on passing rays."""

    @abstractmethod
    def apply(self, distance: float, curr_color: Color) -> Color:
        """Modify a color given the distance travelled inside the volume."""
        pass


class FogEffect(VolumeEffect):
    """Blend toward a fog color, saturating after 1/density units."""

    def __init__(self, color: Color, density: float = 0.03):
        if density <= 0:
            raise ValueError("Fog density must be positive")
        self.color = color
        self.density = density

    def fog_amount(self, distance: float) -> float:
        return float(np.clip(distance * self.density, 0.0, 1.0))

    def apply(self, distance: float, curr_color: Color) -> Color:
        amount = self.fog_amount(distance)
        return (amount * self.color) + ((1.0 - amount) * curr_color)

    def __repr__(self) -> str:
        return f"FogEffect(color={self.color}, density={self.density})"


class LightEffect(VolumeEffect):
    """Add light proportional to distance travelled, up to a cap."""

    def __init__(self, color: Color, intensity: float = 0.2, cap: float = 0.7):
        self.color = color
        self.intensity = intensity
        self.cap = cap

    def apply(self, distance: float, curr_color: Color) -> Color:
        amount = float(np.clip(distance * self.intensity, 0.0, self.cap))
        return curr_color + (amount * self.color)

    def __repr__(self) -> str:
        return f"LightEffect(color={self.color}, intensity={self.intensity}, cap={self.cap})"


class SolidEffect(VolumeEffect):
    """Opaque colored medium: replaces the color."""

    def __init__(self, color: Color):
        self.color = color

    def apply(self, distance: float, curr_color: Color) -> Color:
        return self.color

    def __repr__(self) -> str:
        return f"SolidEffect(color={self.color})"


class NoEffect(VolumeEffect):
    """Pass-through."""

    def apply(self, distance: float, curr_color: Color) -> Color:
        return curr_color

    def __repr__(self) -> str:
        return "NoEffect()"


class VolumetricSolid:
    """A volume shape paired with the effect it applies."""

    def __init__(self, volume: Volume, effect: Optional[VolumeEffect] = None):
        self.volume = volume
        self.effect = effect if effect is not None else NoEffect()

    def set_effect(self, effect: VolumeEffect) -> None:
        logger.debug("Setting effect of %r to %r", self.volume, effect)
        self.effect = effect

    def apply(self, ray: Ray, intersect: Optional[Intersection], curr_color: Color) -> Color:
        """Apply this volume's effect to the color seen along a ray.

        Args:
            ray: World-space primary ray
            intersect: The ray's surface hit, if any
            curr_color: Color computed so far

        Returns:
            The modified color
        """
        vi = self.volume.passes_through(ray)
        if vi is None:
            return curr_color

        distance = travelled_distance(ray, intersect, vi)
        if distance is None:
            return curr_color
        return self.effect.apply(distance, curr_color)

    def __repr__(self) -> str:
        return f"VolumetricSolid(volume={self.volume!r}, effect={self.effect!r})"
