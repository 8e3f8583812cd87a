"""
Ray class for representing rays in 3D space.

A ray is defined by an origin point and a unit direction vector.
Ray(t) = src + t * dir
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from .vec3 import Vec3, Point3

if TYPE_CHECKING:
    from .transform import Transform


class Ray:
    """A ray with origin and direction.

    The direction is renormalized whenever a ray is constructed or
    transformed, so it is always unit length.
    """

    __slots__ = ('src', 'dir')

    def __init__(self, src: Point3, direction: Vec3):
        """Create a ray.

        Args:
            src: The starting point of the ray
            direction: Direction vector, any non-zero length

        Raises:
            DegenerateGeometryError: if direction has zero length
        """
        self.src = src
        self.dir = direction.normalize()

    @classmethod
    def between(cls, src: Point3, target: Point3) -> Ray:
        """Create a ray starting at src and pointing at target."""
        return cls(src, target - src)

    def at(self, t: float) -> Point3:
        """Get the point along the ray at parameter t."""
        return self.src + self.dir * t

    def transformed(self, transform: Transform) -> Ray:
        """Map src as a point and dir as a vector through an affine transform."""
        return Ray(transform.apply_point(self.src), transform.apply_vector(self.dir))

    def __repr__(self) -> str:
        return f"Ray(src={self.src}, dir={self.dir})"
