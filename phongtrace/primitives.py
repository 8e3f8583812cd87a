"""
Geometric primitives for the ray tracer.

Every primitive lives in its own unit-scale local frame; scene nodes supply
the transform that places it in the world. Each primitive implements
`collides`, which returns a Collision expressed in that local frame.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import math

import numpy as np

from .vec3 import Vec3, Point3
from .ray import Ray
from .transform import Transform


# Any root at or below this is treated as behind the ray origin.
EPSILON = 1e-4
# How close a hit point must be to a cube face plane to be assigned to it.
CLOSE_EPSILON = 1e-3


@dataclass
class Collision:
    """A hit against a primitive, in the primitive's local frame.

    Attributes:
        t_value: Ray parameter of the hit
        normal: Surface normal at the hit (not necessarily unit length)
        u, v: Surface parametrization for texturing
    """
    t_value: float
    normal: Vec3
    u: float = 0.0
    v: float = 0.0


def solve_quadratic(a: float, b: float, c: float) -> tuple[float, ...]:
    """Real roots of a*t^2 + b*t + c = 0 in ascending order.

    Degenerates to the linear equation when a is (nearly) zero.
    """
    if abs(a) < 1e-12:
        if abs(b) < 1e-12:
            return ()
        return (-c / b,)

    discriminant = b * b - 4.0 * a * c
    if discriminant < 0:
        return ()
    if discriminant == 0:
        return (-b / (2.0 * a),)

    # Avoid cancellation between b and the square root
    q = -0.5 * (b + math.copysign(math.sqrt(discriminant), b))
    r1 = q / a
    r2 = c / q if q != 0 else r1
    return (r1, r2) if r1 <= r2 else (r2, r1)


def aabb_collision(ray: Ray, corner: np.ndarray, size: np.ndarray) -> tuple[float, ...]:
    """Slab test against the box [corner, corner + size].

    Axis-parallel rays produce infinite inverse directions; the resulting
    intervals come out empty or unbounded as IEEE arithmetic dictates.

    Returns:
        () if the box is missed or entirely behind the ray,
        (t_exit,) if the ray starts inside the box,
        (t_enter, t_exit) otherwise.
    """
    src = ray.src._data
    with np.errstate(divide='ignore', invalid='ignore'):
        inv_dir = 1.0 / ray.dir._data
        t0 = (corner - src) * inv_dir
        t1 = (corner + size - src) * inv_dir

    # A ray lying in a face plane gives 0 * inf = NaN on that axis. fmin and
    # fmax skip the NaN, leaving [inf, inf], so such grazing rays miss.
    t_near = float(np.max(np.fmin(t0, t1)))
    t_far = float(np.min(np.fmax(t0, t1)))

    if not t_near <= t_far:
        return ()
    if t_far <= EPSILON:
        return ()
    if t_near <= EPSILON:
        return (t_far,)
    return (t_near, t_far)


class Primitive(ABC):
    """Abstract base class for all shapes that can be hit by rays."""

    @abstractmethod
    def collides(self, ray: Ray) -> Optional[Collision]:
        """Test if a local-space ray hits this primitive.

        Args:
            ray: The ray to test, already in the primitive's local frame

        Returns:
            Collision for the nearest hit beyond EPSILON, None otherwise
        """
        pass


class NoPrimitive(Primitive):
    """Placeholder for grouping nodes that carry no geometry."""

    def collides(self, ray: Ray) -> Optional[Collision]:
        return None

    def __repr__(self) -> str:
        return "NoPrimitive()"


class Sphere(Primitive):
    """The unit sphere centred at the origin."""

    def collides(self, ray: Ray) -> Optional[Collision]:
        """Solve |src + t*dir|^2 = 1 and keep the nearest root past EPSILON."""
        src = ray.src
        b = 2.0 * src.dot(ray.dir)
        c = src.length_squared() - 1.0

        for root in solve_quadratic(1.0, b, c):
            if root > EPSILON:
                # Centred at the origin with radius 1, the point is the normal
                point = ray.at(root)
                u, v = self._get_sphere_uv(point)
                return Collision(root, point, u, v)
        return None

    @staticmethod
    def _get_sphere_uv(point: Vec3) -> tuple[float, float]:
        """Get spherical UV coordinates for a point on the unit sphere.

        u: returned value [0,1] of angle around the Y axis from X=-1
        v: returned value [0,1] of angle from Y=-1 to Y=+1
        """
        theta = math.acos(max(-1.0, min(1.0, -point.y)))
        phi = math.atan2(-point.z, point.x) + math.pi

        return phi / (2 * math.pi), theta / math.pi

    def __repr__(self) -> str:
        return "Sphere()"


_UNIT_CORNER = np.zeros(3)
_UNIT_SIZE = np.ones(3)

# Face planes checked in a fixed order; the first one the hit lies on wins.
_CUBE_FACES = (
    (0, 0.0, Vec3(-1, 0, 0)),
    (0, 1.0, Vec3(1, 0, 0)),
    (1, 0.0, Vec3(0, -1, 0)),
    (1, 1.0, Vec3(0, 1, 0)),
    (2, 0.0, Vec3(0, 0, -1)),
    (2, 1.0, Vec3(0, 0, 1)),
)


class Cube(Primitive):
    """The axis-aligned unit cube [0,1]^3."""

    def collides(self, ray: Ray) -> Optional[Collision]:
        roots = aabb_collision(ray, _UNIT_CORNER, _UNIT_SIZE)
        if not roots:
            return None

        t_value = roots[0]
        point = ray.at(t_value)

        axis, normal = 2, _CUBE_FACES[-1][2]
        for face_axis, plane, face_normal in _CUBE_FACES:
            if abs(point[face_axis] - plane) < CLOSE_EPSILON:
                axis, normal = face_axis, face_normal
                break

        u, v = self._get_cube_uv(point, axis)
        return Collision(t_value, normal, u, v)

    @staticmethod
    def _get_cube_uv(point: Point3, axis: int) -> tuple[float, float]:
        """Planar UV coordinates on the face perpendicular to axis."""
        if axis == 0:  # X face
            u, v = point.z, point.y
        elif axis == 1:  # Y face
            u, v = point.x, point.z
        else:  # Z face
            u, v = point.x, point.y

        return max(0.0, min(1.0, u)), max(0.0, min(1.0, v))

    def __repr__(self) -> str:
        return "Cube()"


class Cylinder(Primitive):
    """The unit-radius cylinder x^2 + y^2 = 1 clipped to z in [-1, 1].

    Both end caps are closed.
    """

    def collides(self, ray: Ray) -> Optional[Collision]:
        sx, sy, sz = ray.src.to_tuple()
        dx, dy, dz = ray.dir.to_tuple()

        best: Optional[Collision] = None

        # Side wall
        a = dx * dx + dy * dy
        b = 2.0 * (sx * dx + sy * dy)
        c = sx * sx + sy * sy - 1.0
        for t in solve_quadratic(a, b, c):
            if t <= EPSILON:
                continue
            z = sz + t * dz
            if -1.0 <= z <= 1.0:
                x = sx + t * dx
                y = sy + t * dy
                u = (math.atan2(y, x) + math.pi) / (2 * math.pi)
                best = Collision(t, Vec3(x, y, 0.0), u, (z + 1.0) / 2.0)
                break

        # End caps
        if abs(dz) > 0.0:
            for cap_z in (-1.0, 1.0):
                t = (cap_z - sz) / dz
                if t <= EPSILON or (best is not None and t >= best.t_value):
                    continue
                x = sx + t * dx
                y = sy + t * dy
                if x * x + y * y <= 1.0:
                    best = Collision(
                        t, Vec3(0.0, 0.0, cap_z), (x + 1.0) / 2.0, (y + 1.0) / 2.0
                    )

        return best

    def __repr__(self) -> str:
        return "Cylinder()"


@dataclass
class ConeHit:
    """A crossing of a ray with a canonical cone's boundary."""
    t: float
    point: Point3
    normal: Vec3


def cone_boundary_hits(
    ray: Ray,
    y_min: float,
    y_max: float,
    capped: bool = True
) -> list[ConeHit]:
    """Every crossing of a ray with the canonical cone x^2 + z^2 = y^2.

    The side is clipped to y in [y_min, y_max]; when capped the clip planes
    are closed by discs of radius |y|. No epsilon filtering is applied, so
    callers see crossings behind the origin too.

    Returns:
        Hits sorted by ray parameter
    """
    sx, sy, sz = ray.src.to_tuple()
    dx, dy, dz = ray.dir.to_tuple()
    hits: list[ConeHit] = []

    a = dx * dx + dz * dz - dy * dy
    b = 2.0 * (sx * dx + sz * dz - sy * dy)
    c = sx * sx + sz * sz - sy * sy
    for t in solve_quadratic(a, b, c):
        x, y, z = sx + t * dx, sy + t * dy, sz + t * dz
        if y_min <= y <= y_max:
            normal = Vec3(x, -y, z)
            if normal.length_squared() < 1e-18:
                # Apex: fall back to the axis
                normal = Vec3(0.0, -1.0, 0.0)
            hits.append(ConeHit(t, Vec3(x, y, z), normal))

    if capped and abs(dy) > 0.0:
        for cap_y, cap_normal in ((y_min, Vec3(0, -1, 0)), (y_max, Vec3(0, 1, 0))):
            if cap_y == 0.0:
                continue
            t = (cap_y - sy) / dy
            x, z = sx + t * dx, sz + t * dz
            if x * x + z * z <= cap_y * cap_y:
                hits.append(ConeHit(t, Vec3(x, cap_y, z), cap_normal))

    hits.sort(key=lambda h: h.t)
    return hits


class Cone(Primitive):
    """A cone x^2 + z^2 = y^2 clipped to y in [y_min, y_max].

    An optional pose places the canonical cone inside the primitive's local
    frame; rays are mapped through its inverse and hits mapped back.
    """

    def __init__(
        self,
        y_min: float = 0.0,
        y_max: float = 1.0,
        capped: bool = True,
        pose: Optional[Transform] = None
    ):
        if y_max <= y_min:
            raise ValueError(f"Cone clip range is empty: [{y_min}, {y_max}]")
        self.y_min = y_min
        self.y_max = y_max
        self.capped = capped
        self.pose = pose if pose is not None else Transform.identity()
        self.inv_pose = self.pose.inverse()

    def collides(self, ray: Ray) -> Optional[Collision]:
        canonical = ray.transformed(self.inv_pose)

        for hit in cone_boundary_hits(canonical, self.y_min, self.y_max, self.capped):
            if hit.t <= EPSILON:
                continue
            point = self.pose.apply_point(hit.point)
            t_value = (point - ray.src).dot(ray.dir)
            if t_value <= EPSILON:
                continue
            normal = self.inv_pose.apply_normal(hit.normal)
            u = (math.atan2(hit.point.z, hit.point.x) + math.pi) / (2 * math.pi)
            v = (hit.point.y - self.y_min) / (self.y_max - self.y_min)
            return Collision(t_value, normal, u, v)
        return None

    def __repr__(self) -> str:
        return f"Cone(y_min={self.y_min}, y_max={self.y_max}, capped={self.capped})"
