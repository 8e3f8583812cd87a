"""
Affine transforms backed by 4x4 numpy matrices.

Scene nodes and posed volumes accumulate scale/rotate/translate steps by
pre-multiplying, so the most recent call is applied last to local geometry.
"""

from __future__ import annotations
import math

import numpy as np

from .vec3 import Vec3, Point3, DegenerateGeometryError


_AXES = {
    'x': np.array([1.0, 0.0, 0.0]),
    'y': np.array([0.0, 1.0, 0.0]),
    'z': np.array([0.0, 0.0, 1.0]),
}


class Transform:
    """An affine transform in homogeneous coordinates."""

    __slots__ = ('matrix',)

    def __init__(self, matrix: np.ndarray = None):
        if matrix is None:
            matrix = np.identity(4, dtype=np.float64)
        self.matrix = np.asarray(matrix, dtype=np.float64)

    @classmethod
    def identity(cls) -> Transform:
        return cls()

    @classmethod
    def scaling(cls, x: float, y: float, z: float) -> Transform:
        return cls(np.diag([x, y, z, 1.0]))

    @classmethod
    def translation(cls, x: float, y: float, z: float) -> Transform:
        m = np.identity(4, dtype=np.float64)
        m[:3, 3] = (x, y, z)
        return cls(m)

    @classmethod
    def rotation(cls, axis: str, degrees: float) -> Transform:
        """Rotation about a principal axis.

        Args:
            axis: 'x', 'y' or 'z' (case-insensitive)
            degrees: Counter-clockwise angle looking down the axis

        Raises:
            DegenerateGeometryError: for any other axis label
        """
        key = axis.lower() if isinstance(axis, str) else None
        if key not in _AXES:
            raise DegenerateGeometryError(f"Unexpected rotation axis: {axis!r}")

        ux, uy, uz = _AXES[key]
        theta = math.radians(degrees)
        c = math.cos(theta)
        s = math.sin(theta)
        t = 1.0 - c

        # Rodrigues' rotation formula
        m = np.identity(4, dtype=np.float64)
        m[:3, :3] = [
            [t * ux * ux + c, t * ux * uy - s * uz, t * ux * uz + s * uy],
            [t * ux * uy + s * uz, t * uy * uy + c, t * uy * uz - s * ux],
            [t * ux * uz - s * uy, t * uy * uz + s * ux, t * uz * uz + c],
        ]
        return cls(m)

    def __matmul__(self, other: Transform) -> Transform:
        return Transform(self.matrix @ other.matrix)

    def __repr__(self) -> str:
        return f"Transform({self.matrix.tolist()})"

    def inverse(self) -> Transform:
        try:
            return Transform(np.linalg.inv(self.matrix))
        except np.linalg.LinAlgError as e:
            raise DegenerateGeometryError("Transform is not invertible") from e

    def apply_point(self, p: Point3) -> Point3:
        m = self.matrix
        return Vec3.from_array(m[:3, :3] @ p._data + m[:3, 3])

    def apply_vector(self, v: Vec3) -> Vec3:
        return Vec3.from_array(self.matrix[:3, :3] @ v._data)

    def apply_normal(self, n: Vec3) -> Vec3:
        """Transform a normal given *this* transform is the inverse of the
        geometry's transform: uses the transposed linear part."""
        return Vec3.from_array(self.matrix[:3, :3].T @ n._data).normalize()
