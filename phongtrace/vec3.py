"""
Three-component vectors for scene geometry.

A single numpy-backed class serves as position, direction and surface
normal; ``Point3`` is an alias kept for readability at call sites that
deal in positions. Normalising a zero or non-finite vector raises
``DegenerateGeometryError`` instead of producing NaNs that would leak into
intersection tests.
"""

from __future__ import annotations
import math
from typing import Sequence, Union
import numpy as np


class DegenerateGeometryError(ValueError):
    """Raised when geometry cannot be processed without producing NaNs."""


Operand = Union['Vec3', float]


def _raw(value: Operand):
    return value._data if isinstance(value, Vec3) else value


class Vec3:
    """Immutable-by-convention 3-vector over a float64 array."""

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self._data = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vec3:
        """Wrap an existing length-3 array without copying."""
        v = cls.__new__(cls)
        v._data = np.asarray(arr, dtype=np.float64)
        return v

    @classmethod
    def from_seq(cls, seq: Sequence[float]) -> Vec3:
        if len(seq) != 3:
            raise ValueError(f"Vec3 needs 3 components, got {len(seq)}")
        return cls(float(seq[0]), float(seq[1]), float(seq[2]))

    x = property(lambda self: float(self._data[0]))
    y = property(lambda self: float(self._data[1]))
    z = property(lambda self: float(self._data[2]))

    def __repr__(self) -> str:
        return "Vec3({:.4f}, {:.4f}, {:.4f})".format(*self._data)

    def __eq__(self, other: object) -> bool:
        # Tolerant comparison; vectors are not hashable
        if not isinstance(other, Vec3):
            return NotImplemented
        return bool(np.allclose(self._data, other._data))

    __hash__ = None

    # Arithmetic: Vec3 with Vec3 is componentwise, Vec3 with a float scales

    def __neg__(self) -> Vec3:
        return Vec3.from_array(-self._data)

    def __add__(self, other: Operand) -> Vec3:
        return Vec3.from_array(self._data + _raw(other))

    def __sub__(self, other: Operand) -> Vec3:
        return Vec3.from_array(self._data - _raw(other))

    def __mul__(self, other: Operand) -> Vec3:
        return Vec3.from_array(self._data * _raw(other))

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vec3:
        return Vec3.from_array(self._data / scalar)

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def __iter__(self):
        return iter(self.to_tuple())

    def dot(self, other: Vec3) -> float:
        return float(self._data @ other._data)

    def cross(self, other: Vec3) -> Vec3:
        return Vec3.from_array(np.cross(self._data, other._data))

    def length_squared(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def distance_squared(self, other: Vec3) -> float:
        """Squared distance between two points; used to rank hits."""
        return (self - other).length_squared()

    def normalize(self) -> Vec3:
        """Unit vector in the same direction.

        Raises:
            DegenerateGeometryError: for zero-length or non-finite vectors
        """
        length = self.length()
        if length == 0 or not math.isfinite(length):
            raise DegenerateGeometryError(f"Cannot normalize {self!r}")
        return self / length

    def to_array(self) -> np.ndarray:
        """Copy of the components as a numpy array."""
        return self._data.copy()

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


# Positions share the vector type
Point3 = Vec3
