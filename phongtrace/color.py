"""
Clamped RGB color.

Every constructor and arithmetic operator clamps each channel to [0, 1],
so shading code can add and scale freely without overflowing.
"""

from __future__ import annotations
from typing import Sequence, Union


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class Color:
    """An RGB color with channels in [0, 1]."""

    __slots__ = ('r', 'g', 'b')

    def __init__(self, r: float = 0.0, g: float = 0.0, b: float = 0.0):
        self.r = _clamp(r)
        self.g = _clamp(g)
        self.b = _clamp(b)

    @classmethod
    def from_seq(cls, seq: Sequence[float]) -> Color:
        if len(seq) != 3:
            raise ValueError(f"Color needs 3 components, got {len(seq)}")
        return cls(seq[0], seq[1], seq[2])

    @classmethod
    def from_rgb8(cls, pixel: Sequence[int]) -> Color:
        """Create a color from 8-bit channel values."""
        return cls(pixel[0] / 255.0, pixel[1] / 255.0, pixel[2] / 255.0)

    def __repr__(self) -> str:
        return f"Color({self.r:.4f}, {self.g:.4f}, {self.b:.4f})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Color):
            return NotImplemented
        return (
            abs(self.r - other.r) < 1e-9
            and abs(self.g - other.g) < 1e-9
            and abs(self.b - other.b) < 1e-9
        )

    def __hash__(self) -> int:
        return hash((round(self.r, 9), round(self.g, 9), round(self.b, 9)))

    def __add__(self, other: Color) -> Color:
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def __mul__(self, other: Union[Color, float]) -> Color:
        if isinstance(other, Color):
            return Color(self.r * other.r, self.g * other.g, self.b * other.b)
        return Color(self.r * other, self.g * other, self.b * other)

    def __rmul__(self, other: float) -> Color:
        return Color(other * self.r, other * self.g, other * self.b)

    def __truediv__(self, other: float) -> Color:
        return Color(self.r / other, self.g / other, self.b / other)

    def as_rgb(self) -> tuple[int, int, int]:
        """Convert to 8-bit channels."""
        return (
            int(round(self.r * 255.0)),
            int(round(self.g * 255.0)),
            int(round(self.b * 255.0)),
        )

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.r, self.g, self.b)


BLACK = Color(0.0, 0.0, 0.0)
WHITE = Color(1.0, 1.0, 1.0)
