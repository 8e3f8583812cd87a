"""
Intersection records produced by scene-graph traversal.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .vec3 import Vec3, Point3
from .transform import Transform

if TYPE_CHECKING:
    from .scene import SceneNode


@dataclass(frozen=True)
class Intersection:
    """The nearest hit of a ray against a scene (sub)tree.

    Attributes:
        t_value: Ray parameter in the local frame where the hit was found.
            Only comparable with other hits from that same frame.
        point: Hit point in the caller's frame
        node: The scene node that owns the hit primitive
        normal: Unit surface normal in the caller's frame
        u_value, v_value: Texture coordinates at the hit point
    """
    t_value: float
    point: Point3
    node: 'SceneNode'
    normal: Vec3
    u_value: float = 0.0
    v_value: float = 0.0

    def apply_transform(self, transform: Transform, inv_transform: Transform) -> Intersection:
        """Express this intersection in the parent frame.

        Points go through the forward transform; normals through the
        transposed inverse.
        """
        return Intersection(
            t_value=self.t_value,
            point=transform.apply_point(self.point),
            node=self.node,
            normal=inv_transform.apply_normal(self.normal),
            u_value=self.u_value,
            v_value=self.v_value,
        )
