"""
Scene graph.

A scene is a strict ownership tree of SceneNodes. Each node carries an
affine transform relative to its parent, one primitive, one material and
an ordered list of children.
"""

from __future__ import annotations
import logging
from typing import Iterator, Optional

from .ray import Ray
from .transform import Transform
from .primitives import Primitive, NoPrimitive
from .materials import Material, NoMaterial
from .intersection import Intersection

logger = logging.getLogger(__name__)


class SceneNode:
    """A node in the scene hierarchy."""

    def __init__(
        self,
        node_id: int,
        name: str,
        primitive: Optional[Primitive] = None,
        material: Optional[Material] = None
    ):
        """Create a scene node with an identity transform.

        Args:
            node_id: Identifier handed out by the scene builder
            name: Human readable name, used in log messages
            primitive: Geometry in local coordinates (none for pure groups)
            material: Material used to shade hits on this node's primitive
        """
        self.id = node_id
        self.name = name
        self.primitive = primitive if primitive is not None else NoPrimitive()
        self.material = material if material is not None else NoMaterial()
        self.transform = Transform.identity()
        self.inv_transform = Transform.identity()
        self.children: list[SceneNode] = []

    def add_child(self, child: SceneNode) -> None:
        self.children.append(child)

    def set_material(self, material: Material) -> None:
        self.material = material

    def scale(self, x: float, y: float, z: float) -> None:
        logger.debug("Applying scaling to %s of (%s, %s, %s)", self.name, x, y, z)
        self._apply_transform(Transform.scaling(x, y, z))

    def translate(self, x: float, y: float, z: float) -> None:
        logger.debug("Applying translation to %s of (%s, %s, %s)", self.name, x, y, z)
        self._apply_transform(Transform.translation(x, y, z))

    def rotate(self, axis: str, angle: float) -> None:
        """Rotate about a principal axis by angle degrees.

        Raises:
            DegenerateGeometryError: if axis is not one of x, y, z
        """
        logger.debug("Applying rotation to %s of (%s, %s)", self.name, axis, angle)
        self._apply_transform(Transform.rotation(axis, angle))

    def _apply_transform(self, t: Transform) -> None:
        self.transform = t @ self.transform
        self.inv_transform = self.transform.inverse()

    def intersects(self, ray: Ray) -> Optional[Intersection]:
        """Find the nearest hit in this subtree.

        Args:
            ray: A ray in the parent's frame (world space for the root)

        Returns:
            The nearest Intersection expressed in the parent's frame
        """
        local_ray = ray.transformed(self.inv_transform)

        nearest: Optional[Intersection] = None
        nearest_dist = float('inf')

        collision = self.primitive.collides(local_ray)
        if collision is not None:
            point = local_ray.at(collision.t_value)
            nearest = Intersection(
                t_value=collision.t_value,
                point=point,
                node=self,
                normal=collision.normal.normalize(),
                u_value=collision.u,
                v_value=collision.v,
            )
            nearest_dist = point.distance_squared(local_ray.src)

        # t values from different frames are not comparable; compare
        # distances from the shared local origin instead
        for child in self.children:
            hit = child.intersects(local_ray)
            if hit is None:
                continue
            dist = hit.point.distance_squared(local_ray.src)
            if dist < nearest_dist:
                nearest = hit
                nearest_dist = dist

        if nearest is None:
            return None
        return nearest.apply_transform(self.transform, self.inv_transform)

    def walk(self) -> Iterator[SceneNode]:
        """Depth-first iteration over this node and all descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    def __repr__(self) -> str:
        return (f"SceneNode(id={self.id}, name={self.name!r}, "
                f"primitive={self.primitive!r}, children={len(self.children)})")
