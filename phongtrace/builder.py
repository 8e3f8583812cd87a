"""
Scene construction API.

SceneBuilder is the programmatic front-end for assembling scenes: it hands
out scene nodes with unique ids, builds materials, lights, volumes and
effects from plain sequences, and finally renders the scene.

Example:
    rt = SceneBuilder()
    root = rt.node('root')
    ball = rt.sphere('ball')
    ball.set_material(rt.material([0.7, 0.2, 0.2], [0.5, 0.5, 0.5], 25))
    root.add_child(ball)
    lamp = rt.light([2, 2, 2], [0.9, 0.9, 0.9], [1, 0, 0])
    rt.render(root, 'ball.png', 256, 256,
              [0, 0, 2], [0, 0, -1], [0, 1, 0], 90,
              [0.1, 0.1, 0.1], [lamp])
"""

from __future__ import annotations
import logging
from typing import Optional, Sequence

import numpy as np

from .vec3 import Vec3, Point3
from .color import Color
from .transform import Transform
from .primitives import Primitive, Sphere, Cube, Cylinder, Cone
from .mesh import load_mesh
from .materials import PhongMaterial, PhongTexture
from .lights import Light
from .volumes import (
    BoxVolume, ConeVolume, VolumetricSolid,
    FogEffect, LightEffect, SolidEffect,
)
from .scene import SceneNode
from .renderer import Raytracer, RenderSettings

logger = logging.getLogger(__name__)


class SceneBuilder:
    """Factory for scene objects; owns the node id counter."""

    def __init__(self, settings: Optional[RenderSettings] = None):
        self.settings = settings
        self._next_id = 0

    @property
    def node_count(self) -> int:
        """Number of nodes created so far."""
        return self._next_id

    def _new_node(self, kind: str, name: str, primitive: Optional[Primitive] = None) -> SceneNode:
        node_id = self._next_id
        self._next_id += 1
        logger.debug("Creating new %s '%s' (id %d)", kind, name, node_id)
        return SceneNode(node_id, name, primitive)

    # Nodes

    def node(self, name: str) -> SceneNode:
        """Create a grouping node with no geometry."""
        return self._new_node('node', name)

    def sphere(self, name: str) -> SceneNode:
        return self._new_node('sphere', name, Sphere())

    def cube(self, name: str) -> SceneNode:
        return self._new_node('cube', name, Cube())

    def cylinder(self, name: str) -> SceneNode:
        return self._new_node('cylinder', name, Cylinder())

    def cone(
        self,
        name: str,
        y_min: float = 0.0,
        y_max: float = 1.0,
        capped: bool = True,
        pose: Optional[Transform] = None
    ) -> SceneNode:
        return self._new_node('cone', name, Cone(y_min, y_max, capped, pose))

    def mesh(self, name: str, file_name: str) -> SceneNode:
        """Create a mesh node from an OBJ file.

        Raises:
            FileNotFoundError: if the file does not exist
            MeshFormatError: if the file cannot be parsed
        """
        return self._new_node('mesh', name, load_mesh(file_name))

    # Materials and lights

    def material(self, kd: Sequence[float], ks: Sequence[float], shininess: float) -> PhongMaterial:
        return PhongMaterial(Color.from_seq(kd), Color.from_seq(ks), float(shininess))

    def textured_material(
        self,
        file_name: str,
        u_max: float,
        v_max: float,
        ks: Sequence[float],
        shininess: float
    ) -> PhongTexture:
        return PhongTexture.from_file(file_name, u_max, v_max, Color.from_seq(ks), float(shininess))

    def light(
        self,
        position: Sequence[float],
        color: Sequence[float],
        falloff: Sequence[float]
    ) -> Light:
        """Create a point light; call `set_soft` on it for an area light."""
        return Light(Color.from_seq(color), Point3.from_seq(position), falloff)

    # Volumes

    def effect_fog(self, color: Sequence[float]) -> FogEffect:
        return FogEffect(Color.from_seq(color))

    def effect_light(self, color: Sequence[float]) -> LightEffect:
        return LightEffect(Color.from_seq(color))

    def effect_solid(self, color: Sequence[float]) -> SolidEffect:
        return SolidEffect(Color.from_seq(color))

    def volume_box(self, position: Sequence[float], size: Sequence[float]) -> VolumetricSolid:
        """Create an axis-aligned box volume with no effect."""
        return VolumetricSolid(BoxVolume(Point3.from_seq(position), Vec3.from_seq(size)))

    def volume_cone(
        self,
        position: Sequence[float],
        scale_y: float,
        rotation: Sequence[float],
        height: float = 1.0
    ) -> VolumetricSolid:
        """Create a posed cone volume with no effect."""
        return VolumetricSolid(ConeVolume(Point3.from_seq(position), scale_y, rotation, height))

    # Rendering

    def raytracer(
        self,
        root: SceneNode,
        eye: Sequence[float],
        view: Sequence[float],
        up: Sequence[float],
        fov_y: float,
        ambient: Sequence[float],
        lights: Sequence[Light],
        volumes: Sequence[VolumetricSolid] = (),
        settings: Optional[RenderSettings] = None
    ) -> Raytracer:
        """Assemble a Raytracer without rendering."""
        return Raytracer(
            root_node=root,
            eye=Point3.from_seq(eye),
            view=Point3.from_seq(view),
            up=Vec3.from_seq(up),
            fov_y=float(fov_y),
            ambient=Color.from_seq(ambient),
            lights=lights,
            volumes=volumes,
            settings=settings if settings is not None else self.settings,
        )

    def render(
        self,
        root: SceneNode,
        file_name: str,
        width: int,
        height: int,
        eye: Sequence[float],
        view: Sequence[float],
        up: Sequence[float],
        fov_y: float,
        ambient: Sequence[float],
        lights: Sequence[Light],
        volumes: Sequence[VolumetricSolid] = (),
        settings: Optional[RenderSettings] = None
    ) -> np.ndarray:
        """Render the scene under root to file_name.

        Returns:
            The rendered 8-bit RGB buffer
        """
        raytracer = self.raytracer(root, eye, view, up, fov_y, ambient, lights, volumes, settings)
        logger.info("Rendering %s", file_name)
        return raytracer.render(file_name, width, height)
