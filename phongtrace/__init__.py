"""
phongtrace - A Python Phong Raytracer

An offline CPU raytracer with support for:
- Spheres, cubes, cylinders, cones and OBJ triangle meshes
- Hierarchical scene graphs with per-node affine transforms
- Phong shading with soft shadows from area lights
- Image textures
- Volumetric fog, light shafts and solid overrides
- Multi-threaded tile rendering
"""

__version__ = "0.1.0"
__author__ = "phongtrace Team"

from .vec3 import Vec3, Point3, DegenerateGeometryError
from .color import Color, BLACK, WHITE
from .ray import Ray
from .transform import Transform
from .primitives import (
    Primitive, NoPrimitive, Sphere, Cube, Cylinder, Cone, Collision,
    EPSILON, solve_quadratic, aabb_collision,
)
from .mesh import Mesh, OBJLoader, MeshFormatError, load_mesh, parse_obj
from .intersection import Intersection
from .textures import Texture
from .lights import Light, shadow_fraction
from .materials import Material, NoMaterial, PhongMaterial, PhongTexture, phong_lighting
from .scene import SceneNode
from .volumes import (
    Volume, BoxVolume, ConeVolume, VolumeIntersection,
    VolumeEffect, FogEffect, LightEffect, SolidEffect, NoEffect,
    VolumetricSolid,
)
from .renderer import Raytracer, RenderSettings, save_image
from .builder import SceneBuilder
from .scene_parser import SceneParser, SceneParseError, load_scene, parse_scene
