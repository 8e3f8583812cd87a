"""
Materials for the ray tracer.

Implements:
- Phong (constant diffuse and specular colors)
- Phong with a texture-sampled diffuse color
- No material (renders black)

Shading is direct only: an ambient term plus, for every light, diffuse and
specular Phong terms scaled by the fraction of unoccluded light samples.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .color import Color, BLACK
from .ray import Ray
from .lights import shadow_fraction
from .textures import Texture

if TYPE_CHECKING:
    from .intersection import Intersection
    from .renderer import Raytracer


# Diffuse color used by textured materials when texture mapping is disabled
UNTEXTURED_KD = Color(0.5, 0.5, 0.5)


class Material(ABC):
    """Abstract base class for materials."""

    @abstractmethod
    def get_color(self, ray: Ray, raytracer: Raytracer, intersect: Intersection) -> Color:
        """Compute the surface color at an intersection.

        Args:
            ray: The primary ray that produced the intersection
            raytracer: Scene context (eye, ambient, lights, root, settings)
            intersect: World-space intersection

        Returns:
            Shaded color
        """
        pass


class NoMaterial(Material):
    """Material for nodes that were never assigned one."""

    def get_color(self, ray: Ray, raytracer: Raytracer, intersect: Intersection) -> Color:
        return BLACK

    def __repr__(self) -> str:
        return "NoMaterial()"


class PhongMaterial(Material):
    """Phong material with constant colors."""

    def __init__(self, kd: Color, ks: Color, shininess: float):
        """Create a Phong material.

        Args:
            kd: Diffuse color
            ks: Specular color
            shininess: Specular exponent
        """
        self.kd = kd
        self.ks = ks
        self.shininess = shininess

    def get_color(self, ray: Ray, raytracer: Raytracer, intersect: Intersection) -> Color:
        return phong_lighting(self.kd, self.ks, self.shininess, raytracer, intersect)

    def __repr__(self) -> str:
        return f"PhongMaterial(kd={self.kd}, ks={self.ks}, shininess={self.shininess})"


class PhongTexture(Material):
    """Phong material whose diffuse color comes from a texture."""

    def __init__(self, texture: Texture, ks: Color, shininess: float):
        self.texture = texture
        self.ks = ks
        self.shininess = shininess

    @classmethod
    def from_file(
        cls,
        filename: str,
        u_max: float,
        v_max: float,
        ks: Color,
        shininess: float
    ) -> PhongTexture:
        """Load the texture image and build the material."""
        return cls(Texture.load(filename, u_max, v_max), ks, shininess)

    def get_color(self, ray: Ray, raytracer: Raytracer, intersect: Intersection) -> Color:
        if raytracer.settings.textures:
            kd = self.texture.get_color(intersect.u_value, intersect.v_value)
        else:
            kd = UNTEXTURED_KD
        return phong_lighting(kd, self.ks, self.shininess, raytracer, intersect)

    def __repr__(self) -> str:
        return f"PhongTexture(ks={self.ks}, shininess={self.shininess})"


def phong_lighting(
    kd: Color,
    ks: Color,
    shininess: float,
    raytracer: Raytracer,
    intersect: Intersection
) -> Color:
    """Ambient plus shadowed diffuse and specular Phong terms for every light."""
    settings = raytracer.settings
    if not settings.phong_lighting:
        return kd

    point = intersect.point
    n = intersect.normal
    v = (raytracer.eye - point).normalize()

    final_color = kd * raytracer.ambient

    for light in raytracer.lights:
        if settings.shadows:
            multiplier = shadow_fraction(point, light, raytracer.root_node)
            if multiplier == 0.0:
                continue
        else:
            multiplier = 1.0

        l = light.position - point
        distance = l.length()
        if distance == 0.0:
            continue
        l = l / distance

        ldotn = max(0.0, min(1.0, l.dot(n)))
        r = (n * (2.0 * ldotn) - l).normalize()
        rdotv = max(0.0, min(1.0, r.dot(v)))

        light_sum = (kd * ldotn * light.color) + (ks * (rdotv ** shininess) * light.color)
        final_color = final_color + (multiplier * (light_sum / light.attenuation(distance)))

    return final_color
