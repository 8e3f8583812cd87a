"""
Scene description language parser.

Supports a YAML (or JSON) scene description with:
- Camera configuration
- Render settings
- Materials library
- Lights, optionally soft
- Volumetric solids with effects
- A hierarchical scene tree with per-node transforms

Example scene file:
```yaml
camera:
  eye: [0, 0, 2]
  view: [0, 0, -1]
  up: [0, 1, 0]
  fov: 90

ambient: [0.1, 0.1, 0.1]

render:
  width: 256
  height: 256
  supersampling: 2
  stars: false

materials:
  red:
    type: phong
    kd: [0.7, 0.2, 0.2]
    ks: [0.5, 0.5, 0.5]
    shininess: 25
  bricks:
    type: texture
    file: bricks.png
    u_max: 0.25
    v_max: 0.25
    ks: [0.1, 0.1, 0.1]
    shininess: 5

lights:
  - position: [2, 2, 2]
    color: [0.9, 0.9, 0.9]
    falloff: [1, 0, 0]
    radius: 0.5
    samples: 3

volumes:
  - type: box
    position: [-10, -2, -10]
    size: [20, 1, 20]
    effect:
      type: fog
      color: [0.7, 0.7, 0.9]

scene:
  name: root
  children:
    - name: ball
      type: sphere
      material: red
      transforms:
        - scale: [0.5, 0.5, 0.5]
        - rotate: [y, 30]
        - translate: [0, 0.5, 0]
    - name: teapot
      type: mesh
      file: teapot.obj
      material: bricks
```

Relative `file` paths are resolved against the scene file's directory.
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .vec3 import Vec3
from .color import Color
from .materials import Material, PhongMaterial, PhongTexture
from .lights import Light
from .volumes import (
    VolumeEffect, VolumetricSolid, BoxVolume, ConeVolume,
    FogEffect, LightEffect, SolidEffect, NoEffect,
)
from .scene import SceneNode
from .builder import SceneBuilder
from .renderer import Raytracer, RenderSettings

logger = logging.getLogger(__name__)


class SceneParseError(Exception):
    """Error during scene parsing."""
    pass


_PRIMITIVE_TYPES = ('node', 'sphere', 'cube', 'cylinder', 'cone', 'mesh')


class SceneParser:
    """Parser for scene description files.

    Scene trees are assembled through a SceneBuilder, so node ids follow
    the order nodes appear in the file (depth first).
    """

    def __init__(self, builder: Optional[SceneBuilder] = None):
        self.builder = builder if builder is not None else SceneBuilder()
        self.base_dir = Path('.')
        self.materials: Dict[str, Material] = {}
        self.lights: list[Light] = []
        self.volumes: list[VolumetricSolid] = []
        self.output: Optional[str] = None

    def parse_file(self, filepath: str) -> Raytracer:
        """Parse a scene file.

        Args:
            filepath: Path to the scene file (YAML or JSON)

        Returns:
            A Raytracer ready to render the scene
        """
        path = Path(filepath)
        if not path.exists():
            raise SceneParseError(f"Scene file not found: {filepath}")

        content = path.read_text()
        self.base_dir = path.parent

        try:
            if path.suffix == '.json':
                data = json.loads(content)
            else:
                # YAML is a superset of JSON
                data = yaml.safe_load(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SceneParseError(f"Cannot read scene file {filepath}: {e}") from e

        raytracer = self.parse_dict(data)
        logger.info("Loaded scene %s: %d nodes, %d lights, %d volumes",
                    path.name, self.builder.node_count,
                    len(raytracer.lights), len(raytracer.volumes))
        return raytracer

    def parse_dict(self, data: Dict[str, Any]) -> Raytracer:
        """Parse a scene from a dictionary.

        Args:
            data: Scene description dictionary

        Returns:
            A Raytracer ready to render the scene
        """
        if not isinstance(data, dict):
            raise SceneParseError("Scene description must be a mapping")
        if 'scene' not in data:
            raise SceneParseError("Scene description has no 'scene' section")

        # Materials first (nodes reference them)
        if 'materials' in data:
            self._parse_materials(data['materials'])

        if 'lights' in data:
            self._parse_lights(data['lights'])

        if 'volumes' in data:
            self._parse_volumes(data['volumes'])

        root = self._parse_node(data['scene'])

        camera = data.get('camera', {})
        settings = self._parse_settings(data.get('render', {}))
        self.output = data.get('output')

        return Raytracer(
            root_node=root,
            eye=self._parse_vec3(camera.get('eye', [0, 0, 0])),
            view=self._parse_vec3(camera.get('view', [0, 0, -1])),
            up=self._parse_vec3(camera.get('up', [0, 1, 0])),
            fov_y=float(camera.get('fov', 30)),
            ambient=self._parse_color(data.get('ambient', [0, 0, 0])),
            lights=self.lights,
            volumes=self.volumes,
            settings=settings,
        )

    def _parse_vec3(self, data: Any) -> Vec3:
        """Parse a Vec3 from various formats."""
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneParseError(f"Vec3 must have 3 components, got {len(data)}")
            return Vec3(float(data[0]), float(data[1]), float(data[2]))
        elif isinstance(data, dict):
            return Vec3(
                float(data.get('x', 0)),
                float(data.get('y', 0)),
                float(data.get('z', 0))
            )
        else:
            raise SceneParseError(f"Cannot parse Vec3 from: {data}")

    def _parse_color(self, data: Any) -> Color:
        """Parse a Color from a list, an r/g/b mapping or a hex string."""
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneParseError(f"Color must have 3 components, got {len(data)}")
            return Color(float(data[0]), float(data[1]), float(data[2]))
        elif isinstance(data, dict):
            return Color(
                float(data.get('r', 0)),
                float(data.get('g', 0)),
                float(data.get('b', 0))
            )
        elif isinstance(data, str):
            if data.startswith('#') and len(data) == 7:
                return Color.from_rgb8([int(data[i:i + 2], 16) for i in (1, 3, 5)])
            raise SceneParseError(f"Cannot parse color from string: {data}")
        else:
            raise SceneParseError(f"Cannot parse Color from: {data}")

    def _resolve(self, file_name: str) -> str:
        path = Path(file_name)
        if not path.is_absolute():
            path = self.base_dir / path
        return str(path)

    def _parse_materials(self, materials_data: Dict[str, Any]) -> None:
        """Parse materials section."""
        for name, mat_data in materials_data.items():
            self.materials[name] = self._parse_material(mat_data)

    def _parse_material(self, mat_data: Dict[str, Any]) -> Material:
        mat_type = mat_data.get('type', 'phong').lower()
        ks = self._parse_color(mat_data.get('ks', [0, 0, 0]))
        shininess = float(mat_data.get('shininess', 1.0))

        if mat_type == 'phong':
            kd = self._parse_color(mat_data.get('kd', [0.5, 0.5, 0.5]))
            return PhongMaterial(kd, ks, shininess)

        elif mat_type == 'texture':
            if 'file' not in mat_data:
                raise SceneParseError("Texture material needs a 'file'")
            return PhongTexture.from_file(
                self._resolve(mat_data['file']),
                float(mat_data.get('u_max', 1.0)),
                float(mat_data.get('v_max', 1.0)),
                ks,
                shininess,
            )

        else:
            raise SceneParseError(f"Unknown material type: {mat_type}")

    def _get_material(self, mat_ref: Any) -> Optional[Material]:
        """Get a material by name or inline definition."""
        if mat_ref is None:
            return None
        if isinstance(mat_ref, str):
            if mat_ref not in self.materials:
                raise SceneParseError(f"Unknown material: {mat_ref}")
            return self.materials[mat_ref]
        elif isinstance(mat_ref, dict):
            return self._parse_material(mat_ref)
        else:
            raise SceneParseError(f"Invalid material reference: {mat_ref}")

    def _parse_lights(self, lights_data: list) -> None:
        """Parse lights section."""
        for light_data in lights_data:
            light = Light(
                self._parse_color(light_data.get('color', [1, 1, 1])),
                self._parse_vec3(light_data.get('position', [0, 0, 0])),
                light_data.get('falloff', [1, 0, 0]),
            )
            if 'radius' in light_data or 'samples' in light_data:
                light.set_soft(float(light_data.get('radius', 0.0)),
                               int(light_data.get('samples', 1)))
            self.lights.append(light)

    def _parse_effect(self, effect_data: Optional[Dict[str, Any]]) -> VolumeEffect:
        if effect_data is None:
            return NoEffect()

        effect_type = effect_data.get('type', 'none').lower()
        if effect_type == 'none':
            return NoEffect()

        color = self._parse_color(effect_data.get('color', [1, 1, 1]))
        if effect_type == 'fog':
            return FogEffect(color, float(effect_data.get('density', 0.03)))
        elif effect_type == 'light':
            return LightEffect(
                color,
                float(effect_data.get('intensity', 0.2)),
                float(effect_data.get('cap', 0.7)),
            )
        elif effect_type == 'solid':
            return SolidEffect(color)
        else:
            raise SceneParseError(f"Unknown effect type: {effect_type}")

    def _parse_volumes(self, volumes_data: list) -> None:
        """Parse volumes section."""
        for volume_data in volumes_data:
            volume_type = volume_data.get('type', 'box').lower()
            position = self._parse_vec3(volume_data.get('position', [0, 0, 0]))

            if volume_type == 'box':
                volume = BoxVolume(position, self._parse_vec3(volume_data.get('size', [1, 1, 1])))

            elif volume_type == 'cone':
                rotation = volume_data.get('rotation', [0, 0, 0])
                if len(rotation) != 3:
                    raise SceneParseError(f"Cone rotation must have 3 angles, got {len(rotation)}")
                volume = ConeVolume(
                    position,
                    float(volume_data.get('scale_y', 1.0)),
                    [float(r) for r in rotation],
                    float(volume_data.get('height', 1.0)),
                )

            else:
                raise SceneParseError(f"Unknown volume type: {volume_type}")

            solid = VolumetricSolid(volume, self._parse_effect(volume_data.get('effect')))
            logger.debug("Registered %r", solid)
            self.volumes.append(solid)

    def _parse_node(self, node_data: Dict[str, Any]) -> SceneNode:
        """Parse a scene node and, recursively, its children."""
        node_type = node_data.get('type', 'node').lower()
        name = str(node_data.get('name', node_type))

        if node_type not in _PRIMITIVE_TYPES:
            raise SceneParseError(f"Unknown node type: {node_type}")

        if node_type == 'mesh':
            if 'file' not in node_data:
                raise SceneParseError(f"Mesh node '{name}' needs a 'file'")
            node = self.builder.mesh(name, self._resolve(node_data['file']))
        elif node_type == 'cone':
            node = self.builder.cone(
                name,
                float(node_data.get('y_min', 0.0)),
                float(node_data.get('y_max', 1.0)),
                bool(node_data.get('capped', True)),
            )
        else:
            node = getattr(self.builder, node_type)(name)

        material = self._get_material(node_data.get('material'))
        if material is not None:
            node.set_material(material)

        for step in node_data.get('transforms', []):
            self._apply_transform(node, step)

        for child_data in node_data.get('children', []):
            node.add_child(self._parse_node(child_data))

        return node

    def _apply_transform(self, node: SceneNode, step: Dict[str, Any]) -> None:
        """Apply one {scale|translate|rotate: ...} step to a node."""
        if not isinstance(step, dict) or len(step) != 1:
            raise SceneParseError(f"Transform step must have exactly one key: {step}")

        (op, args), = step.items()
        if op == 'scale':
            node.scale(*self._parse_vec3(args))
        elif op == 'translate':
            node.translate(*self._parse_vec3(args))
        elif op == 'rotate':
            if isinstance(args, dict):
                axis, angle = args.get('axis'), args.get('angle', 0)
            elif isinstance(args, (list, tuple)) and len(args) == 2:
                axis, angle = args
            else:
                raise SceneParseError(f"Cannot parse rotation from: {args}")
            node.rotate(str(axis), float(angle))
        else:
            raise SceneParseError(f"Unknown transform: {op}")

    def _parse_settings(self, settings_data: Dict[str, Any]) -> RenderSettings:
        """Parse render settings section."""
        seed = settings_data.get('seed')
        return RenderSettings(
            width=int(settings_data.get('width', 256)),
            height=int(settings_data.get('height', 256)),
            num_threads=int(settings_data.get('threads', 0)),
            tile_rows=int(settings_data.get('tile_rows', 8)),
            supersampling=int(settings_data.get('supersampling', 1)),
            shadows=bool(settings_data.get('shadows', True)),
            textures=bool(settings_data.get('textures', True)),
            phong_lighting=bool(settings_data.get('phong_lighting', True)),
            stars=bool(settings_data.get('stars', True)),
            seed=int(seed) if seed is not None else None,
        )


def load_scene(filepath: str) -> Raytracer:
    """Convenience function to load a scene file.

    Args:
        filepath: Path to the scene file

    Returns:
        A Raytracer ready to render the scene
    """
    parser = SceneParser()
    return parser.parse_file(filepath)


def parse_scene(data: Dict[str, Any]) -> Raytracer:
    """Convenience function to parse a scene from a dictionary."""
    parser = SceneParser()
    return parser.parse_dict(data)
