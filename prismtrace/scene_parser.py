"""
Scene description language parser.

Supports a YAML (or JSON) scene description format with:
- Render settings
- Camera configuration
- Ambient term and background color
- Materials library
- Objects (shapes with materials, OBJ meshes)
- Lights

Example scene file:
```yaml
render:
  width: 320
  height: 240
  samples: 16
  max_depth: 5

camera:
  type: pinhole
  look_from: [0, 1, 6]
  look_at: [0, 0, 0]
  vfov: 45

ambient:
  type: occluder
  ls: 0.2
  min_amount: 0.1

background: [0.1, 0.1, 0.15]

materials:
  floor:
    type: matte
    cd: [0.8, 0.8, 0.8]
  mirror:
    type: reflective
    kr: 0.8

objects:
  - type: plane
    point: [0, -1, 0]
    normal: [0, 1, 0]
    material: floor
  - type: sphere
    center: [0, 0, 0]
    radius: 1
    material: mirror

lights:
  - type: point
    location: [2, 5, 5]
    ls: 3
```
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
import json
import logging

import yaml

from .camera import Camera, ThinLensCamera
from .errors import SceneError
from .lights import Light, AmbientLight, AmbientOccluder, PointLight, DirectionalLight, AreaLight
from .materials import Material, Matte, Phong, Reflective, Dielectric, Emissive
from .obj_loader import load_obj
from .renderer import RenderSettings
from .scene import Scene
from .shapes import GeometricObject, Sphere, Plane, Triangle
from .vec3 import Vec3, Color

logger = logging.getLogger(__name__)


class SceneParser:
    """Parser for scene description files."""

    def __init__(self, base_dir: Optional[Path] = None):
        """Create a parser.

        Args:
            base_dir: Directory that relative mesh paths are resolved against
        """
        self.base_dir = base_dir if base_dir else Path.cwd()
        self.materials: Dict[str, Material] = {}
        self.objects: List[GeometricObject] = []
        self.lights: List[Light] = []
        self.ambient: Optional[AmbientLight] = None

    def parse_file(self, filepath: str) -> Tuple[Scene, RenderSettings]:
        """Parse a scene file.

        Args:
            filepath: Path to the scene file (YAML or JSON)

        Returns:
            Tuple of (scene, settings)

        Raises:
            SceneError: If the file is missing, unreadable or malformed
        """
        path = Path(filepath)
        if not path.is_file():
            raise SceneError(f"Scene file not found: {filepath}")

        try:
            content = path.read_text()
        except OSError as e:
            raise SceneError(f"Cannot read scene file '{filepath}': {e}") from e

        try:
            if path.suffix == '.json':
                data = json.loads(content)
            else:
                # YAML also accepts JSON documents
                data = yaml.safe_load(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise SceneError(f"Cannot parse scene file '{filepath}': {e}") from e

        self.base_dir = path.parent
        return self.parse_dict(data)

    def parse_dict(self, data: Dict[str, Any]) -> Tuple[Scene, RenderSettings]:
        """Parse a scene from a dictionary.

        Args:
            data: Scene description dictionary

        Returns:
            Tuple of (scene, settings)
        """
        if not isinstance(data, dict):
            raise SceneError(f"Scene description must be a mapping, got {type(data).__name__}")

        try:
            # Parse materials first (objects reference them)
            self._parse_materials(data.get('materials') or {})
            self._parse_objects(data.get('objects') or [])
            self._parse_lights(data.get('lights') or [])
            if 'ambient' in data:
                self.ambient = self._parse_ambient(data['ambient'])
            camera = self._parse_camera(data.get('camera') or {})
            settings = self._parse_settings(data.get('render') or {})
            background = self._parse_color(data.get('background', [0, 0, 0]))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SceneError(f"Malformed scene description: {e!r}") from e

        scene = Scene.build(self.objects, self.lights, camera, self.ambient, background)
        logger.info(
            "Parsed scene: %d materials, %d objects, %d lights",
            len(self.materials), len(self.objects), len(self.lights)
        )
        return scene, settings

    def _parse_vec3(self, data: Any) -> Vec3:
        """Parse a Vec3 from various formats."""
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneError(f"Vec3 must have 3 components, got {len(data)}")
            return Vec3(float(data[0]), float(data[1]), float(data[2]))
        elif isinstance(data, dict):
            return Vec3(
                float(data.get('x', 0)),
                float(data.get('y', 0)),
                float(data.get('z', 0))
            )
        else:
            raise SceneError(f"Cannot parse Vec3 from: {data}")

    def _parse_color(self, data: Any) -> Color:
        """Parse a Color from a list, a mapping, a '#rrggbb' string or a grey level."""
        if isinstance(data, (int, float)):
            return Color.repeat(float(data))
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneError(f"Color must have 3 components, got {len(data)}")
            return Color(float(data[0]), float(data[1]), float(data[2]))
        elif isinstance(data, dict):
            return Color(
                float(data.get('r', 0)),
                float(data.get('g', 0)),
                float(data.get('b', 0))
            )
        elif isinstance(data, str):
            # Handle hex colors
            if data.startswith('#') and len(data) == 7:
                r = int(data[1:3], 16) / 255.0
                g = int(data[3:5], 16) / 255.0
                b = int(data[5:7], 16) / 255.0
                return Color(r, g, b)
            raise SceneError(f"Cannot parse color from string: {data}")
        else:
            raise SceneError(f"Cannot parse Color from: {data}")

    def _parse_material(self, mat_data: Dict[str, Any]) -> Material:
        mat_type = mat_data.get('type', 'matte').lower()
        cd = self._parse_color(mat_data.get('cd', [0.8, 0.8, 0.8]))

        if mat_type == 'matte':
            return Matte(cd, ka=float(mat_data.get('ka', 0.5)), kd=float(mat_data.get('kd', 1.0)))

        elif mat_type == 'phong':
            return Phong(
                cd,
                ka=float(mat_data.get('ka', 0.25)),
                kd=float(mat_data.get('kd', 0.6)),
                ks=float(mat_data.get('ks', 0.2)),
                exp=float(mat_data.get('exp', 20.0)),
                cs=self._parse_color(mat_data.get('cs', [1, 1, 1]))
            )

        elif mat_type == 'reflective':
            return Reflective(
                cd,
                ka=float(mat_data.get('ka', 0.5)),
                kd=float(mat_data.get('kd', 1.0)),
                kr=float(mat_data.get('kr', 0.75)),
                cr=self._parse_color(mat_data.get('cr', [1, 1, 1])),
                ks=float(mat_data.get('ks', 0.0)),
                exp=float(mat_data.get('exp', 20.0))
            )

        elif mat_type == 'dielectric':
            return Dielectric(
                ior=float(mat_data.get('ior', 1.5)),
                cf=self._parse_color(mat_data.get('cf', [1, 1, 1]))
            )

        elif mat_type == 'emissive':
            return Emissive(
                ls=float(mat_data.get('ls', 1.0)),
                ce=self._parse_color(mat_data.get('ce', [1, 1, 1]))
            )

        raise SceneError(f"Unknown material type: {mat_type}")

    def _parse_materials(self, materials_data: Dict[str, Any]) -> None:
        """Parse materials section."""
        for name, mat_data in materials_data.items():
            self.materials[name] = self._parse_material(mat_data)

    def _get_material(self, mat_ref: Any) -> Optional[Material]:
        """Get a material by name or inline definition."""
        if mat_ref is None:
            return None
        if isinstance(mat_ref, str):
            if mat_ref not in self.materials:
                raise SceneError(f"Unknown material: {mat_ref}")
            return self.materials[mat_ref]
        elif isinstance(mat_ref, dict):
            return self._parse_material(mat_ref)
        else:
            raise SceneError(f"Invalid material reference: {mat_ref}")

    def _parse_shape(self, obj_data: Dict[str, Any], material: Optional[Material]) -> GeometricObject:
        obj_type = obj_data.get('type', 'sphere').lower()

        if obj_type == 'sphere':
            center = self._parse_vec3(obj_data.get('center', [0, 0, 0]))
            radius = float(obj_data.get('radius', 1.0))
            return Sphere(center, radius, material)

        elif obj_type == 'plane':
            point = self._parse_vec3(obj_data.get('point', [0, 0, 0]))
            normal = self._parse_vec3(obj_data.get('normal', [0, 1, 0]))
            return Plane(point, normal, material)

        elif obj_type == 'triangle':
            v0 = self._parse_vec3(obj_data['v0'])
            v1 = self._parse_vec3(obj_data['v1'])
            v2 = self._parse_vec3(obj_data['v2'])
            return Triangle(v0, v1, v2, material)

        raise SceneError(f"Unknown object type: {obj_type}")

    def _parse_objects(self, objects_data: list) -> None:
        """Parse objects section."""
        for obj_data in objects_data:
            material = self._get_material(obj_data.get('material'))

            if obj_data.get('type', 'sphere').lower() == 'mesh':
                mesh_path = self.base_dir / obj_data['file']
                asset = load_obj(str(mesh_path), float(obj_data.get('scale', 1.0)), material)
                self.objects.extend(asset.meshes)
                self.lights.extend(asset.lights)
            else:
                self.objects.append(self._parse_shape(obj_data, material))

    def _parse_ambient(self, ambient_data: Dict[str, Any]) -> AmbientLight:
        ambient_type = ambient_data.get('type', 'ambient').lower()
        ls = float(ambient_data.get('ls', 1.0))
        color = self._parse_color(ambient_data.get('color', [1, 1, 1]))

        if ambient_type == 'ambient':
            return AmbientLight(ls, color)
        elif ambient_type in ('occluder', 'ambient_occluder'):
            return AmbientOccluder(ls, color, float(ambient_data.get('min_amount', 0.0)))

        raise SceneError(f"Unknown ambient type: {ambient_type}")

    def _parse_lights(self, lights_data: list) -> None:
        """Parse lights section."""
        for light_data in lights_data:
            light_type = light_data.get('type', 'point').lower()
            ls = float(light_data.get('ls', 1.0))
            color = self._parse_color(light_data.get('color', [1, 1, 1]))

            if light_type == 'point':
                location = self._parse_vec3(light_data.get('location', [0, 5, 0]))
                falloff = bool(light_data.get('falloff', False))
                self.lights.append(PointLight(location, ls, color, falloff))

            elif light_type == 'directional':
                towards = self._parse_vec3(light_data.get('direction', [0, 1, 0]))
                self.lights.append(DirectionalLight(towards, ls, color))

            elif light_type == 'area':
                emissive = self._get_material(light_data.get('material', {'type': 'emissive'}))
                if not isinstance(emissive, Emissive):
                    raise SceneError("Area light material must be emissive")
                shapes = [self._parse_shape(s, emissive) for s in light_data['shapes']]
                # Emitters are visible geometry too
                self.objects.extend(shapes)
                self.lights.append(AreaLight(shapes, emissive))

            elif light_type in ('ambient', 'ambient_occluder'):
                self.ambient = self._parse_ambient(light_data)

            else:
                raise SceneError(f"Unknown light type: {light_type}")

    def _parse_camera(self, camera_data: Dict[str, Any]) -> Camera:
        """Parse camera section."""
        camera_type = camera_data.get('type', 'pinhole').lower()
        look_from = self._parse_vec3(camera_data.get('look_from', [0, 0, 5]))
        look_at = self._parse_vec3(camera_data.get('look_at', [0, 0, 0]))
        vup = self._parse_vec3(camera_data.get('vup', [0, 1, 0]))
        vfov = float(camera_data.get('vfov', 60))

        if camera_type == 'pinhole':
            return Camera(look_from, look_at, vup, vfov)
        elif camera_type in ('thin_lens', 'thin-lens'):
            return ThinLensCamera(
                look_from, look_at, vup, vfov,
                lens_radius=float(camera_data.get('lens_radius', 0.05)),
                focus_dist=float(camera_data.get('focus_dist', (look_from - look_at).length()))
            )

        raise SceneError(f"Unknown camera type: {camera_type}")

    def _parse_settings(self, settings_data: Dict[str, Any]) -> RenderSettings:
        """Parse render settings section; missing keys keep their defaults."""
        keys = {
            'width': ('width', int),
            'height': ('height', int),
            'samples': ('samples_per_pixel', int),
            'max_depth': ('max_depth', int),
            'tile_size': ('tile_size', int),
            'threads': ('num_threads', int),
            'executor': ('executor', str),
            'gamma': ('gamma', float),
            'tone_mapping': ('tone_mapping', str),
            'seed': ('seed', int),
            'light_samples': ('light_samples', int),
            'preview': ('preview', bool),
        }
        kwargs = {}
        for key, value in settings_data.items():
            if key not in keys:
                raise SceneError(f"Unknown render setting: {key}")
            name, convert = keys[key]
            kwargs[name] = convert(value)
        return RenderSettings(**kwargs)


def load_scene(filepath: str) -> Tuple[Scene, RenderSettings]:
    """Convenience function to load a scene file.

    Args:
        filepath: Path to the scene file

    Returns:
        Tuple of (scene, settings)
    """
    parser = SceneParser()
    return parser.parse_file(filepath)


def parse_scene(data: Dict[str, Any], base_dir: Optional[Path] = None) -> Tuple[Scene, RenderSettings]:
    """Convenience function to parse a scene from a dictionary.

    Args:
        data: Scene description dictionary
        base_dir: Directory for resolving relative mesh paths

    Returns:
        Tuple of (scene, settings)
    """
    parser = SceneParser(base_dir)
    return parser.parse_dict(data)
