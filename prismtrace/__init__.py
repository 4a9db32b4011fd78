"""
prismtrace - an offline CPU ray tracer.

A Whitted-style renderer with a BVH accelerator, Phong-family materials,
area lights with soft shadows, jittered antialiasing and deterministic
tile-parallel rendering.
"""

__version__ = "0.1.0"

from .vec3 import Vec3, Point3, Color
from .ray import Ray
from .aabb import AABB
from .shapes import HitRecord, GeometricObject, Sphere, Plane, Triangle, TriangleMesh, Group
from .bvh import BVH, BVHNode
from .materials import Material, Matte, Phong, Reflective, Dielectric, Emissive
from .lights import Light, AmbientLight, AmbientOccluder, PointLight, DirectionalLight, AreaLight
from .sampler import Sampler
from .camera import Camera, ThinLensCamera
from .scene import Scene
from .framebuffer import FrameBuffer
from .renderer import Renderer, RenderSettings, render
from .errors import RayTracingError, ConfigError, SceneError, ImageError
from .obj_loader import load_obj
from .scene_parser import load_scene, parse_scene
from .image_io import save_image

__all__ = [
    'Vec3', 'Point3', 'Color',
    'Ray',
    'AABB',
    'HitRecord', 'GeometricObject', 'Sphere', 'Plane', 'Triangle', 'TriangleMesh', 'Group',
    'BVH', 'BVHNode',
    'Material', 'Matte', 'Phong', 'Reflective', 'Dielectric', 'Emissive',
    'Light', 'AmbientLight', 'AmbientOccluder', 'PointLight', 'DirectionalLight', 'AreaLight',
    'Sampler',
    'Camera', 'ThinLensCamera',
    'Scene',
    'FrameBuffer',
    'Renderer', 'RenderSettings', 'render',
    'RayTracingError', 'ConfigError', 'SceneError', 'ImageError',
    'load_obj', 'load_scene', 'parse_scene', 'save_image',
]
