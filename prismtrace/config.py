"""
Configuration constants and default settings for the ray tracer.

Centralizes the magic numbers used throughout the renderer so they are
easy to find and tune.
"""

import math

# Rendering
DEFAULT_WIDTH = 500
DEFAULT_HEIGHT = 500
DEFAULT_SAMPLES = 16
DEFAULT_MAX_DEPTH = 5
DEFAULT_TILE_SIZE = 16
DEFAULT_LIGHT_SAMPLES = 4
MAX_DIMENSION = 8192
OUTPUT_FILENAME = "output.png"

# Preview mode trades quality for a quick look
PREVIEW_SAMPLES = 1
PREVIEW_MAX_DEPTH = 1
PREVIEW_LIGHT_SAMPLES = 1

# Numerical tolerances
HIT_EPSILON = 1e-4         # lower bound offset for every ray-primitive test
SHADOW_EPSILON = 1e-4      # shadow rays stop this far short of the light
PARALLEL_EPSILON = 1e-8    # |n.d| below this means ray and plane are parallel
DEGENERATE_AREA = 1e-12    # triangles with less area never intersect

# BVH
DEFAULT_MAX_LEAF_SIZE = 4

# Scene
DEFAULT_AMBIENT_STRENGTH = 0.1
CORNELL_LIGHT_STRENGTH = 4.0

# Materials
DEFAULT_DIFFUSE_KD = 1.0
DEFAULT_AMBIENT_KD = 0.5
DEFAULT_SPECULAR_EXP = 20.0

# Camera: a 500 pixel wide view plane at distance 520
DEFAULT_FOCAL_LENGTH = 520.0
DEFAULT_VFOV = math.degrees(2.0 * math.atan((DEFAULT_WIDTH / 2.0) / DEFAULT_FOCAL_LENGTH))
DEFAULT_LENS_RADIUS = 0.001
DEFAULT_FOCAL_DISTANCE = 3.0
DEFAULT_EYE_POSITION = (0.0, 0.0, -3.0)
DEFAULT_LOOKAT_POSITION = (0.0, 0.0, 0.0)

# Cornell box spheres, in the box's [-1, 1] space
LARGE_SPHERE_RADIUS = 0.22
LARGE_SPHERE_POSITION = (-0.3, -0.78, 0.35)
SMALL_SPHERE_RADIUS = 0.11
SMALL_SPHERE_POSITION = (0.35, -0.89, -0.2)
