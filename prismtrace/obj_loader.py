"""
OBJ file loader for importing 3D meshes.

Supports:
- Vertices (v)
- Faces (f) with fan triangulation and negative indices
- Material libraries (mtllib) and references (usemtl)

Texture coordinates, normals and groups are accepted but ignored.
Faces are grouped by material into TriangleMesh objects that share one
vertex array. MTL materials whose ambient red component exceeds 1 are
treated as light emitters and produce an AreaLight.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict
import logging

import numpy as np

from .config import DEFAULT_AMBIENT_KD, DEFAULT_DIFFUSE_KD
from .errors import SceneError
from .lights import AreaLight
from .materials import Material, Matte, Emissive
from .shapes import TriangleMesh
from .vec3 import Color

logger = logging.getLogger(__name__)

DEFAULT_MATERIAL_NAME = ""


@dataclass
class MtlRecord:
    """Raw colors read from an MTL `newmtl` block."""
    name: str
    ka: Color = field(default_factory=lambda: Color(0.0, 0.0, 0.0))
    kd: Color = field(default_factory=lambda: Color(0.7, 0.7, 0.7))

    @property
    def emissive(self) -> bool:
        return self.ka.r > 1.0

    def to_material(self) -> Material:
        if self.emissive:
            return Emissive(self.ka.r, self.kd)
        return Matte(self.kd, ka=DEFAULT_AMBIENT_KD, kd=DEFAULT_DIFFUSE_KD, ca=self.ka)


@dataclass
class ObjAsset:
    """Geometry, materials and lights read from one OBJ file."""
    meshes: List[TriangleMesh] = field(default_factory=list)
    materials: Dict[str, Material] = field(default_factory=dict)
    lights: List[AreaLight] = field(default_factory=list)

    @property
    def triangle_count(self) -> int:
        return sum(len(mesh) for mesh in self.meshes)


def _parse_color(parts: List[str]) -> Color:
    r = float(parts[0])
    g = float(parts[1]) if len(parts) > 1 else r
    b = float(parts[2]) if len(parts) > 2 else r
    return Color(r, g, b)


def load_mtl(filename: str) -> Dict[str, MtlRecord]:
    """Read the Ka/Kd colors of every material in an MTL file."""
    records: Dict[str, MtlRecord] = {}
    current: Optional[MtlRecord] = None

    try:
        with open(filename, 'r') as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith('#'):
                    continue

                parts = line.split()
                cmd = parts[0]
                try:
                    if cmd == 'newmtl':
                        current = MtlRecord(' '.join(parts[1:]))
                        records[current.name] = current
                    elif cmd == 'Ka' and current is not None:
                        current.ka = _parse_color(parts[1:])
                    elif cmd == 'Kd' and current is not None:
                        current.kd = _parse_color(parts[1:])
                except (ValueError, IndexError):
                    logger.warning("%s:%d: skipping malformed line: %s", filename, line_num, line)
    except OSError as e:
        raise SceneError(f"Cannot read material library '{filename}': {e}") from e

    return records


class OBJLoader:
    """Loader for Wavefront OBJ files."""

    def __init__(self, default_material: Optional[Material] = None):
        self.default_material = default_material if default_material else Matte(Color(0.7, 0.7, 0.7))

    def load(self, filename: str, scale: float = 1.0, material: Optional[Material] = None) -> ObjAsset:
        """Load an OBJ file.

        Args:
            filename: Path to the OBJ file
            scale: Scale factor applied to every vertex
            material: Material for every face, ignoring the file's materials

        Returns:
            ObjAsset with one mesh per material used

        Raises:
            SceneError: If the file cannot be read or has no usable faces
        """
        path = Path(filename)
        if not path.is_file():
            raise SceneError(f"OBJ file not found: {filename}")

        vertices: List[List[float]] = []
        faces: Dict[str, List[List[int]]] = {}
        records: Dict[str, MtlRecord] = {}
        current = DEFAULT_MATERIAL_NAME

        try:
            with open(path, 'r') as f:
                lines = f.readlines()
        except OSError as e:
            raise SceneError(f"Cannot read OBJ file '{filename}': {e}") from e

        for line_num, line in enumerate(lines, 1):
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith('#'):
                continue

            parts = line.split()
            cmd = parts[0]

            try:
                if cmd == 'v':
                    vertices.append([float(parts[1]), float(parts[2]), float(parts[3])])

                elif cmd == 'f':
                    indices = [self._parse_index(p, len(vertices)) for p in parts[1:]]
                    if len(indices) < 3:
                        raise ValueError("face needs at least three vertices")
                    # Fan triangulation: v0, v1, v2 then v0, v2, v3 etc.
                    face_list = faces.setdefault(current, [])
                    for i in range(1, len(indices) - 1):
                        face_list.append([indices[0], indices[i], indices[i + 1]])

                elif cmd == 'usemtl':
                    current = ' '.join(parts[1:])

                elif cmd == 'mtllib':
                    for name in parts[1:]:
                        mtl_path = path.parent / name
                        if mtl_path.is_file():
                            records.update(load_mtl(str(mtl_path)))
                        else:
                            logger.warning("Material library not found: %s", mtl_path)

            except (ValueError, IndexError) as e:
                logger.warning("%s:%d: skipping malformed line (%s): %s", filename, line_num, e, line)

        if not faces:
            raise SceneError(f"OBJ file '{filename}' contains no faces")

        arena = np.array(vertices, dtype=np.float64).reshape(-1, 3) * scale
        asset = ObjAsset()

        for name, face_list in faces.items():
            if material is not None:
                mesh_material = material
            elif name in records:
                mesh_material = records[name].to_material()
            else:
                if name != DEFAULT_MATERIAL_NAME:
                    logger.warning("Material '%s' not defined, using default", name)
                mesh_material = self.default_material

            mesh = TriangleMesh(arena, np.array(face_list), mesh_material, name=name or path.stem)
            if not len(mesh):
                continue
            asset.meshes.append(mesh)
            asset.materials[name] = mesh_material

            if isinstance(mesh_material, Emissive):
                asset.lights.append(AreaLight(mesh.triangles, mesh_material))

        logger.info(
            "Loaded %s: %d vertices, %d triangles, %d meshes, %d area lights",
            filename, len(arena), asset.triangle_count, len(asset.meshes), len(asset.lights)
        )
        return asset

    @staticmethod
    def _parse_index(part: str, vertex_count: int) -> int:
        """Resolve the position index of a v, v/vt, v/vt/vn or v//vn token."""
        index = int(part.split('/')[0])
        if index < 0:
            index = vertex_count + index
        else:
            index -= 1  # Convert to 0-indexed
        if not 0 <= index < vertex_count:
            raise ValueError(f"vertex index {part} out of range")
        return index


def load_obj(filename: str, scale: float = 1.0, material: Optional[Material] = None) -> ObjAsset:
    """Convenience function to load an OBJ file.

    Args:
        filename: Path to the OBJ file
        scale: Scale factor for the mesh
        material: Material to apply to every face (uses the file's if None)

    Returns:
        ObjAsset with meshes, materials and area lights
    """
    return OBJLoader().load(filename, scale, material)
