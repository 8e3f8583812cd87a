"""
Triangle meshes and a Wavefront OBJ loader.

Supports:
- Vertices (v)
- Faces (f), including v/vt/vn index forms and negative indices
- Polygon faces (fan triangulated)

Everything else in the file (normals, texture coordinates, groups,
materials) is ignored.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

import numpy as np

from .vec3 import Vec3, DegenerateGeometryError
from .ray import Ray
from .primitives import Primitive, Collision, aabb_collision, EPSILON

logger = logging.getLogger(__name__)

# Determinant tolerance for the ray/triangle test
TRIANGLE_EPSILON = 1e-7
# Padding around the bounding box so flat meshes still have volume
AABB_PADDING = 1e-4


class MeshFormatError(Exception):
    """Error while parsing mesh data."""
    pass


class Mesh(Primitive):
    """A triangle mesh with a precomputed axis-aligned bounding box.

    Rays that miss the bounding box are rejected before any per-triangle
    work. The triangle test is vectorised over all faces.
    """

    def __init__(self, vertices: Sequence[Sequence[float]], faces: Sequence[Sequence[int]]):
        """Create a mesh.

        Args:
            vertices: List of (x, y, z) positions
            faces: List of (a, b, c) zero-based vertex indices

        Raises:
            DegenerateGeometryError: if there are no vertices, a face refers
                to a missing vertex, or a face has zero area
        """
        self.vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        self.faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)

        if len(self.vertices) == 0:
            raise DegenerateGeometryError("Mesh has no vertices")
        if len(self.faces) and (self.faces.min() < 0 or self.faces.max() >= len(self.vertices)):
            raise DegenerateGeometryError("Mesh face refers to a vertex that does not exist")

        self.corner, self.size = self.generate_bounding_box(self.vertices)

        # Pre-compute edges and face normals
        self._v0 = self.vertices[self.faces[:, 0]]
        self._e1 = self.vertices[self.faces[:, 1]] - self._v0
        self._e2 = self.vertices[self.faces[:, 2]] - self._v0
        cross = np.cross(self._e1, self._e2)
        lengths = np.linalg.norm(cross, axis=1)
        degenerate = np.flatnonzero(lengths < 1e-12)
        if len(degenerate):
            raise DegenerateGeometryError(
                f"Mesh face {int(degenerate[0])} has zero area"
            )
        self._normals = cross / lengths[:, None] if len(self.faces) else cross

    @staticmethod
    def generate_bounding_box(vertices: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Return the (corner, size) of the box enclosing all vertices."""
        minimum = vertices.min(axis=0) - AABB_PADDING
        maximum = vertices.max(axis=0) + AABB_PADDING
        return minimum, maximum - minimum

    def collides(self, ray: Ray) -> Optional[Collision]:
        """Bounding-box reject, then Möller-Trumbore against every face."""
        if len(self.faces) == 0 or not aabb_collision(ray, self.corner, self.size):
            return None

        d = ray.dir._data
        s = ray.src._data

        q = np.cross(d, self._e2)
        a = np.einsum('ij,ij->i', self._e1, q)
        # Back faces are culled
        valid = (np.abs(a) > TRIANGLE_EPSILON) & (self._normals @ d < 0.0)
        if not valid.any():
            return None

        with np.errstate(divide='ignore', invalid='ignore'):
            sv = (s - self._v0) / a[:, None]
            r = np.cross(sv, self._e1)
            x = np.einsum('ij,ij->i', sv, q)
            y = r @ d
            z = 1.0 - x - y
            t = np.einsum('ij,ij->i', self._e2, r)

        valid &= (x >= 0.0) & (y >= 0.0) & (z >= 0.0) & (t > EPSILON)
        if not valid.any():
            return None

        t = np.where(valid, t, np.inf)
        i = int(np.argmin(t))
        return Collision(float(t[i]), Vec3.from_array(self._normals[i]), float(x[i]), float(y[i]))

    def __len__(self) -> int:
        return len(self.faces)

    def __repr__(self) -> str:
        return f"Mesh(vertices={len(self.vertices)}, faces={len(self.faces)})"


class OBJLoader:
    """Loader for the geometry subset of Wavefront OBJ files."""

    def __init__(self):
        self.vertices: list[tuple[float, float, float]] = []
        self.faces: list[tuple[int, int, int]] = []

    def load(self, filename: str) -> Mesh:
        """Load an OBJ file into a Mesh.

        Raises:
            FileNotFoundError: if the file does not exist
            MeshFormatError: on malformed vertex or face lines
        """
        path = Path(filename)
        if not path.exists():
            raise FileNotFoundError(f"Mesh file not found: {filename}")

        with open(path, 'r') as f:
            mesh = self.parse(f, source=str(path))

        logger.info("Loaded mesh %s: %d vertices, %d faces",
                    path.name, len(mesh.vertices), len(mesh.faces))
        return mesh

    def parse(self, lines: Iterable[str], source: str = '<string>') -> Mesh:
        """Parse OBJ lines into a Mesh."""
        self.vertices = []
        self.faces = []

        for line_num, line in enumerate(lines, 1):
            line = line.strip()

            # Skip empty lines and comments
            if not line or line.startswith('#'):
                continue

            parts = line.split()
            cmd = parts[0]

            try:
                if cmd == 'v':
                    if len(parts) < 4:
                        raise MeshFormatError("vertex needs 3 coordinates")
                    self.vertices.append((float(parts[1]), float(parts[2]), float(parts[3])))

                elif cmd == 'f':
                    if len(parts) < 4:
                        raise MeshFormatError("face needs at least 3 vertices")
                    indices = [self._parse_index(p) for p in parts[1:]]
                    self.faces.extend(self._triangulate_face(indices))

            except (ValueError, MeshFormatError) as e:
                raise MeshFormatError(f"{source}:{line_num}: {e}") from e

        if not self.vertices:
            raise MeshFormatError(f"{source}: no vertices found")

        try:
            return Mesh(self.vertices, self.faces)
        except DegenerateGeometryError as e:
            raise MeshFormatError(f"{source}: {e}") from e

    def _parse_index(self, token: str) -> int:
        """Parse the position index of a face vertex (v, v/vt, v//vn, v/vt/vn)."""
        idx = int(token.split('/')[0])
        if idx == 0:
            raise MeshFormatError("face index 0 is not valid")
        if idx < 0:
            # Negative indices count back from the most recent vertex
            idx = len(self.vertices) + idx
        else:
            idx -= 1
        if not 0 <= idx < len(self.vertices):
            raise MeshFormatError(f"face index {token} out of range")
        return idx

    @staticmethod
    def _triangulate_face(indices: list[int]) -> list[tuple[int, int, int]]:
        """Fan-triangulate a polygon face."""
        return [
            (indices[0], indices[i], indices[i + 1])
            for i in range(1, len(indices) - 1)
        ]


def load_mesh(filename: str) -> Mesh:
    """Convenience function to load an OBJ file.

    Args:
        filename: Path to the OBJ file

    Returns:
        Mesh ready to be attached to a scene node
    """
    return OBJLoader().load(filename)


def parse_obj(lines: Iterable[str], source: str = '<string>') -> Mesh:
    """Parse OBJ text (an iterable of lines) into a Mesh."""
    return OBJLoader().parse(lines, source)
