"""
Triangle-level measurements.

Provides:
- Axis-aligned bounding box with union support
- Per-triangle signed tetrahedron volumes (divergence theorem)
- Per-triangle areas and totals

All functions take world-space triangle blocks of shape (K, 3, 3):
K triangles, 3 corners, xyz.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True, eq=False)
class BoundingBox:
    """Axis-Aligned Bounding Box (AABB).

    Attributes:
        min_point: Minimum corner (x_min, y_min, z_min)
        max_point: Maximum corner (x_max, y_max, z_max)
    """
    min_point: NDArray[np.float64]
    max_point: NDArray[np.float64]

    def __post_init__(self):
        # stored as read-only float64 copies
        for name in ('min_point', 'max_point'):
            arr = np.array(getattr(self, name), dtype=np.float64)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundingBox):
            return NotImplemented
        return bool(
            np.array_equal(self.min_point, other.min_point) and
            np.array_equal(self.max_point, other.max_point)
        )

    @classmethod
    def empty(cls) -> 'BoundingBox':
        """Zero box reported for scenes without vertices."""
        return cls(min_point=np.zeros(3), max_point=np.zeros(3))

    @classmethod
    def from_points(cls, points: NDArray[np.float64]) -> Optional['BoundingBox']:
        """Box around an (N, 3) point array, or None when N == 0."""
        points = np.asarray(points, dtype=np.float64)
        if len(points) == 0:
            return None
        return cls(min_point=points.min(axis=0), max_point=points.max(axis=0))

    @property
    def size(self) -> NDArray[np.float64]:
        """Box extents (width, height, depth)."""
        return self.max_point - self.min_point

    @property
    def width(self) -> float:
        return float(self.size[0])

    @property
    def height(self) -> float:
        return float(self.size[1])

    @property
    def depth(self) -> float:
        return float(self.size[2])

    @property
    def center(self) -> NDArray[np.float64]:
        return (self.min_point + self.max_point) / 2

    @property
    def volume(self) -> float:
        """Box volume (width * height * depth), not the enclosed mesh volume."""
        size = self.size
        return float(size[0] * size[1] * size[2])

    @property
    def diagonal(self) -> float:
        return float(np.linalg.norm(self.size))

    def union(self, other: 'BoundingBox') -> 'BoundingBox':
        """Smallest box containing both boxes."""
        return BoundingBox(
            min_point=np.minimum(self.min_point, other.min_point),
            max_point=np.maximum(self.max_point, other.max_point),
        )

    def translated(self, offset: NDArray[np.float64]) -> 'BoundingBox':
        offset = np.asarray(offset, dtype=np.float64)
        return BoundingBox(self.min_point + offset, self.max_point + offset)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'min': self.min_point.tolist(),
            'max': self.max_point.tolist(),
            'size': self.size.tolist(),
            'center': self.center.tolist(),
            'volume': self.volume,
        }


def union_boxes(boxes: Iterable[Optional[BoundingBox]]) -> BoundingBox:
    """Union of all non-None boxes; the zero box when there are none."""
    result: Optional[BoundingBox] = None
    for box in boxes:
        if box is None:
            continue
        result = box if result is None else result.union(box)
    return result if result is not None else BoundingBox.empty()


def triangle_signed_volumes(triangles: NDArray[np.float64]) -> NDArray[np.float64]:
    """Signed volume of the tetrahedron each triangle forms with the origin.

    Formula: V_i = (1/6) * v0 . (v1 x v2)

    Outward (counter-clockwise seen from outside) winding gives positive
    contributions for a closed mesh.
    """
    if len(triangles) == 0:
        return np.zeros(0, dtype=np.float64)

    v0 = triangles[:, 0]
    v1 = triangles[:, 1]
    v2 = triangles[:, 2]

    cross = np.cross(v1, v2)
    return np.einsum('ij,ij->i', v0, cross) / 6.0


def triangle_areas(triangles: NDArray[np.float64]) -> NDArray[np.float64]:
    """Area of each triangle: 0.5 * |(v1 - v0) x (v2 - v0)|."""
    if len(triangles) == 0:
        return np.zeros(0, dtype=np.float64)

    v0 = triangles[:, 0]
    e1 = triangles[:, 1] - v0
    e2 = triangles[:, 2] - v0

    return 0.5 * np.linalg.norm(np.cross(e1, e2), axis=1)


def signed_volume(triangles: NDArray[np.float64]) -> float:
    """Signed enclosed volume of a triangle block.

    For a closed, consistently wound mesh this is the enclosed volume;
    negative means inward-facing normals.
    """
    return float(np.sum(triangle_signed_volumes(triangles)))


def surface_area(triangles: NDArray[np.float64]) -> float:
    """Total area of a triangle block."""
    return float(np.sum(triangle_areas(triangles)))
