"""
Pytest configuration and fixtures for mesh_volume.

Provides:
- Closed reference shapes (unit cube, tetrahedron, pyramid) as geometry
- Scene graph fixtures
- numpy-stl cube mesh and file fixtures
- Assertion helpers
"""

from pathlib import Path
from typing import Tuple

import numpy as np
import pytest
from stl import mesh as stl_mesh

from mesh_volume.scene.graph import MeshGeometry, SceneNode


# ============================================================================
# Reference Shapes
# ============================================================================

# Unit cube [0, 1]^3, counter-clockwise seen from outside.
CUBE_VERTICES = np.array([
    [0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0],  # bottom
    [0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1],  # top
], dtype=np.float64)

CUBE_FACES = np.array([
    [0, 2, 1], [0, 3, 2],  # bottom (-z)
    [4, 5, 6], [4, 6, 7],  # top (+z)
    [0, 1, 5], [0, 5, 4],  # front (-y)
    [3, 7, 6], [3, 6, 2],  # back (+y)
    [0, 4, 7], [0, 7, 3],  # left (-x)
    [1, 2, 6], [1, 6, 5],  # right (+x)
], dtype=np.int64)

# Right tetrahedron with legs of length 1: volume 1/6.
TETRA_VERTICES = np.array([
    [0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1],
], dtype=np.float64)

TETRA_FACES = np.array([
    [0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3],
], dtype=np.int64)

# Square pyramid: base 2 x 2 at z=0, apex at (1, 1, 3). Volume 4.
PYRAMID_VERTICES = np.array([
    [0, 0, 0], [2, 0, 0], [2, 2, 0], [0, 2, 0], [1, 1, 3],
], dtype=np.float64)

PYRAMID_FACES = np.array([
    [0, 2, 1], [0, 3, 2],
    [0, 1, 4], [1, 2, 4], [2, 3, 4], [3, 0, 4],
], dtype=np.int64)


def cube_geometry(name: str = "cube") -> MeshGeometry:
    return MeshGeometry(positions=CUBE_VERTICES.copy(), indices=CUBE_FACES.copy(), name=name)


def triangle_list(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Expand an indexed mesh into a (3F, 3) triangle-list buffer."""
    return vertices[faces].reshape(-1, 3)


def single_mesh_scene(geometry: MeshGeometry, matrix=None) -> SceneNode:
    root = SceneNode(name="root")
    root.add_child(SceneNode(name="mesh", matrix=matrix, meshes=[geometry]))
    return root


# ============================================================================
# Geometry Fixtures
# ============================================================================

@pytest.fixture
def unit_cube() -> MeshGeometry:
    """Indexed outward-wound unit cube: 8 vertices, 12 triangles."""
    return cube_geometry()


@pytest.fixture
def unit_cube_soup() -> MeshGeometry:
    """Same cube as a non-indexed triangle list: 36 vertices."""
    return MeshGeometry(positions=triangle_list(CUBE_VERTICES, CUBE_FACES),
                        name="cube_soup")


@pytest.fixture
def tetrahedron() -> MeshGeometry:
    return MeshGeometry(positions=TETRA_VERTICES.copy(), indices=TETRA_FACES.copy(),
                        name="tetra")


@pytest.fixture
def pyramid() -> MeshGeometry:
    return MeshGeometry(positions=PYRAMID_VERTICES.copy(), indices=PYRAMID_FACES.copy(),
                        name="pyramid")


@pytest.fixture
def open_box() -> MeshGeometry:
    """Unit cube with the top face removed."""
    faces = np.delete(CUBE_FACES, [2, 3], axis=0)
    return MeshGeometry(positions=CUBE_VERTICES.copy(), indices=faces, name="open_box")


@pytest.fixture
def cube_scene(unit_cube) -> SceneNode:
    return single_mesh_scene(unit_cube)


@pytest.fixture
def two_cube_scene() -> SceneNode:
    """Unit cube at the origin and a copy translated by (5, 0, 0)."""
    from mesh_volume.scene.transforms import translation_matrix

    root = SceneNode(name="root")
    root.add_child(SceneNode(name="a", meshes=[cube_geometry("a")]))
    root.add_child(SceneNode(name="b", matrix=translation_matrix([5, 0, 0]),
                             meshes=[cube_geometry("b")]))
    return root


# ============================================================================
# numpy-stl Fixtures
# ============================================================================

@pytest.fixture
def stl_cube() -> stl_mesh.Mesh:
    """Unit cube as a numpy-stl mesh (12 facets)."""
    triangles = CUBE_VERTICES[CUBE_FACES]
    m = stl_mesh.Mesh(np.zeros(len(triangles), dtype=stl_mesh.Mesh.dtype))
    for i, tri in enumerate(triangles):
        m.vectors[i] = tri
    return m


@pytest.fixture
def cube_stl_path(tmp_path: Path, stl_cube: stl_mesh.Mesh) -> Path:
    path = tmp_path / "cube.stl"
    stl_cube.save(str(path))
    return path


# ============================================================================
# Assertion Helpers
# ============================================================================

def assert_bbox_approx(bbox, expected_min: Tuple[float, float, float],
                       expected_max: Tuple[float, float, float],
                       atol: float = 1e-9) -> None:
    """Assert that a BoundingBox matches expected corners within tolerance."""
    assert np.allclose(bbox.min_point, expected_min, atol=atol), \
        f"min: expected {expected_min}, got {bbox.min_point}"
    assert np.allclose(bbox.max_point, expected_max, atol=atol), \
        f"max: expected {expected_max}, got {bbox.max_point}"
