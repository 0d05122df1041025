"""
Unit tests for mesh_volume.scene (graph model and transforms).

Tests:
- MeshGeometry buffer normalisation and counts
- SceneNode building and traversal
- Transform constructors, composition and application
"""

import numpy as np
import pytest

from mesh_volume.scene.graph import MeshGeometry, SceneNode
from mesh_volume.scene.transforms import (
    apply_transform,
    as_matrix,
    compose,
    identity,
    is_affine,
    rotation_matrix,
    scale_matrix,
    translation_matrix,
)


class TestMeshGeometry:
    """Tests for MeshGeometry dataclass."""

    def test_flattens_nx3_positions(self, unit_cube):
        assert unit_cube.positions.shape == (24,)
        assert unit_cube.vertices.shape == (8, 3)
        assert unit_cube.positions.dtype == np.float64

    def test_indexed_counts(self, unit_cube):
        assert unit_cube.is_indexed
        assert unit_cube.vertex_count == 8
        assert unit_cube.index_count == 36
        assert unit_cube.face_count == 12

    def test_triangle_list_counts(self, unit_cube_soup):
        assert not unit_cube_soup.is_indexed
        assert unit_cube_soup.vertex_count == 36
        assert unit_cube_soup.face_count == 12

    def test_face_count_truncates(self):
        geometry = MeshGeometry(positions=np.zeros(3 * 7))
        assert geometry.vertex_count == 7
        assert geometry.face_count == 2

    def test_indexed_face_count_truncates(self):
        geometry = MeshGeometry(positions=np.zeros(9), indices=[0, 1, 2, 0, 1])
        assert geometry.face_count == 1

    def test_partial_vertex_is_dropped(self):
        geometry = MeshGeometry(positions=[0.0, 1.0, 2.0, 3.0])
        assert geometry.vertex_count == 1
        assert np.allclose(geometry.vertices, [[0.0, 1.0, 2.0]])

    def test_indices_become_int64(self):
        geometry = MeshGeometry(positions=np.zeros(9), indices=np.array([0, 1, 2], dtype=np.uint16))
        assert geometry.indices.dtype == np.int64

    def test_empty_geometry(self):
        geometry = MeshGeometry(positions=[])
        assert geometry.vertex_count == 0
        assert geometry.face_count == 0
        assert geometry.vertices.shape == (0, 3)

    def test_compares_by_identity(self, unit_cube):
        twin = MeshGeometry(positions=unit_cube.positions, indices=unit_cube.indices)
        assert unit_cube == unit_cube
        assert unit_cube != twin
        assert len({unit_cube, twin}) == 2

    def test_repr_mentions_counts(self, unit_cube):
        text = repr(unit_cube)
        assert "indexed" in text
        assert "faces=12" in text


class TestSceneNode:
    """Tests for SceneNode dataclass."""

    def test_defaults(self):
        node = SceneNode()
        assert np.allclose(node.matrix, np.eye(4))
        assert not node.has_children
        assert not node.has_geometry

    def test_flat_matrix_accepted(self):
        node = SceneNode(matrix=list(range(16)))
        assert node.matrix.shape == (4, 4)
        assert node.matrix[0, 3] == 3

    def test_bad_matrix_rejected(self):
        with pytest.raises(ValueError):
            SceneNode(matrix=np.eye(3))

    def test_add_child_and_mesh(self, unit_cube):
        root = SceneNode(name="root")
        child = root.add_child(SceneNode(name="child"))
        child.add_mesh(unit_cube)
        assert root.has_children
        assert child.has_geometry
        assert child.meshes[0] is unit_cube

    def test_compares_by_identity(self):
        a = SceneNode(name="a")
        b = SceneNode(name="a")
        assert a != b
        assert a in [a, b]
        assert len({a, b}) == 2

    def test_walk_preorder(self):
        root = SceneNode(name="root")
        a = root.add_child(SceneNode(name="a"))
        a.add_child(SceneNode(name="a1"))
        root.add_child(SceneNode(name="b"))
        assert [n.name for n in root.walk()] == ["root", "a", "a1", "b"]


class TestTransforms:
    """Tests for transform helpers."""

    def test_identity(self):
        assert np.array_equal(identity(), np.eye(4))
        assert np.array_equal(as_matrix(None), np.eye(4))

    def test_translation(self):
        points = np.array([[1.0, 2.0, 3.0]])
        moved = apply_transform(points, translation_matrix([1, -2, 0.5]))
        assert np.allclose(moved, [[2.0, 0.0, 3.5]])

    def test_uniform_and_axis_scale(self):
        points = np.array([[1.0, 1.0, 1.0]])
        assert np.allclose(apply_transform(points, scale_matrix(2.0)), [[2, 2, 2]])
        assert np.allclose(apply_transform(points, scale_matrix([1, 2, 3])), [[1, 2, 3]])

    def test_rotation_about_z(self):
        points = np.array([[1.0, 0.0, 0.0]])
        rotated = apply_transform(points, rotation_matrix([0, 0, 1], np.pi / 2))
        assert np.allclose(rotated, [[0.0, 1.0, 0.0]], atol=1e-12)

    def test_rotation_is_orthonormal(self):
        R = rotation_matrix([1, 2, 3], 0.7)[:3, :3]
        assert np.allclose(R @ R.T, np.eye(3))
        assert np.isclose(np.linalg.det(R), 1.0)

    def test_zero_axis_rejected(self):
        with pytest.raises(ValueError):
            rotation_matrix([0, 0, 0], 1.0)

    def test_compose_applies_right_first(self):
        m = compose(translation_matrix([10, 0, 0]), scale_matrix(2.0))
        result = apply_transform(np.array([[1.0, 0.0, 0.0]]), m)
        # scale first (x=2), then translate (x=12)
        assert np.allclose(result, [[12.0, 0.0, 0.0]])

    def test_projective_divide(self):
        m = identity()
        m[3, 3] = 2.0
        assert not is_affine(m)
        result = apply_transform(np.array([[2.0, 4.0, 6.0]]), m)
        assert np.allclose(result, [[1.0, 2.0, 3.0]])

    def test_empty_points(self):
        result = apply_transform(np.zeros((0, 3)), translation_matrix([1, 1, 1]))
        assert result.shape == (0, 3)
