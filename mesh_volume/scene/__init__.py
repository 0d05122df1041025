"""Scene graph model and transform helpers."""

from mesh_volume.scene.graph import MeshGeometry, SceneNode
from mesh_volume.scene.transforms import (
    apply_transform,
    compose,
    identity,
    rotation_matrix,
    scale_matrix,
    translation_matrix,
)

__all__ = [
    "MeshGeometry",
    "SceneNode",
    "apply_transform",
    "compose",
    "identity",
    "rotation_matrix",
    "scale_matrix",
    "translation_matrix",
]
