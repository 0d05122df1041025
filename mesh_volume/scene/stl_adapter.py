"""
Bridge from numpy-stl meshes to the scene graph.

numpy-stl does the file parsing; this module only re-expresses an already
loaded ``stl.mesh.Mesh`` as :class:`MeshGeometry` so it can be analyzed
alongside geometry from any other loader.
"""

import logging
from typing import Iterable, Optional

import numpy as np
from stl import mesh

from mesh_volume.scene.graph import MeshGeometry, SceneNode

logger = logging.getLogger(__name__)


def geometry_from_stl_mesh(
    stl_mesh: mesh.Mesh,
    name: str = "",
    weld: bool = False,
    decimals: int = 6,
) -> MeshGeometry:
    """Convert a numpy-stl mesh to :class:`MeshGeometry`.

    Args:
        stl_mesh: Loaded numpy-stl mesh
        name: Label for the resulting geometry
        weld: Merge coincident vertices into an indexed buffer. Coordinates
            are rounded to ``decimals`` places to absorb float32 noise.
        decimals: Rounding precision used when welding

    Returns:
        Triangle-list geometry (``weld=False``) or indexed geometry
    """
    triangles = np.asarray(stl_mesh.vectors, dtype=np.float64).reshape(-1, 3)

    if not weld or len(triangles) == 0:
        return MeshGeometry(positions=triangles, name=name)

    keys = np.round(triangles, decimals)
    unique, inverse = np.unique(keys, axis=0, return_inverse=True)

    logger.debug(
        "Welded STL vertices: %d -> %d", len(triangles), len(unique),
        extra={'mesh': name},
    )
    return MeshGeometry(positions=unique, indices=inverse.reshape(-1), name=name)


def scene_from_stl_meshes(
    stl_meshes: Iterable[mesh.Mesh],
    names: Optional[Iterable[str]] = None,
    weld: bool = False,
) -> SceneNode:
    """Build a flat scene: one identity-transform root holding every mesh."""
    root = SceneNode(name="stl")
    name_list = list(names) if names is not None else []

    for i, stl_mesh in enumerate(stl_meshes):
        name = name_list[i] if i < len(name_list) else f"stl_{i}"
        root.add_mesh(geometry_from_stl_mesh(stl_mesh, name=name, weld=weld))

    return root
