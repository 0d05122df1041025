"""
In-memory scene graph consumed by the analysis engine.

A scene is a tree of :class:`SceneNode` objects. Each node carries a local
4x4 transform and zero or more :class:`MeshGeometry` leaves. Loaders build
the tree; analysis only reads it.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import numpy as np
from numpy.typing import NDArray

from mesh_volume.scene.transforms import as_matrix


@dataclass(eq=False)
class MeshGeometry:
    """One drawable triangle surface.

    Attributes:
        positions: Flat float64 vertex buffer, 3 values per vertex. An
            (N, 3) input is flattened.
        indices: Optional flat int64 index buffer, 3 indices per triangle.
            When None, consecutive vertex triples form the triangles.
        name: Optional label used in diagnostics.

    Buffers are stored as given; out-of-range indices or stride remainders
    are reported by :mod:`mesh_volume.validation`, not rejected here.
    """
    positions: NDArray[np.float64]
    indices: Optional[NDArray[np.int64]] = None
    name: str = ""

    def __post_init__(self):
        self.positions = np.asarray(self.positions, dtype=np.float64).reshape(-1)
        if self.indices is not None:
            self.indices = np.asarray(self.indices).reshape(-1).astype(np.int64, copy=False)

    @property
    def is_indexed(self) -> bool:
        return self.indices is not None

    @property
    def vertex_count(self) -> int:
        return len(self.positions) // 3

    @property
    def index_count(self) -> int:
        return 0 if self.indices is None else len(self.indices)

    @property
    def face_count(self) -> int:
        """Triangle count, truncated when the buffer length is not a multiple of 3."""
        if self.indices is not None:
            return len(self.indices) // 3
        return self.vertex_count // 3

    @property
    def vertices(self) -> NDArray[np.float64]:
        """Vertex buffer as an (N, 3) view; trailing partial values are dropped."""
        n = self.vertex_count
        return self.positions[:3 * n].reshape(n, 3)

    def __repr__(self) -> str:
        kind = "indexed" if self.is_indexed else "triangle-list"
        return (f"MeshGeometry(name={self.name!r}, {kind}, "
                f"vertices={self.vertex_count}, faces={self.face_count})")


@dataclass(eq=False)
class SceneNode:
    """A node of the scene graph.

    Attributes:
        name: Node label (used to build mesh paths in diagnostics)
        matrix: Local 4x4 transform relative to the parent node
        meshes: Geometry attached to this node
        children: Child nodes
    """
    name: str = ""
    matrix: NDArray[np.float64] = field(default_factory=lambda: np.eye(4))
    meshes: List[MeshGeometry] = field(default_factory=list)
    children: List['SceneNode'] = field(default_factory=list)

    def __post_init__(self):
        self.matrix = as_matrix(self.matrix)

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0

    @property
    def has_geometry(self) -> bool:
        return len(self.meshes) > 0

    def add_child(self, child: 'SceneNode') -> 'SceneNode':
        """Attach ``child`` and return it (for chained building)."""
        self.children.append(child)
        return child

    def add_mesh(self, geometry: MeshGeometry) -> MeshGeometry:
        self.meshes.append(geometry)
        return geometry

    def walk(self) -> Iterator['SceneNode']:
        """Yield this node and all descendants, depth-first pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        return (f"SceneNode(name={self.name!r}, meshes={len(self.meshes)}, "
                f"children={len(self.children)})")
