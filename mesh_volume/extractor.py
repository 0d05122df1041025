"""
Geometry extraction: flatten a scene graph into world-space mesh records.

Node transforms in the input are local. The extractor composes them on the
way down (``world(child) = world(parent) @ local(child)``) and hands every
mesh the composed matrix of the node it is attached to. The scene itself is
never modified.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import numpy as np
from numpy.typing import NDArray

from mesh_volume.errors import MalformedGeometryError
from mesh_volume.scene.graph import MeshGeometry, SceneNode
from mesh_volume.scene.transforms import apply_transform, as_matrix
from mesh_volume.validation import require_well_formed

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 65536


@dataclass(frozen=True, eq=False)
class MeshRecord:
    """One mesh instance with its resolved world transform.

    Attributes:
        geometry: Source geometry (shared, not copied)
        world_matrix: Composed 4x4 transform from scene root to the owning node
        node_path: Slash-joined names of the nodes from root to owner
    """
    geometry: MeshGeometry
    world_matrix: NDArray[np.float64]
    node_path: str = ""

    @property
    def name(self) -> str:
        """Geometry name, falling back to the node path."""
        return self.geometry.name or self.node_path

    @property
    def vertex_count(self) -> int:
        return self.geometry.vertex_count

    @property
    def face_count(self) -> int:
        return self.geometry.face_count


@dataclass
class ExtractionResult:
    """Flattened scene: every mesh record plus raw totals over all of them."""
    records: List[MeshRecord] = field(default_factory=list)

    @property
    def mesh_count(self) -> int:
        return len(self.records)

    @property
    def total_vertices(self) -> int:
        return sum(r.vertex_count for r in self.records)

    @property
    def total_faces(self) -> int:
        return sum(r.face_count for r in self.records)


def extract_geometry(
    root: SceneNode,
    root_matrix: Optional[NDArray[np.float64]] = None,
) -> ExtractionResult:
    """Walk the scene and collect one :class:`MeshRecord` per attached mesh.

    Args:
        root: Scene root; its own matrix is applied too
        root_matrix: Extra transform placed above the root (identity if None)

    Returns:
        ExtractionResult in depth-first pre-order
    """
    result = ExtractionResult()
    parent_world = as_matrix(root_matrix)

    # Worklist of (node, parent world matrix, parent path).
    stack = [(root, parent_world, "")]
    while stack:
        node, parent, parent_path = stack.pop()
        world = parent @ node.matrix
        label = node.name or "node"
        path = f"{parent_path}/{label}" if parent_path else label

        for geometry in node.meshes:
            result.records.append(MeshRecord(
                geometry=geometry,
                world_matrix=world,
                node_path=path,
            ))

        for child in reversed(node.children):
            stack.append((child, world, path))

    logger.debug(
        "Extracted %d mesh records", result.mesh_count,
        extra={
            'vertices': result.total_vertices,
            'faces': result.total_faces,
        }
    )
    return result


def world_vertices(record: MeshRecord) -> NDArray[np.float64]:
    """Vertices of ``record`` transformed into scene space, shape (N, 3)."""
    return apply_transform(record.geometry.vertices, record.world_matrix)


def iter_triangles(
    record: MeshRecord,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    vertices: Optional[NDArray[np.float64]] = None,
) -> Iterator[NDArray[np.float64]]:
    """Yield world-space triangles of ``record`` in blocks of shape (K, 3, 3).

    Each block holds at most ``chunk_size`` triangles, so peak memory stays
    bounded for very large meshes. Calling again restarts the sequence.

    Args:
        record: Mesh record to enumerate
        chunk_size: Maximum triangles per block
        vertices: Precomputed :func:`world_vertices` output, if available

    Raises:
        MalformedGeometryError: if the buffers cannot form whole triangles
            or an index is out of range
    """
    require_well_formed(record.geometry)
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    world = world_vertices(record) if vertices is None else vertices
    geometry = record.geometry
    n_faces = geometry.face_count

    for start in range(0, n_faces, chunk_size):
        stop = min(start + chunk_size, n_faces)
        if geometry.indices is not None:
            faces = geometry.indices[3 * start:3 * stop].reshape(-1, 3)
            yield world[faces]
        else:
            yield world[3 * start:3 * stop].reshape(-1, 3, 3)


def iter_scene_triangles(
    root: SceneNode,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[NDArray[np.float64]]:
    """Yield triangle blocks for every well-formed mesh in the scene.

    Malformed meshes are skipped with a warning.
    """
    for record in extract_geometry(root).records:
        try:
            yield from iter_triangles(record, chunk_size)
        except MalformedGeometryError as e:
            logger.warning("Skipping mesh %s: %s", record.name, e)
