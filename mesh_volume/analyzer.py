"""
Volumetric analysis of a scene graph.

Provides:
- Enclosed volume per mesh (signed tetrahedron sum, divergence theorem)
- Surface area per mesh and in total
- Combined axis-aligned bounding box
- Complexity classification from vertex/face totals

Volume convention: each mesh's signed sum is taken in absolute value once,
then the per-mesh volumes are added. A mesh may be wound inward or outward
as long as it is consistent; nested or overlapping shells do not cancel.

Malformed meshes are skipped and reported in ``diagnostics``; open or
degenerate meshes still produce well-defined (if meaningless) numbers.
"""

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from mesh_volume.analysis_config import AnalysisConfig
from mesh_volume.complexity import ComplexityClass, classify_complexity
from mesh_volume.extractor import (
    DEFAULT_CHUNK_SIZE,
    MeshRecord,
    extract_geometry,
    iter_triangles,
    world_vertices,
)
from mesh_volume.geometry.mesh_stats import (
    BoundingBox,
    signed_volume,
    surface_area,
    union_boxes,
)
from mesh_volume.logging_config import log_timing
from mesh_volume.scene.graph import SceneNode
from mesh_volume.validation import (
    ValidationIssue,
    ValidationSeverity,
    check_geometry,
    validate_geometry,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeshVolume:
    """Measurements of a single mesh instance in world space.

    Attributes:
        name: Geometry name or node path
        signed_volume: Raw signed sum (negative for inward winding)
        volume: abs(signed_volume)
        surface_area: Sum of triangle areas
        bounding_box: World-space AABB, None for a mesh without vertices
    """
    name: str
    signed_volume: float
    volume: float
    surface_area: float
    bounding_box: Optional[BoundingBox]
    vertex_count: int
    face_count: int

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'signed_volume': self.signed_volume,
            'volume': self.volume,
            'surface_area': self.surface_area,
            'bounding_box': self.bounding_box.to_dict() if self.bounding_box else None,
            'vertex_count': self.vertex_count,
            'face_count': self.face_count,
        }


@dataclass(frozen=True)
class VolumeAnalysisResult:
    """Aggregate analysis of a scene.

    Attributes:
        volume: Sum of per-mesh absolute volumes (cubic units)
        surface_area: Total triangle area (square units)
        bounding_box: Union AABB of every analyzed mesh
        mesh_count: Meshes that contributed to the totals
        total_vertices: Vertex total over contributing meshes
        total_faces: Face total over contributing meshes
        complexity_class: Heuristic density tier
        meshes: Per-mesh breakdown, in traversal order
        diagnostics: Issues for skipped or suspicious meshes
        skipped_meshes: Names of malformed meshes left out of every total
    """
    volume: float
    surface_area: float
    bounding_box: BoundingBox
    mesh_count: int
    total_vertices: int
    total_faces: int
    complexity_class: ComplexityClass
    meshes: Tuple[MeshVolume, ...] = ()
    diagnostics: Tuple[ValidationIssue, ...] = ()
    skipped_meshes: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> 'VolumeAnalysisResult':
        """Zero-valued result for a scene without geometry."""
        return cls(
            volume=0.0,
            surface_area=0.0,
            bounding_box=BoundingBox.empty(),
            mesh_count=0,
            total_vertices=0,
            total_faces=0,
            complexity_class=classify_complexity(0, 0),
        )

    @property
    def is_empty(self) -> bool:
        return self.mesh_count == 0

    @property
    def skipped_mesh_count(self) -> int:
        return len(self.skipped_meshes)

    @property
    def bounding_box_volume(self) -> float:
        """Width * height * depth of the AABB; coarser than ``volume``."""
        return self.bounding_box.volume

    @property
    def volume_to_surface_ratio(self) -> float:
        """volume / surface_area, 0.0 when there is no surface."""
        if self.surface_area == 0:
            return 0.0
        return self.volume / self.surface_area

    @property
    def dimensions(self) -> Tuple[float, float, float]:
        size = self.bounding_box.size
        return (float(size[0]), float(size[1]), float(size[2]))

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'volume': self.volume,
            'surface_area': self.surface_area,
            'bounding_box': self.bounding_box.to_dict(),
            'bounding_box_volume': self.bounding_box_volume,
            'volume_to_surface_ratio': self.volume_to_surface_ratio,
            'mesh_count': self.mesh_count,
            'total_vertices': self.total_vertices,
            'total_faces': self.total_faces,
            'complexity_class': self.complexity_class.value,
            'meshes': [m.to_dict() for m in self.meshes],
            'diagnostics': [d.to_dict() for d in self.diagnostics],
            'skipped_meshes': list(self.skipped_meshes),
        }

    def summary(self) -> str:
        """Generate human-readable summary."""
        dims = self.dimensions
        lines = [
            "Volume Analysis",
            "=" * 40,
            f"Meshes:       {self.mesh_count:,}",
            f"Vertices:     {self.total_vertices:,}",
            f"Faces:        {self.total_faces:,}",
            f"Complexity:   {self.complexity_class.value} "
            f"({self.complexity_class.description})",
            "",
            f"Dimensions:   {dims[0]:.4g} x {dims[1]:.4g} x {dims[2]:.4g}",
            f"Bbox Volume:  {self.bounding_box_volume:.6g}",
            "",
            f"Surface Area: {self.surface_area:.6g}",
            f"Mesh Volume:  {self.volume:.6g}",
            f"Vol/Area:     {self.volume_to_surface_ratio:.6g}",
        ]
        if self.skipped_meshes:
            lines.append("")
            lines.append(f"Skipped:      {', '.join(self.skipped_meshes)}")
        if self.diagnostics:
            lines.append("")
            lines.append("Diagnostics:")
            for issue in self.diagnostics:
                lines.append(f"  - {issue}")
        return "\n".join(lines)


def analyze_mesh_record(
    record: MeshRecord,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> MeshVolume:
    """Measure one mesh record.

    Raises:
        MalformedGeometryError: if the record's buffers are malformed
    """
    vertices = world_vertices(record)
    signed = 0.0
    area = 0.0
    for block in iter_triangles(record, chunk_size, vertices=vertices):
        signed += signed_volume(block)
        area += surface_area(block)

    return MeshVolume(
        name=record.name,
        signed_volume=signed,
        volume=abs(signed),
        surface_area=area,
        bounding_box=BoundingBox.from_points(vertices),
        vertex_count=record.vertex_count,
        face_count=record.face_count,
    )


def _analyze_one(
    record: MeshRecord,
    config: AnalysisConfig,
) -> Tuple[Optional[MeshVolume], List[ValidationIssue]]:
    """Analyze a record, returning (None, errors) for malformed geometry."""
    errors = check_geometry(record.geometry)
    if errors:
        errors = [_with_name(issue, record.name) for issue in errors]
        logger.warning(
            "Skipping malformed mesh %s: %s", record.name,
            ", ".join(issue.code for issue in errors),
        )
        return None, errors

    mesh = analyze_mesh_record(record, config.compute.chunk_size)

    issues: List[ValidationIssue] = []
    if config.validation.report_quality:
        report = validate_geometry(record.geometry, record.world_matrix, config.validation)
        issues = [
            _with_name(issue, record.name) for issue in report.issues
            if issue.severity != ValidationSeverity.INFO
        ]

    logger.debug(
        "Mesh analyzed: %s", record.name,
        extra={
            'signed_volume': mesh.signed_volume,
            'surface_area': mesh.surface_area,
            'faces': mesh.face_count,
        }
    )
    return mesh, issues


def _with_name(issue: ValidationIssue, name: str) -> ValidationIssue:
    if issue.mesh_name:
        return issue
    return ValidationIssue(
        code=issue.code,
        severity=issue.severity,
        message=issue.message,
        count=issue.count,
        details=issue.details,
        mesh_name=name,
    )


def analyze_records(
    records: Sequence[MeshRecord],
    config: Optional[AnalysisConfig] = None,
) -> VolumeAnalysisResult:
    """Aggregate per-mesh measurements into a :class:`VolumeAnalysisResult`.

    With ``config.compute.max_workers > 1`` meshes are measured on a thread
    pool; partial sums are combined in record order either way.
    """
    config = config or AnalysisConfig()
    records = list(records)

    if not records:
        return VolumeAnalysisResult.empty()

    workers = min(config.compute.max_workers, len(records))
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # tasks run in a copy of the caller's context (LogContext fields)
            futures = [
                executor.submit(contextvars.copy_context().run, _analyze_one, r, config)
                for r in records
            ]
            outcomes = [f.result() for f in futures]
    else:
        outcomes = [_analyze_one(r, config) for r in records]

    meshes: List[MeshVolume] = []
    diagnostics: List[ValidationIssue] = []
    skipped: List[str] = []
    for record, (mesh, issues) in zip(records, outcomes):
        diagnostics.extend(issues)
        if mesh is None:
            skipped.append(record.name)
        else:
            meshes.append(mesh)

    total_vertices = sum(m.vertex_count for m in meshes)
    total_faces = sum(m.face_count for m in meshes)

    return VolumeAnalysisResult(
        volume=float(sum(m.volume for m in meshes)),
        surface_area=float(sum(m.surface_area for m in meshes)),
        bounding_box=union_boxes(m.bounding_box for m in meshes),
        mesh_count=len(meshes),
        total_vertices=total_vertices,
        total_faces=total_faces,
        complexity_class=classify_complexity(
            total_vertices, total_faces, config.complexity.tiers
        ),
        meshes=tuple(meshes),
        diagnostics=tuple(diagnostics),
        skipped_meshes=tuple(skipped),
    )


def analyze_scene(
    root: SceneNode,
    config: Optional[AnalysisConfig] = None,
    root_matrix: Optional[NDArray[np.float64]] = None,
) -> VolumeAnalysisResult:
    """Analyze every mesh under ``root``.

    Args:
        root: Scene graph root with local node transforms
        config: Analysis configuration (defaults if None)
        root_matrix: Extra transform above the root, e.g. a unit conversion

    Returns:
        VolumeAnalysisResult; an empty scene gives the zero result

    Example:
        >>> result = analyze_scene(root)
        >>> print(f"{result.volume:.3f} units^3 in {result.mesh_count} meshes")
    """
    extraction = extract_geometry(root, root_matrix)

    with log_timing(logger, "Scene volume analysis",
                    meshes=extraction.mesh_count) as info:
        result = analyze_records(extraction.records, config)
        info['volume'] = result.volume
        info['surface_area'] = result.surface_area
        info['skipped'] = result.skipped_mesh_count
        info['triangles'] = result.total_faces

    if result.is_empty and not result.skipped_meshes:
        logger.info("Scene contains no mesh geometry")

    return result
