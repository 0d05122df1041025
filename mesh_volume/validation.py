"""
Mesh validation pass.

Two kinds of findings:
- Malformed buffers (ERROR): the geometry cannot be read as triangles.
  Analysis skips such meshes and reports them.
  Codes: POSITION_STRIDE, INDEX_STRIDE, VERTEX_STRIDE, NEGATIVE_INDEX,
  INDEX_OUT_OF_RANGE.
- Data quality (WARNING/INFO): the mesh is readable but its volume may be
  meaningless. Codes: NON_FINITE_VERTICES, DEGENERATE_FACES, BOUNDARY_EDGES,
  NON_MANIFOLD_EDGES, INCONSISTENT_WINDING, EMPTY_MESH.

Quality findings never block processing.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from mesh_volume.analysis_config import ValidationConfig
from mesh_volume.errors import MalformedGeometryError
from mesh_volume.geometry.mesh_stats import triangle_areas
from mesh_volume.scene.graph import MeshGeometry, SceneNode
from mesh_volume.scene.transforms import apply_transform, as_matrix

logger = logging.getLogger(__name__)

MAX_DETAILS = 10


class ValidationSeverity(Enum):
    """Severity level of validation issues."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ValidationIssue:
    """A single finding for one mesh."""
    code: str
    severity: ValidationSeverity
    message: str
    count: int = 1
    details: Tuple[int, ...] = ()  # first offending buffer/face positions
    mesh_name: str = ""

    def __str__(self) -> str:
        where = f"{self.mesh_name}: " if self.mesh_name else ""
        text = f"[{self.severity.value.upper()}] {where}{self.code}: {self.message}"
        if self.count > 1:
            text += f" ({self.count} occurrences)"
        return text

    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'severity': self.severity.value,
            'message': self.message,
            'count': self.count,
            'details': list(self.details),
            'mesh': self.mesh_name,
        }


@dataclass
class ValidationReport:
    """Validation findings for one mesh."""
    mesh_name: str
    n_vertices: int
    n_faces: int
    is_well_formed: bool
    is_closed: bool = False
    is_manifold: bool = False
    is_consistently_wound: bool = False
    n_boundary_edges: int = 0
    n_non_manifold_edges: int = 0
    n_degenerate_faces: int = 0
    n_non_finite_vertices: int = 0
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """True when the mesh has no ERROR-level issues."""
        return not self.errors

    @property
    def is_watertight(self) -> bool:
        return self.is_closed and self.is_manifold

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            f"Mesh Validation Report: {self.mesh_name or '<unnamed>'}",
            "=" * 40,
            f"Vertices: {self.n_vertices}",
            f"Faces: {self.n_faces}",
            "",
            f"Well-formed: {'Yes' if self.is_well_formed else 'No'}",
        ]
        if self.is_well_formed:
            lines.extend([
                f"Closed: {'Yes' if self.is_closed else 'No'}",
                f"Manifold: {'Yes' if self.is_manifold else 'No'}",
                f"Consistent winding: {'Yes' if self.is_consistently_wound else 'No'}",
                f"Degenerate faces: {self.n_degenerate_faces}",
                f"Boundary edges: {self.n_boundary_edges}",
                f"Non-manifold edges: {self.n_non_manifold_edges}",
            ])

        if self.issues:
            lines.append("")
            lines.append("Issues:")
            for issue in self.issues:
                lines.append(f"  - {issue}")

        lines.append("")
        lines.append(f"Overall: {'VALID' if self.is_valid else 'INVALID'}")
        return "\n".join(lines)


@dataclass
class SceneValidationReport:
    """Validation reports for every mesh of a scene."""
    reports: List[ValidationReport] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return all(r.is_valid for r in self.reports)

    @property
    def issues(self) -> List[ValidationIssue]:
        return [issue for r in self.reports for issue in r.issues]

    @property
    def malformed(self) -> List[ValidationReport]:
        return [r for r in self.reports if not r.is_well_formed]

    def summary(self) -> str:
        lines = [
            "Scene Validation Report",
            "=" * 40,
            f"Meshes: {len(self.reports)}",
            f"Malformed: {len(self.malformed)}",
            f"Watertight: {sum(1 for r in self.reports if r.is_watertight)}",
        ]
        if self.issues:
            lines.append("")
            lines.append("Issues:")
            for issue in self.issues:
                lines.append(f"  - {issue}")
        lines.append("")
        lines.append(f"Overall: {'VALID' if self.is_valid else 'INVALID'}")
        return "\n".join(lines)


def _first(mask: NDArray[np.bool_]) -> Tuple[int, ...]:
    return tuple(int(i) for i in np.flatnonzero(mask)[:MAX_DETAILS])


def check_geometry(geometry: MeshGeometry) -> List[ValidationIssue]:
    """Return ERROR issues that make ``geometry`` unreadable as triangles.

    An empty list means every index is in range and the buffers hold whole
    triangles.
    """
    issues: List[ValidationIssue] = []
    name = geometry.name

    def error(code: str, message: str, count: int = 1,
              details: Tuple[int, ...] = ()) -> None:
        issues.append(ValidationIssue(
            code=code,
            severity=ValidationSeverity.ERROR,
            message=message,
            count=count,
            details=details,
            mesh_name=name,
        ))

    n_values = len(geometry.positions)
    if n_values % 3:
        error("POSITION_STRIDE",
              f"Position buffer has {n_values} values, not a multiple of 3")

    n_vertices = geometry.vertex_count

    if geometry.indices is None:
        if n_vertices % 3:
            error("VERTEX_STRIDE",
                  f"Non-indexed mesh has {n_vertices} vertices, not a multiple of 3")
        return issues

    indices = geometry.indices
    if len(indices) % 3:
        error("INDEX_STRIDE",
              f"Index buffer has {len(indices)} entries, not a multiple of 3")

    negative = indices < 0
    n_negative = int(negative.sum())
    if n_negative:
        error("NEGATIVE_INDEX", "Index buffer contains negative indices",
              count=n_negative, details=_first(negative))

    out_of_range = indices >= n_vertices
    n_out = int(out_of_range.sum())
    if n_out:
        error("INDEX_OUT_OF_RANGE",
              f"Indices reference vertices >= vertex count {n_vertices}",
              count=n_out, details=_first(out_of_range))

    return issues


def require_well_formed(geometry: MeshGeometry) -> None:
    """Raise on the first malformed-buffer issue.

    Raises:
        MalformedGeometryError: if :func:`check_geometry` finds an error
    """
    issues = check_geometry(geometry)
    if issues:
        first = issues[0]
        raise MalformedGeometryError(first.code, first.message, geometry.name)


def _face_indices(
    geometry: MeshGeometry,
    vertices: NDArray[np.float64],
    decimals: int,
) -> NDArray[np.int64]:
    """(F, 3) face array; triangle lists are welded so edges can be shared."""
    if geometry.indices is not None:
        return geometry.indices.reshape(-1, 3)
    if len(vertices) == 0:
        return np.zeros((0, 3), dtype=np.int64)
    _, inverse = np.unique(np.round(vertices, decimals), axis=0, return_inverse=True)
    return inverse.reshape(-1, 3).astype(np.int64)


def _edge_stats(faces: NDArray[np.int64]) -> Tuple[int, int, int]:
    """Count (boundary, non-manifold, inconsistently wound) edges.

    A closed, consistently wound surface uses every undirected edge twice
    and every directed edge once.
    """
    directed = np.concatenate([faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [2, 0]]])
    directed = directed[directed[:, 0] != directed[:, 1]]
    if len(directed) == 0:
        return 0, 0, 0

    _, undirected_counts = np.unique(np.sort(directed, axis=1), axis=0, return_counts=True)
    _, directed_counts = np.unique(directed, axis=0, return_counts=True)

    n_boundary = int(np.sum(undirected_counts == 1))
    n_non_manifold = int(np.sum(undirected_counts > 2))
    n_flipped = int(np.sum(directed_counts > 1))
    return n_boundary, n_non_manifold, n_flipped


def validate_geometry(
    geometry: MeshGeometry,
    world_matrix: Optional[NDArray[np.float64]] = None,
    config: Optional[ValidationConfig] = None,
) -> ValidationReport:
    """Validate one mesh.

    Args:
        geometry: Mesh to check
        world_matrix: Transform applied before area checks (identity if None)
        config: Thresholds (defaults if None)

    Returns:
        ValidationReport; quality checks are skipped for malformed meshes
    """
    config = config or ValidationConfig()
    name = geometry.name
    n_vertices = geometry.vertex_count
    n_faces = geometry.face_count

    issues = check_geometry(geometry)
    if issues:
        logger.warning("Mesh %s is malformed: %s", name or "<unnamed>",
                       ", ".join(i.code for i in issues))
        return ValidationReport(
            mesh_name=name,
            n_vertices=n_vertices,
            n_faces=n_faces,
            is_well_formed=False,
            issues=issues,
        )

    def add(code: str, severity: ValidationSeverity, message: str,
            count: int = 1, details: Tuple[int, ...] = ()) -> None:
        issues.append(ValidationIssue(code, severity, message, count, details, name))

    if n_faces == 0:
        add("EMPTY_MESH", ValidationSeverity.INFO, "Mesh has no triangles")

    vertices = apply_transform(geometry.vertices, as_matrix(world_matrix))

    non_finite = ~np.all(np.isfinite(vertices), axis=1)
    n_non_finite = int(non_finite.sum())
    if n_non_finite:
        add("NON_FINITE_VERTICES", ValidationSeverity.WARNING,
            "Vertices with NaN or infinite coordinates",
            count=n_non_finite, details=_first(non_finite))

    faces = _face_indices(geometry, vertices, config.weld_decimals)

    areas = triangle_areas(vertices[faces]) if len(faces) else np.zeros(0)
    degenerate = areas < config.degenerate_area_threshold
    n_degenerate = int(degenerate.sum())
    if n_degenerate:
        add("DEGENERATE_FACES", ValidationSeverity.WARNING,
            "Faces with zero area", count=n_degenerate, details=_first(degenerate))

    n_boundary, n_non_manifold, n_flipped = _edge_stats(faces)
    if n_boundary:
        add("BOUNDARY_EDGES", ValidationSeverity.WARNING,
            "Mesh is open; enclosed volume is not meaningful", count=n_boundary)
    if n_non_manifold:
        add("NON_MANIFOLD_EDGES", ValidationSeverity.WARNING,
            "Edges shared by more than two faces", count=n_non_manifold)
    if n_flipped:
        add("INCONSISTENT_WINDING", ValidationSeverity.WARNING,
            "Adjacent faces with opposite winding", count=n_flipped)

    return ValidationReport(
        mesh_name=name,
        n_vertices=n_vertices,
        n_faces=n_faces,
        is_well_formed=True,
        is_closed=n_faces > 0 and n_boundary == 0,
        is_manifold=n_non_manifold == 0,
        is_consistently_wound=n_flipped == 0,
        n_boundary_edges=n_boundary,
        n_non_manifold_edges=n_non_manifold,
        n_degenerate_faces=n_degenerate,
        n_non_finite_vertices=n_non_finite,
        issues=issues,
    )


def validate_scene(
    root: SceneNode,
    config: Optional[ValidationConfig] = None,
) -> SceneValidationReport:
    """Validate every mesh of a scene in world space."""
    from mesh_volume.extractor import extract_geometry

    report = SceneValidationReport()
    for record in extract_geometry(root).records:
        mesh_report = validate_geometry(record.geometry, record.world_matrix, config)
        if not mesh_report.mesh_name:
            mesh_report.mesh_name = record.node_path
        report.reports.append(mesh_report)

    logger.info("Validation complete: %s (%d meshes)",
                "VALID" if report.is_valid else "INVALID", len(report.reports))
    return report
