"""
mesh_volume: geometric analysis of triangle-mesh scene graphs.

Computes enclosed volume, surface area, bounding box, vertex/face counts and
a coarse complexity tag for an in-memory scene graph.

Usage:
    from mesh_volume import MeshGeometry, SceneNode, analyze_scene

    root = SceneNode(name="model")
    root.add_mesh(MeshGeometry(positions=vertices, indices=faces))
    result = analyze_scene(root)
    print(result.summary())
"""

from mesh_volume.analysis_config import AnalysisConfig, load_config
from mesh_volume.analyzer import (
    MeshVolume,
    VolumeAnalysisResult,
    analyze_records,
    analyze_scene,
)
from mesh_volume.complexity import ComplexityClass, classify_complexity
from mesh_volume.errors import MalformedGeometryError, MeshVolumeError
from mesh_volume.extractor import (
    ExtractionResult,
    MeshRecord,
    extract_geometry,
    iter_triangles,
)
from mesh_volume.geometry.mesh_stats import BoundingBox
from mesh_volume.logging_config import (
    LogContext,
    configure_default_logging,
    get_logger,
    log_timing,
    setup_logging,
    timed,
)
from mesh_volume.scene.graph import MeshGeometry, SceneNode
from mesh_volume.validation import (
    ValidationIssue,
    ValidationReport,
    ValidationSeverity,
    validate_scene,
)

__version__ = "0.1.0"

__all__ = [
    "AnalysisConfig",
    "BoundingBox",
    "ComplexityClass",
    "ExtractionResult",
    "LogContext",
    "MalformedGeometryError",
    "MeshGeometry",
    "MeshRecord",
    "MeshVolume",
    "MeshVolumeError",
    "SceneNode",
    "ValidationIssue",
    "ValidationReport",
    "ValidationSeverity",
    "VolumeAnalysisResult",
    "analyze_records",
    "analyze_scene",
    "classify_complexity",
    "configure_default_logging",
    "extract_geometry",
    "get_logger",
    "iter_triangles",
    "load_config",
    "log_timing",
    "setup_logging",
    "timed",
    "validate_scene",
]
