"""Vectorised triangle measurements: bounding boxes, volumes, areas."""

from mesh_volume.geometry.mesh_stats import (
    BoundingBox,
    signed_volume,
    surface_area,
    triangle_areas,
    triangle_signed_volumes,
    union_boxes,
)

__all__ = [
    "BoundingBox",
    "signed_volume",
    "surface_area",
    "triangle_areas",
    "triangle_signed_volumes",
    "union_boxes",
]
