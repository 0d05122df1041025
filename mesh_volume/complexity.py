"""
Coarse structural-complexity tag derived from vertex and face totals.

This is a UI/heuristic signal for how dense a model is. It has no physical
meaning and should not be read as a precision metric.
"""

from enum import Enum
from typing import Optional, Sequence, Tuple

from mesh_volume.analysis_config import DEFAULT_COMPLEXITY_TIERS


class ComplexityClass(Enum):
    """Ordered complexity tiers."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very-high"

    @property
    def rank(self) -> int:
        """Ordinal position, 0 for LOW."""
        return _ORDER.index(self)

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    def __lt__(self, other: 'ComplexityClass') -> bool:
        if not isinstance(other, ComplexityClass):
            return NotImplemented
        return self.rank < other.rank

    def __str__(self) -> str:
        return self.value


_ORDER = (
    ComplexityClass.LOW,
    ComplexityClass.MEDIUM,
    ComplexityClass.HIGH,
    ComplexityClass.VERY_HIGH,
)

_DESCRIPTIONS = {
    ComplexityClass.LOW: "simple geometry",
    ComplexityClass.MEDIUM: "moderate detail",
    ComplexityClass.HIGH: "detailed geometry",
    ComplexityClass.VERY_HIGH: "complex/dense mesh",
}


def classify_complexity(
    total_vertices: int,
    total_faces: int,
    tiers: Optional[Sequence[Tuple[int, int]]] = None,
) -> ComplexityClass:
    """Classify a model by its vertex and face totals.

    Tiers are checked in increasing order; a tier applies only when both
    counts are strictly below its limits. Anything past the last tier is
    VERY_HIGH.

    Examples:
        >>> classify_complexity(999, 499)
        <ComplexityClass.LOW: 'low'>
        >>> classify_complexity(1000, 500)
        <ComplexityClass.MEDIUM: 'medium'>
    """
    limits = DEFAULT_COMPLEXITY_TIERS if tiers is None else tiers
    for tier_class, (max_vertices, max_faces) in zip(_ORDER, limits):
        if total_vertices < max_vertices and total_faces < max_faces:
            return tier_class
    return ComplexityClass.VERY_HIGH
