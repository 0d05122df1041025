"""
Unit tests for mesh_volume.complexity module.
"""

import pytest

from mesh_volume.complexity import ComplexityClass, classify_complexity


class TestClassifyComplexity:
    """Tests for classify_complexity function."""

    @pytest.mark.parametrize("vertices,faces,expected", [
        (0, 0, ComplexityClass.LOW),
        (999, 499, ComplexityClass.LOW),
        (1000, 499, ComplexityClass.MEDIUM),
        (999, 500, ComplexityClass.MEDIUM),
        (1000, 500, ComplexityClass.MEDIUM),
        (9999, 4999, ComplexityClass.MEDIUM),
        (10000, 4999, ComplexityClass.HIGH),
        (49999, 24999, ComplexityClass.HIGH),
        (50000, 24999, ComplexityClass.VERY_HIGH),
        (10, 25000, ComplexityClass.VERY_HIGH),
        (10 ** 7, 10 ** 7, ComplexityClass.VERY_HIGH),
    ])
    def test_default_tiers(self, vertices, faces, expected):
        assert classify_complexity(vertices, faces) == expected

    def test_both_counts_must_be_below(self):
        # plenty of vertices but few faces still leaves the low tier
        assert classify_complexity(5000, 10) == ComplexityClass.MEDIUM

    def test_custom_tiers(self):
        tiers = [(10, 10), (20, 20), (30, 30)]
        assert classify_complexity(9, 9, tiers) == ComplexityClass.LOW
        assert classify_complexity(15, 5, tiers) == ComplexityClass.MEDIUM
        assert classify_complexity(25, 25, tiers) == ComplexityClass.HIGH
        assert classify_complexity(30, 0, tiers) == ComplexityClass.VERY_HIGH


class TestComplexityClass:
    """Tests for ComplexityClass enum."""

    def test_ordering(self):
        assert ComplexityClass.LOW < ComplexityClass.MEDIUM < ComplexityClass.HIGH
        assert ComplexityClass.HIGH < ComplexityClass.VERY_HIGH
        assert sorted(ComplexityClass, reverse=True)[0] == ComplexityClass.VERY_HIGH

    def test_rank(self):
        assert [c.rank for c in ComplexityClass] == [0, 1, 2, 3]

    def test_str_and_value(self):
        assert str(ComplexityClass.VERY_HIGH) == "very-high"
        assert ComplexityClass("medium") is ComplexityClass.MEDIUM

    def test_descriptions(self):
        assert ComplexityClass.LOW.description == "simple geometry"
        assert ComplexityClass.VERY_HIGH.description == "complex/dense mesh"
