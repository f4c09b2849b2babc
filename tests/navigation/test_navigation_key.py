"""
Unit tests for the navigation key.

Tests the 2d6 direction table, displacement vectors and probabilities from
hexflower/navigation/navigation_key.py.
"""

from fractions import Fraction

import pytest

from hexflower.data_models import Direction, HexCoord, InvalidParameterError
from hexflower.navigation import (
    DIRECTION_VECTORS,
    NAVIGATION_KEY,
    navigation_probabilities,
    resolve_direction,
    rolls_for_direction,
)


class TestResolveDirection:
    """Tests for roll total lookup."""

    @pytest.mark.parametrize("total,expected", [
        (2, Direction.B),
        (3, Direction.B),
        (4, Direction.C),
        (5, Direction.C),
        (6, Direction.D),
        (7, Direction.D),
        (8, Direction.E),
        (9, Direction.E),
        (10, Direction.F),
        (11, Direction.F),
        (12, Direction.A),
    ])
    def test_table(self, total, expected):
        assert resolve_direction(total) == expected

    @pytest.mark.parametrize("total", [0, 1, 13, -7, 100])
    def test_out_of_range_rejected(self, total):
        with pytest.raises(InvalidParameterError):
            resolve_direction(total)

    @pytest.mark.parametrize("total", [7.0, "7", None, True])
    def test_non_integer_rejected(self, total):
        with pytest.raises(InvalidParameterError):
            resolve_direction(total)


class TestDirectionPartition:
    """The six buckets partition 2..12 with no gap or overlap."""

    def test_every_total_defined(self):
        assert sorted(NAVIGATION_KEY) == list(range(2, 13))

    def test_buckets_partition_totals(self):
        buckets = [set(rolls_for_direction(d)) for d in Direction]
        union = set().union(*buckets)
        assert union == set(range(2, 13))
        assert sum(len(b) for b in buckets) == 11

    def test_bucket_sizes(self):
        sizes = sorted(len(rolls_for_direction(d)) for d in Direction)
        assert sizes == [1, 2, 2, 2, 2, 2]

    def test_north_only_on_twelve(self):
        assert rolls_for_direction(Direction.A) == (12,)


class TestDirectionVectors:
    """Tests for displacement vectors."""

    @pytest.mark.parametrize("direction,dq,dr", [
        (Direction.A, 0, -1),
        (Direction.B, 1, -1),
        (Direction.C, 1, 0),
        (Direction.D, 0, 1),
        (Direction.E, -1, 1),
        (Direction.F, -1, 0),
    ])
    def test_vectors(self, direction, dq, dr):
        assert DIRECTION_VECTORS[direction] == HexCoord(dq, dr)

    def test_vectors_are_unit_distance(self):
        for vector in DIRECTION_VECTORS.values():
            assert vector.distance_from_center() == 1

    def test_vectors_are_distinct(self):
        assert len(set(DIRECTION_VECTORS.values())) == 6

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            NAVIGATION_KEY[7] = Direction.A
        with pytest.raises(TypeError):
            DIRECTION_VECTORS[Direction.A] = HexCoord(0, 0)

    def test_compass_labels(self):
        assert [d.compass for d in Direction] == ["N", "NE", "SE", "S", "SW", "NW"]


class TestNavigationProbabilities:
    """Tests for the derived direction odds."""

    def test_probabilities(self):
        odds = navigation_probabilities()
        assert odds[Direction.A].probability == Fraction(1, 36)
        assert odds[Direction.B].probability == Fraction(3, 36)
        assert odds[Direction.C].probability == Fraction(7, 36)
        assert odds[Direction.D].probability == Fraction(11, 36)
        assert odds[Direction.E].probability == Fraction(9, 36)
        assert odds[Direction.F].probability == Fraction(5, 36)

    def test_probabilities_sum_to_one(self):
        total = sum(o.probability for o in navigation_probabilities().values())
        assert total == 1

    def test_percent(self):
        odds = navigation_probabilities()[Direction.E]
        assert odds.percent == pytest.approx(25.0)
        assert odds.rolls == (8, 9)
