"""Tests for target placement geometry."""

from __future__ import annotations

import math

import pytest

from aimtrainer.engine.clock import SeededRng
from aimtrainer.engine.geometry import (
    DISTANCE_ZONES,
    EYE_LEVEL,
    Zone,
    angle_to_position,
    distance_for_zone,
    parse_zone,
    random_zone,
    zone_for_distance,
)


class FixedRng:
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value

    def uniform(self, a, b):
        return a + (b - a) * self.value

    def choice(self, seq):
        return seq[int(self.value * len(seq))]


class TestAngleToPosition:
    def test_zero_degrees_lies_on_x_axis(self):
        x, y, z = angle_to_position(0, 10, FixedRng(0.5))
        assert x == pytest.approx(10)
        assert z == pytest.approx(0)
        assert y == pytest.approx(EYE_LEVEL)

    def test_ninety_degrees_lies_on_z_axis(self):
        x, _, z = angle_to_position(90, 20, FixedRng(0.5))
        assert x == pytest.approx(0, abs=1e-9)
        assert z == pytest.approx(20)

    def test_horizontal_distance_preserved(self):
        rng = SeededRng(7)
        for angle in range(0, 360, 15):
            x, _, z = angle_to_position(angle, 17.5, rng)
            assert math.hypot(x, z) == pytest.approx(17.5)

    def test_height_jitter_bounded(self):
        _, low, _ = angle_to_position(0, 10, FixedRng(0.0))
        _, high, _ = angle_to_position(0, 10, FixedRng(0.999999))
        assert low == pytest.approx(EYE_LEVEL - 1)
        assert high == pytest.approx(EYE_LEVEL + 1, abs=1e-5)


class TestZones:
    @pytest.mark.parametrize("zone", list(Zone))
    def test_distance_within_zone_bounds(self, zone):
        rng = SeededRng(99)
        bounds = DISTANCE_ZONES[zone]
        for _ in range(500):
            d = distance_for_zone(zone, rng)
            assert bounds.min <= d <= bounds.max

    def test_zone_table_constants(self):
        assert (DISTANCE_ZONES[Zone.NEAR].min, DISTANCE_ZONES[Zone.NEAR].max) == (8, 12)
        assert (DISTANCE_ZONES[Zone.MEDIUM].min, DISTANCE_ZONES[Zone.MEDIUM].max) == (15, 20)
        assert (DISTANCE_ZONES[Zone.FAR].min, DISTANCE_ZONES[Zone.FAR].max) == (25, 35)

    @pytest.mark.parametrize("distance,expected", [
        (8.0, Zone.NEAR),
        (14.99, Zone.NEAR),
        (15.0, Zone.MEDIUM),
        (24.9, Zone.MEDIUM),
        (25.0, Zone.FAR),
        (35.0, Zone.FAR),
    ])
    def test_zone_for_distance(self, distance, expected):
        assert zone_for_distance(distance) is expected

    def test_random_zone_covers_all(self):
        rng = SeededRng(3)
        seen = {random_zone(rng) for _ in range(100)}
        assert seen == set(Zone)

    def test_parse_zone_rejects_unknown(self):
        assert parse_zone("far") is Zone.FAR
        with pytest.raises(ValueError, match="Unknown zone"):
            parse_zone("orbit")
