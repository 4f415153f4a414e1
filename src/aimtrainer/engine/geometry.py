"""Target placement geometry: polar angle/distance to world position."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from aimtrainer.engine.clock import Rng

EYE_LEVEL = 1.6
HEIGHT_JITTER = 1.0


class Zone(str, Enum):
    NEAR = "near"
    MEDIUM = "medium"
    FAR = "far"


@dataclass(frozen=True)
class ZoneBounds:
    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min


DISTANCE_ZONES: dict[Zone, ZoneBounds] = {
    Zone.NEAR: ZoneBounds(8.0, 12.0),
    Zone.MEDIUM: ZoneBounds(15.0, 20.0),
    Zone.FAR: ZoneBounds(25.0, 35.0),
}


def angle_to_position(angle: float, distance: float, rng: Rng) -> tuple[float, float, float]:
    """Place a target ``distance`` units out along ``angle`` degrees.

    The ground plane is x/z; height is eye level plus up to one unit of
    symmetric jitter.
    """
    radians = math.radians(angle)
    x = math.cos(radians) * distance
    z = math.sin(radians) * distance
    y = EYE_LEVEL + (rng.random() - 0.5) * 2 * HEIGHT_JITTER
    return (x, y, z)


def distance_for_zone(zone: Zone, rng: Rng) -> float:
    bounds = DISTANCE_ZONES[zone]
    return bounds.min + rng.random() * bounds.span


def random_zone(rng: Rng) -> Zone:
    return rng.choice(list(Zone))


def zone_for_distance(distance: float) -> Zone:
    # Distances between two zone tables count toward the nearer zone.
    if distance < DISTANCE_ZONES[Zone.MEDIUM].min:
        return Zone.NEAR
    if distance < DISTANCE_ZONES[Zone.FAR].min:
        return Zone.MEDIUM
    return Zone.FAR


def parse_zone(value: str | Zone) -> Zone:
    try:
        return Zone(value)
    except ValueError:
        raise ValueError(f"Unknown zone: {value!r}") from None
