"""Procedural flick-target patterns.

Each pattern family lays out an ordered, timed sequence of targets around
the player. Generation depends only on its arguments plus the injected
clock (ids and absolute spawn times) and RNG (angles, zones, distances,
height jitter), so a fixed clock and seed reproduce a pattern exactly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from aimtrainer.config.settings import PatternConfig, WeightRule
from aimtrainer.engine.clock import Clock, Rng, SeededRng, SystemClock
from aimtrainer.engine.errors import PatternError
from aimtrainer.engine.geometry import (
    DISTANCE_ZONES,
    Zone,
    angle_to_position,
    distance_for_zone,
    parse_zone,
    random_zone,
    zone_for_distance,
)
from aimtrainer.engine.recommender import ActiveAdjustments

MAX_TARGET_DIFFICULTY = 10

BASE_DIFFICULTY: dict[Zone, int] = {Zone.NEAR: 3, Zone.MEDIUM: 5, Zone.FAR: 7}


class Tier(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"


class PatternFamily(str, Enum):
    CARDINAL = "cardinal"
    DIAGONAL = "diagonal"
    CLOCK = "clock"
    SPIRAL = "spiral"
    RANDOM = "random"
    ADAPTIVE = "adaptive"


BASE_REACTION_MS: dict[Tier, int] = {
    Tier.BRONZE: 800,
    Tier.SILVER: 600,
    Tier.GOLD: 450,
    Tier.PLATINUM: 350,
    Tier.DIAMOND: 250,
}

# (size, time) multipliers applied on top of the live adjustments.
TIER_MODIFIERS: dict[Tier, tuple[float, float]] = {
    Tier.BRONZE: (1.2, 1.3),
    Tier.SILVER: (1.0, 1.0),
    Tier.GOLD: (0.8, 0.8),
    Tier.PLATINUM: (0.6, 0.6),
    Tier.DIAMOND: (0.4, 0.4),
}

# Lower bound of each tier on the 0-100 difficulty scale.
TIER_THRESHOLDS: list[tuple[float, Tier]] = [
    (80.0, Tier.DIAMOND),
    (60.0, Tier.PLATINUM),
    (40.0, Tier.GOLD),
    (20.0, Tier.SILVER),
]

ADAPTIVE_TARGET_COUNT = 12
ADAPTIVE_MIN_SPACING_MS = 800.0
SPIRAL_TURNS = 3
SPIRAL_TARGETS_PER_TURN = 8


@dataclass(frozen=True)
class FlickTarget:
    id: str
    position: tuple[float, float, float]
    angle: float
    distance: float
    zone: Zone
    difficulty: int
    spawn_time: float
    expected_reaction_time: int


@dataclass(frozen=True)
class FlickPattern:
    id: str
    name: str
    description: str
    targets: tuple[FlickTarget, ...]
    duration: float
    difficulty: Tier
    size_multiplier: float = 1.0
    time_multiplier: float = 1.0


@dataclass(frozen=True)
class AdaptiveStats:
    """Per-player inputs for the adaptive pattern."""
    average_reaction_time: float
    accuracy: float
    best_zone: Zone
    worst_zone: Zone

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AdaptiveStats":
        try:
            rt = float(data.get("average_reaction_time", data.get("averageReactionTime")))
            accuracy = float(data.get("accuracy", 0.0))
            best = parse_zone(data.get("best_zone", data.get("bestZone")))
            worst = parse_zone(data.get("worst_zone", data.get("worstZone")))
        except (TypeError, ValueError) as e:
            raise PatternError(f"Invalid adaptive stats: {e}") from e
        if not math.isfinite(rt) or rt < 0:
            raise PatternError("average_reaction_time must be a non-negative number")
        return cls(average_reaction_time=rt, accuracy=accuracy, best_zone=best, worst_zone=worst)


def parse_tier(value: str | Tier) -> Tier:
    try:
        return Tier(value)
    except ValueError:
        raise PatternError(f"Unknown difficulty tier: {value!r}") from None


def parse_family(value: str | PatternFamily) -> PatternFamily:
    try:
        return PatternFamily(value)
    except ValueError:
        raise PatternError(f"Unknown pattern family: {value!r}") from None


def tier_for_difficulty(difficulty: float) -> Tier:
    for threshold, tier in TIER_THRESHOLDS:
        if difficulty >= threshold:
            return tier
    return Tier.BRONZE


def calculate_target_difficulty(distance: float, zone: Zone) -> int:
    """Score a target 1-10 from its zone and how deep into the zone it sits."""
    base = BASE_DIFFICULTY[zone]
    bounds = DISTANCE_ZONES[zone]
    ratio = (distance - bounds.min) / bounds.span
    return max(base, min(MAX_TARGET_DIFFICULTY, base + math.floor(ratio * 2)))


def expected_reaction_time(distance: float, tier: Tier) -> int:
    """Tier base time scaled by distance, rounded half up (712.5 -> 713)."""
    multiplier = max(0.8, min(2.0, distance / 20))
    return math.floor(BASE_REACTION_MS[tier] * multiplier + 0.5)


def check_target_count(target_count: int) -> int:
    if isinstance(target_count, bool) or not isinstance(target_count, int):
        raise PatternError(f"target_count must be an integer, got {target_count!r}")
    if target_count < 1:
        raise PatternError(f"target_count must be at least 1, got {target_count}")
    return target_count


def zone_weights(stats: AdaptiveStats, rule: WeightRule = WeightRule.SUM) -> dict[Zone, float]:
    """Zone distribution for the adaptive pattern, in selection order.

    Half the weight goes to the worst zone, a fifth to the best zone and
    the rest to medium range. When two of those labels coincide, ``SUM``
    adds their weights; ``LAST_WRITE`` keeps only the later assignment,
    which leaves the distribution short of 1.0 and lets the shortfall fall
    through to medium during selection.
    """
    entries = [(stats.worst_zone, 0.5), (stats.best_zone, 0.2), (Zone.MEDIUM, 0.3)]
    weights: dict[Zone, float] = {}
    for zone, weight in entries:
        if rule is WeightRule.SUM:
            weights[zone] = weights.get(zone, 0.0) + weight
        else:
            weights[zone] = weight
    return weights


def pick_weighted_zone(weights: Mapping[Zone, float], r: float) -> Zone:
    """Inverse-CDF pick: the first zone whose cumulative weight reaches ``r``."""
    cumulative = 0.0
    for zone, weight in weights.items():
        cumulative += weight
        if r <= cumulative:
            return zone
    return Zone.MEDIUM


class PatternGenerator:
    """Builds FlickPatterns for every pattern family."""

    def __init__(
        self,
        clock: Clock | None = None,
        rng: Rng | None = None,
        config: PatternConfig | None = None,
    ):
        self.clock = clock or SystemClock()
        self.rng = rng or SeededRng()
        self.config = config or PatternConfig()

    def generate(
        self,
        family: str | PatternFamily,
        tier: str | Tier,
        *,
        target_count: int = 10,
        focus_zone: str | Zone | None = None,
        stats: AdaptiveStats | Mapping[str, Any] | None = None,
        adjustments: ActiveAdjustments | None = None,
    ) -> FlickPattern:
        """Generate a pattern by family name."""
        family = parse_family(family)
        tier = parse_tier(tier)
        check_target_count(target_count)

        if family is PatternFamily.CARDINAL:
            pattern = self.cardinal(tier)
        elif family is PatternFamily.DIAGONAL:
            pattern = self.diagonal(tier)
        elif family is PatternFamily.CLOCK:
            pattern = self.clock_sweep(tier)
        elif family is PatternFamily.SPIRAL:
            pattern = self.spiral(tier)
        elif family is PatternFamily.RANDOM:
            pattern = self.random(target_count, tier, focus_zone)
        elif family is PatternFamily.ADAPTIVE:
            if stats is None:
                raise PatternError("adaptive pattern requires player stats")
            pattern = self.adaptive(stats, tier)
        else:
            raise PatternError(f"Unhandled pattern family: {family}")

        return self.with_adjustments(pattern, adjustments)

    def with_adjustments(self, pattern: FlickPattern, adjustments: ActiveAdjustments | None) -> FlickPattern:
        size, time = TIER_MODIFIERS[pattern.difficulty]
        if adjustments is not None:
            size *= adjustments.target_size_multiplier
            time *= adjustments.target_lifetime_multiplier
        return FlickPattern(
            id=pattern.id,
            name=pattern.name,
            description=pattern.description,
            targets=pattern.targets,
            duration=pattern.duration,
            difficulty=pattern.difficulty,
            size_multiplier=size,
            time_multiplier=time,
        )

    def cardinal(self, tier: Tier) -> FlickPattern:
        now = self.clock.now_ms()
        targets = []
        for index, angle in enumerate((0, 90, 180, 270)):
            zone = Zone.MEDIUM if index < 2 else Zone.FAR
            targets.append(self._target(f"cardinal_{angle}_{now:.0f}", angle, zone, tier, now + index * 2000))
        return self._pattern(
            "cardinal", now, "Cardinal Directions",
            "Flick to North, East, South, West positions", targets, 10000, tier,
        )

    def diagonal(self, tier: Tier) -> FlickPattern:
        now = self.clock.now_ms()
        targets = []
        for index, angle in enumerate((45, 135, 225, 315)):
            zone = Zone.MEDIUM if index % 2 == 0 else Zone.FAR
            # Diagonals rate one point harder than cardinals at equal range.
            targets.append(self._target(
                f"diagonal_{angle}_{now:.0f}", angle, zone, tier, now + index * 1800, bonus=1,
            ))
        return self._pattern(
            "diagonal", now, "Diagonal Precision",
            "Flick to diagonal positions with precision", targets, 8000, tier,
        )

    def clock_sweep(self, tier: Tier) -> FlickPattern:
        now = self.clock.now_ms()
        targets = []
        for hour in range(1, 13):
            angle = hour * 30 - 90
            if hour % 3 == 0:
                zone = Zone.FAR
            elif hour % 2 == 0:
                zone = Zone.MEDIUM
            else:
                zone = Zone.NEAR
            targets.append(self._target(f"clock_{hour}_{now:.0f}", angle, zone, tier, now + hour * 1200))
        return self._pattern(
            "clock", now, "Clock Sweep",
            "Follow the clock from 1 to 12 o'clock", targets, 15000, tier,
        )

    def spiral(self, tier: Tier) -> FlickPattern:
        now = self.clock.now_ms()
        total = SPIRAL_TURNS * SPIRAL_TARGETS_PER_TURN
        start = DISTANCE_ZONES[Zone.NEAR].min
        end = DISTANCE_ZONES[Zone.FAR].max
        targets = []
        for turn in range(SPIRAL_TURNS):
            for step in range(SPIRAL_TARGETS_PER_TURN):
                index = turn * SPIRAL_TARGETS_PER_TURN + step
                progress = index / total
                angle = turn * 360 + step * (360 / SPIRAL_TARGETS_PER_TURN)
                distance = start + progress * (end - start)
                targets.append(self._target(
                    f"spiral_{turn}_{step}_{now:.0f}", angle, zone_for_distance(distance), tier,
                    now + index * 800, distance=distance, bonus=math.floor(progress * 3),
                ))
        return self._pattern(
            "spiral", now, "Spiral Challenge",
            "Follow the spiral pattern from center to edge", targets, 20000, tier,
        )

    def random(self, target_count: int, tier: Tier, focus_zone: str | Zone | None = None) -> FlickPattern:
        check_target_count(target_count)
        fixed_zone = None
        if focus_zone is not None:
            try:
                fixed_zone = parse_zone(focus_zone)
            except ValueError as e:
                raise PatternError(str(e)) from None

        now = self.clock.now_ms()
        targets = []
        for i in range(target_count):
            angle = self.rng.random() * 360
            zone = fixed_zone or random_zone(self.rng)
            targets.append(self._target(f"random_{i}_{now:.0f}", angle, zone, tier, now + i * 1500))
        return self._pattern(
            "random", now, "Random Flicks",
            f"{target_count} random targets across all zones", targets, target_count * 1500, tier,
        )

    def adaptive(self, stats: AdaptiveStats | Mapping[str, Any], tier: Tier) -> FlickPattern:
        if not isinstance(stats, AdaptiveStats):
            stats = AdaptiveStats.from_mapping(stats)
        weights = zone_weights(stats, self.config.adaptive_weight_rule)
        if self.config.adaptive_weight_rule is WeightRule.SUM:
            total = sum(weights.values())
            weights = {zone: w / total for zone, w in weights.items()}

        spacing = max(ADAPTIVE_MIN_SPACING_MS, stats.average_reaction_time * 1.2)
        now = self.clock.now_ms()
        targets = []
        for i in range(ADAPTIVE_TARGET_COUNT):
            zone = pick_weighted_zone(weights, self.rng.random())
            angle = self.rng.random() * 360
            targets.append(self._target(f"adaptive_{i}_{now:.0f}", angle, zone, tier, now + i * spacing))
        return self._pattern(
            "adaptive", now, "Adaptive Training",
            "Personalized pattern based on your performance", targets,
            ADAPTIVE_TARGET_COUNT * spacing, tier,
        )

    def _target(
        self,
        target_id: str,
        angle: float,
        zone: Zone,
        tier: Tier,
        spawn_time: float,
        distance: float | None = None,
        bonus: int = 0,
    ) -> FlickTarget:
        tier = parse_tier(tier)
        if distance is None:
            distance = distance_for_zone(zone, self.rng)
        return FlickTarget(
            id=target_id,
            position=angle_to_position(angle, distance, self.rng),
            angle=angle,
            distance=distance,
            zone=zone,
            difficulty=min(MAX_TARGET_DIFFICULTY, calculate_target_difficulty(distance, zone) + bonus),
            spawn_time=spawn_time,
            expected_reaction_time=expected_reaction_time(distance, tier),
        )

    @staticmethod
    def _pattern(
        family: str,
        now: float,
        name: str,
        description: str,
        targets: list[FlickTarget],
        duration: float,
        tier: Tier,
    ) -> FlickPattern:
        return FlickPattern(
            id=f"{family}_{now:.0f}",
            name=name,
            description=description,
            targets=tuple(targets),
            duration=duration,
            difficulty=parse_tier(tier),
        )


PresetBuilder = Callable[..., FlickPattern]

PRESETS: dict[str, dict[str, PresetBuilder]] = {
    "beginner": {
        "cardinal": lambda gen, tier, stats: gen.cardinal(tier),
        "random_near": lambda gen, tier, stats: gen.random(6, tier, Zone.NEAR),
    },
    "intermediate": {
        "diagonal": lambda gen, tier, stats: gen.diagonal(tier),
        "clock": lambda gen, tier, stats: gen.clock_sweep(tier),
        "random_mixed": lambda gen, tier, stats: gen.random(10, tier),
    },
    "advanced": {
        "spiral": lambda gen, tier, stats: gen.spiral(tier),
        "random_far": lambda gen, tier, stats: gen.random(12, tier, Zone.FAR),
        "adaptive": lambda gen, tier, stats: gen.adaptive(stats, tier),
    },
}


def generate_preset(
    generator: PatternGenerator,
    level: str,
    name: str,
    tier: str | Tier,
    stats: AdaptiveStats | Mapping[str, Any] | None = None,
) -> FlickPattern:
    """Build one of the named presets for a skill level."""
    presets = PRESETS.get(level)
    if presets is None:
        raise PatternError(f"Unknown preset level: {level!r}")
    builder = presets.get(name)
    if builder is None:
        raise PatternError(f"Unknown preset {name!r} for level {level!r}")
    if name == "adaptive" and stats is None:
        raise PatternError("adaptive pattern requires player stats")
    return generator.with_adjustments(builder(generator, parse_tier(tier), stats), None)
