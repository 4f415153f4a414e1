"""Player skill profile and the session record it learns from.

The profile is a flat, JSON-friendly record: every rating lives on a
0-100 scale and ``sessions_analyzed == 0`` marks a profile that has never
seen a session.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aimtrainer.engine.errors import InvalidPerformanceError

BASELINE_RATING = 30.0
BASELINE_CONFIDENCE = 20.0
BASELINE_OPTIMAL_DIFFICULTY = 25.0
BASELINE_CHALLENGE_THRESHOLD = 40.0
BASELINE_COMFORT_ZONE = 20.0

SKILL_DIMENSIONS = (
    "accuracy_rating",
    "speed_rating",
    "consistency_rating",
    "flick_skill",
    "tracking_skill",
    "precision_skill",
)

# Fields held on the 0-100 scale; improvement_rate is signed.
_UNIT_FIELDS = SKILL_DIMENSIONS + (
    "overall_skill",
    "confidence",
    "optimal_difficulty",
    "challenge_threshold",
    "comfort_zone",
)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def reaction_time_to_rating(reaction_time_ms: float) -> float:
    """Map a reaction time to a rating: 100ms or faster is 100, 1100ms is 0."""
    return clamp(100.0 - (reaction_time_ms - 100.0) / 10.0)


@dataclass
class UserSkillProfile:
    overall_skill: float = BASELINE_RATING
    accuracy_rating: float = BASELINE_RATING
    speed_rating: float = BASELINE_RATING
    consistency_rating: float = BASELINE_RATING
    flick_skill: float = BASELINE_RATING
    tracking_skill: float = BASELINE_RATING
    precision_skill: float = BASELINE_RATING

    improvement_rate: float = 0.0
    confidence: float = BASELINE_CONFIDENCE

    optimal_difficulty: float = BASELINE_OPTIMAL_DIFFICULTY
    challenge_threshold: float = BASELINE_CHALLENGE_THRESHOLD
    comfort_zone: float = BASELINE_COMFORT_ZONE

    last_updated: float = 0.0
    sessions_analyzed: int = 0

    @property
    def is_initialized(self) -> bool:
        return self.sessions_analyzed > 0

    def rating(self, dimension: str) -> float:
        return getattr(self, dimension)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserSkillProfile":
        """Rebuild a persisted profile, clamping values that drifted out of range.

        Missing keys take their baseline value. Non-numeric values raise
        ``ValueError`` so the caller can fall back to a fresh profile.
        """
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            raw = data[f.name]
            if isinstance(raw, bool) or not isinstance(raw, (int, float)):
                raise ValueError(f"Profile field {f.name!r} is not numeric: {raw!r}")
            if not math.isfinite(raw):
                raise ValueError(f"Profile field {f.name!r} is not finite")
            values[f.name] = raw

        profile = cls(**values)
        for name in _UNIT_FIELDS:
            setattr(profile, name, clamp(float(getattr(profile, name))))
        profile.improvement_rate = clamp(float(profile.improvement_rate), -100.0, 100.0)
        profile.sessions_analyzed = max(0, int(profile.sessions_analyzed))
        return profile


def create_initial_profile(now_ms: float = 0.0) -> UserSkillProfile:
    """Neutral profile for a player the engine has never seen."""
    return UserSkillProfile(last_updated=now_ms)


class GamePerformance(BaseModel):
    """One completed session or drill, as reported by the game loop."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False, populate_by_name=True)

    score: float = Field(ge=0)
    accuracy: float = Field(ge=0, le=100)
    reaction_time: float = Field(ge=0, alias="reactionTime")
    hits: int = Field(ge=0)
    misses: int = Field(ge=0)
    streak: int = Field(ge=0)
    game_mode: str = Field(alias="gameMode")
    difficulty: str
    duration: float = Field(ge=0)
    consistency: float = Field(ge=0, le=100)
    perfect_shots: int = Field(default=0, ge=0, alias="perfectShots")

    @classmethod
    def coerce(cls, value: "GamePerformance | Mapping[str, Any]") -> "GamePerformance":
        """Validate a record, raising InvalidPerformanceError on bad input."""
        if isinstance(value, cls):
            return value
        try:
            return cls.model_validate(value)
        except ValidationError as e:
            raise InvalidPerformanceError(f"Invalid game performance: {e}") from e
