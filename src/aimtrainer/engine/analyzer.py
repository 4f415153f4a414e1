"""Session analysis: compare one finished session against the skill profile.

The analyzer is a pure function of its inputs. It never mutates the
profile it is given; it returns an updated copy alongside the analysis.

Ratings follow the session with exponential smoothing
(``rating += (observed - rating) * smoothing_factor``) so one noisy
session cannot swing the profile, except on the very first session where
there is nothing to smooth against and the observed values are adopted.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Sequence

from aimtrainer.config.settings import AnalyzerConfig
from aimtrainer.engine.profile import (
    SKILL_DIMENSIONS,
    GamePerformance,
    UserSkillProfile,
    clamp,
    reaction_time_to_rating,
)

logger = logging.getLogger(__name__)

# Gap keys reported to callers, keyed by profile field.
GAP_NAMES = {
    "accuracy_rating": "accuracy",
    "speed_rating": "speed",
    "consistency_rating": "consistency",
    "flick_skill": "flick",
    "tracking_skill": "tracking",
    "precision_skill": "precision",
}

TREND_THRESHOLD = 2.0


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class SessionTrend:
    trend: Trend = Trend.STABLE
    strength: float = 0.0


@dataclass(frozen=True)
class RecentPerformance:
    average_accuracy: float = 0.0
    average_reaction_time: float = 0.0
    average_consistency: float = 0.0
    performance_stability: float = 100.0


@dataclass(frozen=True)
class PerformanceAnalysis:
    skill_gaps: dict[str, float] = field(default_factory=dict)
    recent_performance: RecentPerformance = field(default_factory=RecentPerformance)
    current_session: SessionTrend = field(default_factory=SessionTrend)
    frustration_risk: float = 0.0
    boredom_risk: float = 0.0
    adaptation_needed: bool = False

    def dominant_gap(self) -> tuple[str, float] | None:
        """The gap with the largest magnitude, or None when there are none."""
        if not self.skill_gaps:
            return None
        return max(self.skill_gaps.items(), key=lambda item: abs(item[1]))


def average(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def standard_deviation(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    mean = average(values)
    return math.sqrt(average([(v - mean) ** 2 for v in values]))


def observed_dimensions(performance: GamePerformance) -> dict[str, float]:
    """Map a session onto the profile dimensions it actually exercised."""
    speed = reaction_time_to_rating(performance.reaction_time)
    observed = {
        "accuracy_rating": performance.accuracy,
        "speed_rating": speed,
        "consistency_rating": performance.consistency,
    }
    mode = performance.game_mode.lower()
    if mode == "flick":
        observed["flick_skill"] = (performance.accuracy + speed) / 2
    elif mode == "tracking":
        observed["tracking_skill"] = (performance.accuracy + performance.consistency) / 2
    elif mode == "precision":
        observed["precision_skill"] = performance.accuracy
    return observed


def frustration_risk(window: Sequence[GamePerformance]) -> float:
    if len(window) < 3:
        return 0.0
    last = window[-3:]
    declines = sum(1 for prev, cur in zip(last, last[1:]) if cur.accuracy < prev.accuracy)
    low_accuracy = sum(1 for p in last if p.accuracy < 60)
    return min(100.0, declines * 25.0 + low_accuracy * 20.0)


def boredom_risk(window: Sequence[GamePerformance]) -> float:
    if len(window) < 5:
        return 0.0
    last = window[-5:]
    high_accuracy = sum(1 for p in last if p.accuracy > 85)
    low_variation = standard_deviation([p.accuracy for p in last]) < 5
    return min(100.0, high_accuracy * 15.0 + (25.0 if low_variation else 0.0))


def session_trend(recent: Sequence[GamePerformance], older: Sequence[GamePerformance]) -> SessionTrend:
    """Compare the recent window with the one before it.

    Reaction time counts as improving when it drops.
    """
    if not recent:
        return SessionTrend()
    baseline = older or recent
    accuracy_delta = average([p.accuracy for p in recent]) - average([p.accuracy for p in baseline])
    reaction_delta = average([p.reaction_time for p in baseline]) - average([p.reaction_time for p in recent])
    consistency_delta = average([p.consistency for p in recent]) - average([p.consistency for p in baseline])
    overall = (accuracy_delta + reaction_delta + consistency_delta) / 3

    if overall > TREND_THRESHOLD:
        trend = Trend.IMPROVING
    elif overall < -TREND_THRESHOLD:
        trend = Trend.DECLINING
    else:
        trend = Trend.STABLE
    return SessionTrend(trend=trend, strength=min(100.0, abs(overall) * 10))


class PerformanceAnalyzer:
    """Folds completed sessions into a skill profile."""

    def __init__(self, config: AnalyzerConfig | None = None):
        self.config = config or AnalyzerConfig()

    def analyze(
        self,
        performance: GamePerformance | Mapping[str, Any],
        profile: UserSkillProfile,
        history: Sequence[GamePerformance] = (),
        now_ms: float = 0.0,
    ) -> tuple[UserSkillProfile, PerformanceAnalysis]:
        """Analyze one session against ``profile``.

        Args:
            performance: The completed session. Mappings are validated first.
            profile: The profile before this session.
            history: Earlier sessions, oldest first, not including this one.
            now_ms: Timestamp recorded on the updated profile.

        Returns:
            The updated profile and the analysis for this session.

        Raises:
            InvalidPerformanceError: if the record is malformed. The profile
                is left untouched.
        """
        performance = GamePerformance.coerce(performance)
        cfg = self.config

        keep = cfg.history_limit - 1
        earlier = list(history)[-keep:] if keep else []
        sessions = [*earlier, performance]
        recent = sessions[-cfg.recent_window:]
        older = sessions[-2 * cfg.recent_window:-cfg.recent_window]

        observed = observed_dimensions(performance)
        gaps = {GAP_NAMES[dim]: value - profile.rating(dim) for dim, value in observed.items()}

        stability = max(0.0, 100.0 - standard_deviation([p.accuracy for p in recent]) * 2)
        recent_perf = RecentPerformance(
            average_accuracy=average([p.accuracy for p in recent]),
            average_reaction_time=average([p.reaction_time for p in recent]),
            average_consistency=average([p.consistency for p in recent]),
            performance_stability=stability,
        )
        trend = session_trend(recent, older)
        frustration = frustration_risk(recent)
        boredom = boredom_risk(recent)

        adaptation_needed = (
            any(abs(g) > cfg.gap_threshold for g in gaps.values())
            or stability < cfg.stability_floor
            or frustration > cfg.risk_threshold
            or boredom > cfg.risk_threshold
        )

        analysis = PerformanceAnalysis(
            skill_gaps=gaps,
            recent_performance=recent_perf,
            current_session=trend,
            frustration_risk=frustration,
            boredom_risk=boredom,
            adaptation_needed=adaptation_needed,
        )
        updated = self._update_profile(profile, observed, analysis, now_ms)

        logger.debug(
            "analyzed session %d: gaps=%s stability=%.1f adaptation_needed=%s",
            updated.sessions_analyzed, gaps, stability, adaptation_needed,
        )
        return updated, analysis

    def _update_profile(
        self,
        profile: UserSkillProfile,
        observed: Mapping[str, float],
        analysis: PerformanceAnalysis,
        now_ms: float,
    ) -> UserSkillProfile:
        first_session = not profile.is_initialized
        rate = 1.0 if first_session else self.config.smoothing_factor

        ratings = {}
        for dim in SKILL_DIMENSIONS:
            current = profile.rating(dim)
            if dim in observed:
                ratings[dim] = clamp(current + (observed[dim] - current) * rate)
            else:
                ratings[dim] = current
        overall = average(list(ratings.values()))

        optimal = overall * 0.8
        if analysis.frustration_risk > 50:
            optimal -= 10
        if analysis.boredom_risk > 50:
            optimal += 10
        optimal = clamp(optimal)

        trend = analysis.current_session
        if trend.trend is Trend.IMPROVING:
            improvement = trend.strength
        elif trend.trend is Trend.DECLINING:
            improvement = -trend.strength
        else:
            improvement = 0.0

        return replace(
            profile,
            **ratings,
            overall_skill=clamp(overall),
            improvement_rate=clamp(improvement, -100.0, 100.0),
            confidence=min(100.0, profile.confidence + 2),
            optimal_difficulty=optimal,
            challenge_threshold=clamp(optimal + 20),
            comfort_zone=clamp(optimal - 10),
            last_updated=now_ms,
            sessions_analyzed=profile.sessions_analyzed + 1,
        )
