"""Live difficulty adaptation for one player session context.

``AdaptationController`` owns everything that used to live in a shared
store: the skill profile, the scalar difficulty, the per-axis multipliers
and the recommendation UI flags. Persistence and time are injected.

Only the scalar difficulty is smoothed toward a recommendation; the
multipliers are taken from the recommendation as they are.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Mapping

from aimtrainer.config.settings import ControllerConfig, Sensitivity, Settings
from aimtrainer.engine.analyzer import PerformanceAnalysis, PerformanceAnalyzer, Trend, average
from aimtrainer.engine.clock import Clock, SystemClock
from aimtrainer.engine.patterns import AdaptiveStats, FlickPattern, PatternGenerator, tier_for_difficulty
from aimtrainer.engine.profile import GamePerformance, UserSkillProfile, clamp, create_initial_profile
from aimtrainer.engine.recommender import ActiveAdjustments, DifficultyRecommendation, RecommendationEngine
from aimtrainer.state.profile_store import MemoryProfileStore, ProfileStore

logger = logging.getLogger(__name__)

ADAPTATION_RATES: dict[Sensitivity, float] = {
    Sensitivity.LOW: 0.10,
    Sensitivity.MEDIUM: 0.15,
    Sensitivity.HIGH: 0.25,
}

TREND_WINDOW = 10
TREND_MARGIN = 2.0
GAP_TREND_MARGIN = 5.0


@dataclass(frozen=True)
class SkillPoint:
    timestamp: float
    skill: float


@dataclass
class SkillTrends:
    overall: Trend = Trend.STABLE
    accuracy: Trend = Trend.STABLE
    speed: Trend = Trend.STABLE
    consistency: Trend = Trend.STABLE


@dataclass
class PerformanceInsights:
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    next_goals: list[str] = field(default_factory=list)


def _gap_trend(gap: float) -> Trend:
    if gap > GAP_TREND_MARGIN:
        return Trend.IMPROVING
    if gap < -GAP_TREND_MARGIN:
        return Trend.DECLINING
    return Trend.STABLE


class AdaptationController:
    """Caller-owned adaptation context for one player."""

    def __init__(
        self,
        settings: Settings | None = None,
        store: ProfileStore | None = None,
        clock: Clock | None = None,
    ):
        self.settings = settings or Settings()
        self.store = store or MemoryProfileStore()
        self.clock = clock or SystemClock()
        self.analyzer = PerformanceAnalyzer(self.settings.analyzer)
        self.engine = RecommendationEngine(self.settings.recommender)

        cfg: ControllerConfig = self.settings.controller
        self.profile: UserSkillProfile = self.store.load()
        self.current_difficulty: float = cfg.initial_difficulty
        self.active_adjustments = ActiveAdjustments()
        self.sensitivity: Sensitivity = cfg.sensitivity
        self.dynamic_mode_enabled = False
        self.auto_adjust_enabled = False

        self.current_analysis: PerformanceAnalysis | None = None
        self.latest_recommendation: DifficultyRecommendation | None = None
        self.show_recommendations = False
        self.last_recommendation_seen: float | None = None

        self.session_performances: deque[GamePerformance] = deque(maxlen=cfg.session_history_limit)
        self.skill_progress_history: deque[SkillPoint] = deque(maxlen=cfg.skill_history_limit)

    @property
    def has_pending_recommendation(self) -> bool:
        return self.show_recommendations and self.latest_recommendation is not None

    def initialize_profile(self) -> None:
        if self.profile.is_initialized:
            return
        self.profile = create_initial_profile(self.clock.now_ms())
        self.skill_progress_history.append(SkillPoint(self.clock.now_ms(), self.profile.overall_skill))

    def analyze_performance(
        self, performance: GamePerformance | Mapping[str, Any]
    ) -> DifficultyRecommendation:
        """Fold one finished session into the profile and recommend a difficulty.

        The recommendation is applied straight away only when dynamic mode
        and auto-adjust are both on and the analysis asks for adaptation.
        Otherwise it is surfaced for the player at most once per cooldown
        window; surfacing, applying and dismissing all restart the window.

        Raises:
            InvalidPerformanceError: the record is malformed; no state changes.
        """
        now = self.clock.now_ms()
        performance = GamePerformance.coerce(performance)
        profile, analysis = self.analyzer.analyze(
            performance, self.profile, self.session_performances, now_ms=now,
        )
        recommendation = self.engine.recommend(analysis, profile, self.current_difficulty)

        self.session_performances.append(performance)
        self.skill_progress_history.append(SkillPoint(now, profile.overall_skill))
        self.profile = profile
        self.current_analysis = analysis
        self.latest_recommendation = recommendation
        self.store.save(profile)

        cooldown_ms = self.settings.controller.recommendation_cooldown_s * 1000.0
        self.show_recommendations = (
            analysis.adaptation_needed
            and (
                self.last_recommendation_seen is None
                or now - self.last_recommendation_seen > cooldown_ms
            )
        )
        # Surfacing starts the cooldown whether or not the player reacts.
        if self.show_recommendations:
            self.last_recommendation_seen = now
            logger.debug("surfaced recommendation: target %.1f", recommendation.target_difficulty)

        if self.dynamic_mode_enabled and self.auto_adjust_enabled and analysis.adaptation_needed:
            self.apply_recommendation(recommendation)
        return recommendation

    def apply_recommendation(self, recommendation: DifficultyRecommendation) -> float:
        rate = ADAPTATION_RATES[self.sensitivity]
        step = (recommendation.target_difficulty - self.current_difficulty) * rate
        previous = self.current_difficulty
        self.current_difficulty = clamp(self.current_difficulty + step)
        self.active_adjustments = ActiveAdjustments.from_recommendation(recommendation)
        self.show_recommendations = False
        self.last_recommendation_seen = self.clock.now_ms()
        logger.debug(
            "applied recommendation: difficulty %.2f -> %.2f (%s)",
            previous, self.current_difficulty, self.sensitivity.value,
        )
        return self.current_difficulty

    def set_dynamic_mode(self, enabled: bool) -> None:
        self.dynamic_mode_enabled = enabled
        if enabled:
            self.initialize_profile()

    def set_auto_adjust(self, enabled: bool) -> None:
        self.auto_adjust_enabled = enabled

    def set_adaptation_sensitivity(self, sensitivity: str | Sensitivity) -> None:
        self.sensitivity = Sensitivity(sensitivity)

    def set_current_difficulty(self, difficulty: float) -> float:
        """Manual override; bypasses sensitivity smoothing."""
        self.current_difficulty = clamp(difficulty)
        return self.current_difficulty

    def dismiss_recommendation(self) -> None:
        self.show_recommendations = False
        self.last_recommendation_seen = self.clock.now_ms()

    def get_optimal_difficulty(self) -> float:
        return self.profile.optimal_difficulty

    def get_recommended_training_modes(self) -> list[str]:
        if self.latest_recommendation is None:
            return []
        return list(self.latest_recommendation.recommended_modes)

    def reset_profile(self) -> None:
        now = self.clock.now_ms()
        self.profile = create_initial_profile(now)
        self.current_analysis = None
        self.latest_recommendation = None
        self.show_recommendations = False
        self.last_recommendation_seen = None
        self.session_performances.clear()
        self.skill_progress_history.clear()
        self.skill_progress_history.append(SkillPoint(now, self.profile.overall_skill))
        self.current_difficulty = self.settings.controller.initial_difficulty
        self.active_adjustments = ActiveAdjustments()
        self.store.save(self.profile)
        logger.info("skill profile reset")

    def get_skill_trends(self) -> SkillTrends:
        history = list(self.skill_progress_history)
        if len(history) < TREND_WINDOW:
            return SkillTrends()

        recent = [p.skill for p in history[-TREND_WINDOW:]]
        older = [p.skill for p in history[-2 * TREND_WINDOW:-TREND_WINDOW]]
        recent_avg = average(recent)
        older_avg = average(older) if older else recent_avg
        if recent_avg > older_avg + TREND_MARGIN:
            overall = Trend.IMPROVING
        elif recent_avg < older_avg - TREND_MARGIN:
            overall = Trend.DECLINING
        else:
            overall = Trend.STABLE

        analysis = self.current_analysis
        if analysis is None:
            return SkillTrends(overall=overall)
        gaps = analysis.skill_gaps
        return SkillTrends(
            overall=overall,
            accuracy=_gap_trend(gaps.get("accuracy", 0.0)),
            speed=_gap_trend(gaps.get("speed", 0.0)),
            consistency=_gap_trend(gaps.get("consistency", 0.0)),
        )

    def get_performance_insights(self) -> PerformanceInsights:
        profile = self.profile
        strengths: list[str] = []
        weaknesses: list[str] = []
        goals: list[str] = []

        if profile.accuracy_rating > 70:
            strengths.append("Excellent Accuracy")
        if profile.speed_rating > 70:
            strengths.append("Fast Reaction Time")
        if profile.consistency_rating > 70:
            strengths.append("Consistent Performance")
        if profile.flick_skill > 70:
            strengths.append("Flick Shot Mastery")
        if profile.tracking_skill > 70:
            strengths.append("Tracking Proficiency")

        if profile.accuracy_rating < 50:
            weaknesses.append("Accuracy needs work")
        if profile.speed_rating < 50:
            weaknesses.append("Reaction time improvement needed")
        if profile.consistency_rating < 50:
            weaknesses.append("Consistency training required")
        analysis = self.current_analysis
        if analysis is not None and analysis.recent_performance.performance_stability < 60:
            weaknesses.append("Performance stability")

        if profile.overall_skill < 40:
            goals += ["Master fundamental aiming", "Improve accuracy to 80%+"]
        elif profile.overall_skill < 70:
            goals += ["Develop advanced techniques", "Master flick training"]
        else:
            goals += ["Perfect consistency", "Compete at expert level"]
        if self.latest_recommendation is not None:
            goals += [f"Focus on {area}" for area in self.latest_recommendation.focus_areas]

        return PerformanceInsights(
            strengths=strengths or ["Dedicated practice"],
            weaknesses=weaknesses or ["Minor improvements needed"],
            next_goals=goals[:3],
        )

    def next_pattern(
        self,
        generator: PatternGenerator,
        family: str,
        *,
        target_count: int = 10,
        focus_zone: str | None = None,
        stats: AdaptiveStats | Mapping[str, Any] | None = None,
    ) -> FlickPattern:
        """Build the next drill at the tier matching the live difficulty."""
        return generator.generate(
            family,
            tier_for_difficulty(self.current_difficulty),
            target_count=target_count,
            focus_zone=focus_zone,
            stats=stats,
            adjustments=self.active_adjustments,
        )
