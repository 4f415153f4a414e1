"""Turn a session analysis into a concrete difficulty recommendation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from aimtrainer.config.settings import RecommenderConfig
from aimtrainer.engine.analyzer import PerformanceAnalysis
from aimtrainer.engine.profile import UserSkillProfile, clamp

logger = logging.getLogger(__name__)

# gap name -> (training mode, focus label)
TRAINING_FOCUS: dict[str, tuple[str, str]] = {
    "accuracy": ("precision", "Accuracy Training"),
    "speed": ("speed", "Reaction Time"),
    "consistency": ("tracking", "Consistency"),
    "flick": ("flick", "Flick Technique"),
    "tracking": ("tracking", "Target Tracking"),
    "precision": ("precision", "Precision Control"),
}

DEFAULT_MODE = "precision"
MAX_FOCUS = 3


class AdjustmentType(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    MAINTAIN = "maintain"


@dataclass(frozen=True)
class DifficultyRecommendation:
    target_difficulty: float
    target_size: float = 1.0
    spawn_rate: float = 1.0
    target_lifetime: float = 1.0
    movement_speed: float = 1.0
    recommended_modes: list[str] = field(default_factory=list)
    focus_areas: list[str] = field(default_factory=list)
    reason: str = ""
    adjustment_type: AdjustmentType = AdjustmentType.MAINTAIN
    confidence: float = 0.0


@dataclass(frozen=True)
class ActiveAdjustments:
    """Per-axis multipliers currently applied to the live game."""
    target_size_multiplier: float = 1.0
    spawn_rate_multiplier: float = 1.0
    target_lifetime_multiplier: float = 1.0
    movement_speed_multiplier: float = 1.0

    @classmethod
    def from_recommendation(cls, rec: DifficultyRecommendation) -> "ActiveAdjustments":
        return cls(
            target_size_multiplier=rec.target_size,
            spawn_rate_multiplier=rec.spawn_rate,
            target_lifetime_multiplier=rec.target_lifetime,
            movement_speed_multiplier=rec.movement_speed,
        )


class RecommendationEngine:
    def __init__(self, config: RecommenderConfig | None = None):
        self.config = config or RecommenderConfig()

    def recommend(
        self,
        analysis: PerformanceAnalysis,
        profile: UserSkillProfile,
        current_difficulty: float,
    ) -> DifficultyRecommendation:
        cfg = self.config
        current = clamp(current_difficulty)

        target = current + (profile.optimal_difficulty - current) * cfg.optimal_pull
        reasons = [f"Tracking optimal difficulty {profile.optimal_difficulty:.0f}"]

        dominant = analysis.dominant_gap()
        if dominant is not None:
            name, gap = dominant
            shift = max(-cfg.max_gap_shift, min(cfg.max_gap_shift, gap * cfg.gap_weight))
            target += shift
            if shift > 0:
                reasons.append(f"{name} is ahead of your profile")
            elif shift < 0:
                reasons.append(f"{name} is behind your profile")

        # Over the threshold means the player is coasting or struggling.
        risk_threshold = cfg.risk_threshold
        if analysis.boredom_risk > risk_threshold:
            target += cfg.risk_step
            reasons.append("performance is consistently high")
        elif analysis.frustration_risk > risk_threshold:
            target -= cfg.risk_step
            reasons.append("performance is slipping")

        target = clamp(target)
        if target > current + 0.5:
            adjustment = AdjustmentType.INCREASE
        elif target < current - 0.5:
            adjustment = AdjustmentType.DECREASE
        else:
            adjustment = AdjustmentType.MAINTAIN

        ratio = target / 100.0
        modes, focus = self._training_focus(analysis)
        stability = analysis.recent_performance.performance_stability

        rec = DifficultyRecommendation(
            target_difficulty=target,
            target_size=cfg.target_size.falling(ratio),
            spawn_rate=cfg.spawn_rate.rising(ratio),
            target_lifetime=cfg.target_lifetime.falling(ratio),
            movement_speed=cfg.movement_speed.rising(ratio),
            recommended_modes=modes,
            focus_areas=focus,
            reason="; ".join(reasons),
            adjustment_type=adjustment,
            confidence=min(100.0, profile.confidence + stability / 2),
        )
        logger.debug(
            "recommendation: %.1f -> %.1f (%s)", current, target, adjustment.value,
        )
        return rec

    def _training_focus(self, analysis: PerformanceAnalysis) -> tuple[list[str], list[str]]:
        """Pick up to three of the worst gaps and name the drills that train them."""
        cfg = self.config
        ranked = sorted(
            (item for item in analysis.skill_gaps.items() if item[0] in TRAINING_FOCUS),
            key=lambda item: item[1],
        )
        if not ranked:
            return [DEFAULT_MODE], []

        mode_gaps = [name for name, gap in ranked if gap < -cfg.mode_gap_threshold][:MAX_FOCUS]
        focus_gaps = [name for name, gap in ranked if gap < -cfg.focus_gap_threshold][:MAX_FOCUS]
        worst = ranked[0][0]

        modes: list[str] = []
        for name in mode_gaps or [worst]:
            mode = TRAINING_FOCUS[name][0]
            if mode not in modes:
                modes.append(mode)

        focus = [TRAINING_FOCUS[name][1] for name in focus_gaps or [worst]]
        if analysis.recent_performance.performance_stability < cfg.stability_floor:
            focus.append("Stability")
        return modes, focus
