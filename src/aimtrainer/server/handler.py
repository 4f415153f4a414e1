"""Server handler: dispatches JSON-lines requests to the adaptation engine."""

from __future__ import annotations

from typing import Callable, Optional

from aimtrainer.config.settings import Settings
from aimtrainer.engine.analyzer import PerformanceAnalysis
from aimtrainer.engine.clock import Clock, Rng
from aimtrainer.engine.controller import AdaptationController
from aimtrainer.engine.patterns import PRESETS, FlickPattern, PatternGenerator, generate_preset
from aimtrainer.engine.profile import UserSkillProfile
from aimtrainer.engine.recommender import ActiveAdjustments, DifficultyRecommendation
from aimtrainer.state.profile_store import ProfileStore, SqliteProfileStore

from .protocol import Notification


def _profile_to_dict(profile: UserSkillProfile) -> dict:
    return {
        "overallSkill": profile.overall_skill,
        "accuracyRating": profile.accuracy_rating,
        "speedRating": profile.speed_rating,
        "consistencyRating": profile.consistency_rating,
        "flickSkill": profile.flick_skill,
        "trackingSkill": profile.tracking_skill,
        "precisionSkill": profile.precision_skill,
        "improvementRate": profile.improvement_rate,
        "confidence": profile.confidence,
        "optimalDifficulty": profile.optimal_difficulty,
        "challengeThreshold": profile.challenge_threshold,
        "comfortZone": profile.comfort_zone,
        "lastUpdated": profile.last_updated,
        "sessionsAnalyzed": profile.sessions_analyzed,
    }


def _recommendation_to_dict(rec: Optional[DifficultyRecommendation]) -> Optional[dict]:
    if rec is None:
        return None
    return {
        "targetDifficulty": rec.target_difficulty,
        "reason": rec.reason,
        "adjustmentType": rec.adjustment_type.value,
        "confidence": rec.confidence,
        "targetSize": rec.target_size,
        "spawnRate": rec.spawn_rate,
        "targetLifetime": rec.target_lifetime,
        "movementSpeed": rec.movement_speed,
        "recommendedModes": list(rec.recommended_modes),
        "focusAreas": list(rec.focus_areas),
    }


def _analysis_to_dict(analysis: Optional[PerformanceAnalysis]) -> Optional[dict]:
    if analysis is None:
        return None
    recent = analysis.recent_performance
    return {
        "skillGaps": dict(analysis.skill_gaps),
        "recentPerformance": {
            "averageAccuracy": recent.average_accuracy,
            "averageReactionTime": recent.average_reaction_time,
            "averageConsistency": recent.average_consistency,
            "performanceStability": recent.performance_stability,
        },
        "currentSession": {
            "trend": analysis.current_session.trend.value,
            "strength": analysis.current_session.strength,
        },
        "frustrationRisk": analysis.frustration_risk,
        "boredomRisk": analysis.boredom_risk,
        "adaptationNeeded": analysis.adaptation_needed,
    }


def _adjustments_to_dict(adj: ActiveAdjustments) -> dict:
    return {
        "targetSizeMultiplier": adj.target_size_multiplier,
        "spawnRateMultiplier": adj.spawn_rate_multiplier,
        "targetLifetimeMultiplier": adj.target_lifetime_multiplier,
        "movementSpeedMultiplier": adj.movement_speed_multiplier,
    }


def _pattern_to_dict(pattern: FlickPattern) -> dict:
    return {
        "id": pattern.id,
        "name": pattern.name,
        "description": pattern.description,
        "duration": pattern.duration,
        "difficulty": pattern.difficulty.value,
        "sizeMultiplier": pattern.size_multiplier,
        "timeMultiplier": pattern.time_multiplier,
        "targets": [
            {
                "id": t.id,
                "position": list(t.position),
                "angle": t.angle,
                "distance": t.distance,
                "zone": t.zone.value,
                "difficulty": t.difficulty,
                "spawnTime": t.spawn_time,
                "expectedReactionTime": t.expected_reaction_time,
            }
            for t in pattern.targets
        ],
    }


class ServerHandler:
    """Routes incoming requests to engine methods and returns result dicts."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        write_notification: Optional[Callable[[Notification], None]] = None,
        store: Optional[ProfileStore] = None,
        clock: Optional[Clock] = None,
        rng: Optional[Rng] = None,
    ):
        self.settings = settings or Settings.load()
        self._write_notification = write_notification or (lambda n: None)

        self.store = store or SqliteProfileStore(
            db_path=self.settings.get_data_dir() / "profiles.db"
        )
        self.controller = AdaptationController(
            settings=self.settings, store=self.store, clock=clock,
        )
        self.generator = PatternGenerator(
            clock=self.controller.clock, rng=rng, config=self.settings.patterns,
        )

    async def dispatch(self, msg: dict) -> dict:
        """Route a request message to the appropriate handler method."""
        method = msg.get("method", "")
        params = msg.get("params") or {}

        handler_map = {
            "getState": self._get_state,
            "getProfile": self._get_profile,
            "resetProfile": self._reset_profile,
            "analyzePerformance": self._analyze_performance,
            "applyRecommendation": self._apply_recommendation,
            "dismissRecommendation": self._dismiss_recommendation,
            "setDifficulty": self._set_difficulty,
            "setDynamicMode": self._set_dynamic_mode,
            "setAutoAdjust": self._set_auto_adjust,
            "setSensitivity": self._set_sensitivity,
            "getInsights": self._get_insights,
            "generatePattern": self._generate_pattern,
            "listPresets": self._list_presets,
            "generatePreset": self._generate_preset,
        }

        handler = handler_map.get(method)
        if handler is None:
            raise ValueError(f"Unknown method: {method}")

        return await handler(params)

    def _state(self) -> dict:
        c = self.controller
        return {
            "currentDifficulty": c.current_difficulty,
            "activeAdjustments": _adjustments_to_dict(c.active_adjustments),
            "adaptationSensitivity": c.sensitivity.value,
            "isDynamicModeEnabled": c.dynamic_mode_enabled,
            "autoAdjustEnabled": c.auto_adjust_enabled,
            "showRecommendations": c.show_recommendations,
            "latestRecommendation": _recommendation_to_dict(c.latest_recommendation),
        }

    async def _get_state(self, params: dict) -> dict:
        return self._state()

    async def _get_profile(self, params: dict) -> dict:
        return {
            "profile": _profile_to_dict(self.controller.profile),
            "optimalDifficulty": self.controller.get_optimal_difficulty(),
        }

    async def _reset_profile(self, params: dict) -> dict:
        self.controller.reset_profile()
        return {"ok": True, "profile": _profile_to_dict(self.controller.profile)}

    async def _analyze_performance(self, params: dict) -> dict:
        performance = params.get("performance")
        if not isinstance(performance, dict):
            raise ValueError("analyzePerformance requires a 'performance' object")

        self.controller.analyze_performance(performance)
        state = self._state()
        if self.controller.has_pending_recommendation:
            self._write_notification(Notification.recommendation(state["latestRecommendation"]))
        return {
            **state,
            "analysis": _analysis_to_dict(self.controller.current_analysis),
            "profile": _profile_to_dict(self.controller.profile),
        }

    async def _apply_recommendation(self, params: dict) -> dict:
        rec = self.controller.latest_recommendation
        if rec is None:
            raise ValueError("No recommendation to apply")
        self.controller.apply_recommendation(rec)
        return self._state()

    async def _dismiss_recommendation(self, params: dict) -> dict:
        self.controller.dismiss_recommendation()
        return self._state()

    async def _set_difficulty(self, params: dict) -> dict:
        self.controller.set_current_difficulty(float(params["difficulty"]))
        return self._state()

    async def _set_dynamic_mode(self, params: dict) -> dict:
        self.controller.set_dynamic_mode(bool(params["enabled"]))
        return self._state()

    async def _set_auto_adjust(self, params: dict) -> dict:
        self.controller.set_auto_adjust(bool(params["enabled"]))
        return self._state()

    async def _set_sensitivity(self, params: dict) -> dict:
        self.controller.set_adaptation_sensitivity(params["sensitivity"])
        return self._state()

    async def _get_insights(self, params: dict) -> dict:
        trends = self.controller.get_skill_trends()
        insights = self.controller.get_performance_insights()
        return {
            "trends": {
                "overall": trends.overall.value,
                "accuracy": trends.accuracy.value,
                "speed": trends.speed.value,
                "consistency": trends.consistency.value,
            },
            "strengths": insights.strengths,
            "weaknesses": insights.weaknesses,
            "nextGoals": insights.next_goals,
            "recommendedModes": self.controller.get_recommended_training_modes(),
        }

    async def _generate_pattern(self, params: dict) -> dict:
        family = params["family"]
        kwargs = {
            "target_count": params.get("targetCount", 10),
            "focus_zone": params.get("focusZone"),
            "stats": params.get("stats"),
        }
        tier = params.get("tier")
        if tier is None:
            pattern = self.controller.next_pattern(self.generator, family, **kwargs)
        else:
            pattern = self.generator.generate(
                family, tier, adjustments=self.controller.active_adjustments, **kwargs,
            )
        return {"pattern": _pattern_to_dict(pattern)}

    async def _list_presets(self, params: dict) -> dict:
        return {"presets": {level: sorted(names) for level, names in PRESETS.items()}}

    async def _generate_preset(self, params: dict) -> dict:
        pattern = generate_preset(
            self.generator,
            params["level"],
            params["name"],
            params.get("tier", "silver"),
            stats=params.get("stats"),
        )
        return {"pattern": _pattern_to_dict(pattern)}
