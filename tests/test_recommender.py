"""Tests for the recommendation engine."""

from __future__ import annotations

import pytest

from aimtrainer.config.settings import MultiplierBand, RecommenderConfig
from aimtrainer.engine.analyzer import PerformanceAnalysis, RecentPerformance
from aimtrainer.engine.profile import UserSkillProfile
from aimtrainer.engine.recommender import AdjustmentType, RecommendationEngine


def _analysis(gaps=None, stability=100.0, boredom=0.0, frustration=0.0):
    return PerformanceAnalysis(
        skill_gaps=gaps or {},
        recent_performance=RecentPerformance(performance_stability=stability),
        boredom_risk=boredom,
        frustration_risk=frustration,
    )


@pytest.fixture
def engine():
    return RecommendationEngine(RecommenderConfig())


class TestTargetDifficulty:
    def test_pulls_toward_optimal(self, engine):
        rec = engine.recommend(_analysis(), UserSkillProfile(optimal_difficulty=60), 40)
        assert rec.target_difficulty == pytest.approx(50)
        assert rec.adjustment_type is AdjustmentType.INCREASE

    def test_positive_gap_pushes_up(self, engine):
        base = engine.recommend(_analysis(), UserSkillProfile(optimal_difficulty=50), 50)
        ahead = engine.recommend(_analysis({"accuracy": 30}), UserSkillProfile(optimal_difficulty=50), 50)
        assert base.target_difficulty == pytest.approx(50)
        assert base.adjustment_type is AdjustmentType.MAINTAIN
        assert ahead.target_difficulty == pytest.approx(56)

    def test_negative_gap_pulls_down_and_is_capped(self, engine):
        rec = engine.recommend(_analysis({"speed": -200, "accuracy": 10}), UserSkillProfile(optimal_difficulty=50), 50)
        assert rec.target_difficulty == pytest.approx(35)
        assert rec.adjustment_type is AdjustmentType.DECREASE

    def test_boredom_and_frustration(self, engine):
        profile = UserSkillProfile(optimal_difficulty=50)
        bored = engine.recommend(_analysis(boredom=90), profile, 50)
        frustrated = engine.recommend(_analysis(frustration=90), profile, 50)
        assert bored.target_difficulty == pytest.approx(65)
        assert frustrated.target_difficulty == pytest.approx(35)

    def test_clamped_to_scale(self, engine):
        high = engine.recommend(_analysis({"accuracy": 500}, boredom=100), UserSkillProfile(optimal_difficulty=100), 100)
        low = engine.recommend(_analysis({"accuracy": -500}, frustration=100), UserSkillProfile(optimal_difficulty=0), 0)
        assert high.target_difficulty == 100
        assert low.target_difficulty == 0


class TestMultipliers:
    def test_monotonic_in_difficulty(self, engine):
        recs = [engine.recommend(_analysis(), UserSkillProfile(optimal_difficulty=d), d) for d in range(0, 101, 5)]
        sizes = [r.target_size for r in recs]
        lifetimes = [r.target_lifetime for r in recs]
        spawn = [r.spawn_rate for r in recs]
        speed = [r.movement_speed for r in recs]
        assert sizes == sorted(sizes, reverse=True)
        assert lifetimes == sorted(lifetimes, reverse=True)
        assert spawn == sorted(spawn)
        assert speed == sorted(speed)

    def test_band_endpoints(self, engine):
        easy = engine.recommend(_analysis(), UserSkillProfile(optimal_difficulty=0), 0)
        hard = engine.recommend(_analysis(), UserSkillProfile(optimal_difficulty=100), 100)
        assert (easy.target_size, easy.spawn_rate, easy.target_lifetime, easy.movement_speed) == pytest.approx(
            (1.2, 0.8, 1.0, 0.5))
        assert (hard.target_size, hard.spawn_rate, hard.target_lifetime, hard.movement_speed) == pytest.approx(
            (0.4, 1.2, 0.3, 1.5))

    def test_custom_band_respected(self):
        engine = RecommendationEngine(RecommenderConfig(target_size=MultiplierBand(low=0.7, high=0.9)))
        rec = engine.recommend(_analysis(), UserSkillProfile(optimal_difficulty=100), 100)
        assert rec.target_size == pytest.approx(0.7)

    def test_invalid_band_rejected(self):
        with pytest.raises(ValueError):
            MultiplierBand(low=0.0, high=1.0)
        with pytest.raises(ValueError):
            MultiplierBand(low=1.5, high=1.0)


class TestTrainingFocus:
    def test_worst_gaps_pick_modes(self, engine):
        gaps = {"accuracy": -40, "speed": -25, "consistency": -30, "flick": -50}
        rec = engine.recommend(_analysis(gaps), UserSkillProfile(), 30)
        assert rec.recommended_modes == ["flick", "precision", "tracking"]
        assert rec.focus_areas == ["Flick Technique", "Accuracy Training", "Consistency"]

    def test_falls_back_to_single_worst(self, engine):
        rec = engine.recommend(_analysis({"accuracy": 4, "speed": -3, "consistency": 10}), UserSkillProfile(), 30)
        assert rec.recommended_modes == ["speed"]
        assert rec.focus_areas == ["Reaction Time"]

    def test_stability_focus(self, engine):
        rec = engine.recommend(_analysis({"accuracy": 0}, stability=40), UserSkillProfile(), 30)
        assert "Stability" in rec.focus_areas

    def test_modes_deduplicated(self, engine):
        rec = engine.recommend(_analysis({"consistency": -30, "tracking": -35}), UserSkillProfile(), 30)
        assert rec.recommended_modes == ["tracking"]

    def test_no_gaps_default_mode(self, engine):
        rec = engine.recommend(_analysis(), UserSkillProfile(), 30)
        assert rec.recommended_modes == ["precision"]
        assert 1 <= len(rec.recommended_modes) <= 3
