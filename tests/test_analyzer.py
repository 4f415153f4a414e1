"""Tests for session analysis and profile smoothing."""

from __future__ import annotations

import pytest

from aimtrainer.config.settings import AnalyzerConfig
from aimtrainer.engine.analyzer import (
    PerformanceAnalyzer,
    Trend,
    boredom_risk,
    frustration_risk,
    observed_dimensions,
    standard_deviation,
)
from aimtrainer.engine.errors import InvalidPerformanceError
from aimtrainer.engine.profile import UserSkillProfile, create_initial_profile


@pytest.fixture
def analyzer():
    return PerformanceAnalyzer(AnalyzerConfig())


class TestFirstSession:
    def test_adopts_observed_values(self, analyzer, make_perf):
        perf = make_perf(accuracy=82, reaction_time=300, consistency=64, game_mode="flick")
        profile, analysis = analyzer.analyze(perf, create_initial_profile())
        assert profile.sessions_analyzed == 1
        assert profile.accuracy_rating == 82
        assert profile.speed_rating == 80
        assert profile.consistency_rating == 64
        assert profile.flick_skill == 81
        # Dimensions the session did not exercise keep the baseline.
        assert profile.tracking_skill == 30
        assert profile.precision_skill == 30

    def test_gaps_against_prior_profile(self, analyzer, make_perf):
        perf = make_perf(accuracy=82, reaction_time=300, consistency=64, game_mode="flick")
        _, analysis = analyzer.analyze(perf, create_initial_profile())
        assert analysis.skill_gaps == {
            "accuracy": pytest.approx(52),
            "speed": pytest.approx(50),
            "consistency": pytest.approx(34),
            "flick": pytest.approx(51),
        }
        assert analysis.adaptation_needed is True

    def test_input_profile_untouched(self, analyzer, make_perf):
        profile = create_initial_profile()
        analyzer.analyze(make_perf(), profile)
        assert profile == create_initial_profile()


class TestSmoothing:
    def test_moves_by_smoothing_fraction(self, make_perf):
        analyzer = PerformanceAnalyzer(AnalyzerConfig(smoothing_factor=0.2))
        prior = UserSkillProfile(accuracy_rating=50, sessions_analyzed=3)
        profile, _ = analyzer.analyze(make_perf(accuracy=100, game_mode="other"), prior)
        assert profile.accuracy_rating == pytest.approx(60)
        assert profile.sessions_analyzed == 4

    def test_ratings_stay_in_range(self, analyzer, make_perf):
        profile = create_initial_profile()
        history = []
        for i in range(40):
            perf = make_perf(accuracy=100 if i % 2 else 0, reaction_time=0 if i % 2 else 5000,
                             consistency=100 if i % 2 else 0)
            profile, _ = analyzer.analyze(perf, profile, history)
            history.append(perf)
            for value in profile.to_dict().values():
                assert -100 <= value
            for name in ("overall_skill", "accuracy_rating", "speed_rating", "optimal_difficulty"):
                assert 0 <= getattr(profile, name) <= 100

    def test_overall_is_mean_of_dimensions(self, analyzer, make_perf):
        profile, _ = analyzer.analyze(make_perf(game_mode="tracking"), create_initial_profile())
        dims = [profile.accuracy_rating, profile.speed_rating, profile.consistency_rating,
                profile.flick_skill, profile.tracking_skill, profile.precision_skill]
        assert profile.overall_skill == pytest.approx(sum(dims) / 6)


class TestAdaptationSignal:
    def test_matching_session_needs_no_adaptation(self, analyzer, make_perf):
        perf = make_perf(accuracy=70, reaction_time=400, consistency=60, game_mode="other")
        prior = UserSkillProfile(accuracy_rating=70, speed_rating=70, consistency_rating=60,
                                 sessions_analyzed=5)
        _, analysis = analyzer.analyze(perf, prior)
        assert analysis.adaptation_needed is False

    def test_unstable_history_needs_adaptation(self, analyzer, make_perf):
        prior = UserSkillProfile(accuracy_rating=60, speed_rating=70, consistency_rating=60,
                                 sessions_analyzed=5)
        history = [make_perf(accuracy=a, game_mode="other") for a in (20, 100, 30, 95)]
        _, analysis = analyzer.analyze(make_perf(accuracy=60, game_mode="other"), prior, history)
        assert analysis.recent_performance.performance_stability < 60
        assert analysis.adaptation_needed is True

    def test_rejects_malformed_record(self, analyzer):
        with pytest.raises(InvalidPerformanceError):
            analyzer.analyze({"accuracy": float("nan")}, create_initial_profile())


class TestTrendsAndRisks:
    def test_improving_trend(self, analyzer, make_perf):
        history = [make_perf(accuracy=50) for _ in range(10)]
        history += [make_perf(accuracy=80) for _ in range(9)]
        profile = UserSkillProfile(sessions_analyzed=19)
        updated, analysis = analyzer.analyze(make_perf(accuracy=80), profile, history)
        assert analysis.current_session.trend is Trend.IMPROVING
        assert updated.improvement_rate > 0

    def test_frustration_from_declines(self, make_perf):
        window = [make_perf(accuracy=a) for a in (70, 55, 40)]
        assert frustration_risk(window) == 25 * 2 + 20 * 2

    def test_boredom_from_high_flat_accuracy(self, make_perf):
        window = [make_perf(accuracy=95) for _ in range(5)]
        assert boredom_risk(window) == 100

    def test_short_windows_carry_no_risk(self, make_perf):
        assert frustration_risk([make_perf(accuracy=10)] * 2) == 0
        assert boredom_risk([make_perf(accuracy=99)] * 4) == 0

    def test_standard_deviation(self):
        assert standard_deviation([5]) == 0
        assert standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2)


def test_observed_dimensions_by_mode(make_perf):
    assert "tracking_skill" in observed_dimensions(make_perf(game_mode="tracking"))
    assert "precision_skill" in observed_dimensions(make_perf(game_mode="Precision"))
    assert set(observed_dimensions(make_perf(game_mode="speed"))) == {
        "accuracy_rating", "speed_rating", "consistency_rating",
    }
