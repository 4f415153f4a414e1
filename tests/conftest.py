"""Shared fixtures for aim trainer engine tests."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from aimtrainer.config.settings import Settings
from aimtrainer.engine.clock import SeededRng
from aimtrainer.engine.controller import AdaptationController
from aimtrainer.engine.patterns import PatternGenerator
from aimtrainer.engine.profile import GamePerformance
from aimtrainer.state.profile_store import MemoryProfileStore


@dataclass
class FakeClock:
    t: float = 1_700_000_000_000.0

    def now_ms(self) -> float:
        return self.t

    def advance(self, ms: float) -> None:
        self.t += ms


def make_performance(**overrides) -> GamePerformance:
    data = {
        "score": 1200,
        "accuracy": 70.0,
        "reaction_time": 400.0,
        "hits": 35,
        "misses": 15,
        "streak": 8,
        "game_mode": "flick",
        "difficulty": "medium",
        "duration": 60.0,
        "consistency": 60.0,
    }
    data.update(overrides)
    return GamePerformance(**data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def store():
    return MemoryProfileStore()


@pytest.fixture
def controller(settings, store, clock):
    return AdaptationController(settings=settings, store=store, clock=clock)


@pytest.fixture
def generator(clock):
    return PatternGenerator(clock=clock, rng=SeededRng(1234))


@pytest.fixture
def make_perf():
    return make_performance
