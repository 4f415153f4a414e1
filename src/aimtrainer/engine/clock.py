from __future__ import annotations

import random
import time
from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")


class Clock(Protocol):
    """Wall-clock abstraction.

    Engine code depends on this interface rather than calling real time
    directly, so ids and spawn timestamps can be made deterministic.
    """

    def now_ms(self) -> float:
        """Return epoch milliseconds."""


class SystemClock:
    """Production clock backed by time.time()."""

    def now_ms(self) -> float:
        return time.time() * 1000.0


class Rng(Protocol):
    def random(self) -> float:
        ...

    def uniform(self, a: float, b: float) -> float:
        ...

    def choice(self, seq: Sequence[T]) -> T:
        ...


class SeededRng:
    """Seeded RNG wrapper to keep random streams explicit."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)
