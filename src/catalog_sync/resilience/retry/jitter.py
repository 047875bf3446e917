"""Resilience – jitter strategies."""
from __future__ import annotations

import abc
import random


class JitterStrategy(abc.ABC):
    """Randomise a backoff delay so retries of many events do not line up."""

    @abc.abstractmethod
    def apply(self, delay: float) -> float: ...


class NoJitter(JitterStrategy):
    def apply(self, delay: float) -> float:
        return delay


class FullJitter(JitterStrategy):
    """Uniform random in [0, delay]."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def apply(self, delay: float) -> float:
        return self._rng.uniform(0, delay)


class EqualJitter(JitterStrategy):
    """Uniform random in [delay/2, delay]."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def apply(self, delay: float) -> float:
        half = delay / 2
        return half + self._rng.uniform(0, half)


__all__ = ["EqualJitter", "FullJitter", "JitterStrategy", "NoJitter"]
