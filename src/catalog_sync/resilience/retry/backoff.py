"""Resilience – backoff strategies for redelivery of failed work."""
from __future__ import annotations

import abc


class BackoffStrategy(abc.ABC):
    """Compute the wait (seconds) before the next try after *attempts* failures."""

    @abc.abstractmethod
    def compute(self, attempts: int) -> float: ...


class ConstantBackoff(BackoffStrategy):
    def __init__(self, delay: float = 1.0) -> None:
        self._delay = delay

    def compute(self, attempts: int) -> float:  # noqa: ARG002
        return self._delay


class ExponentialBackoff(BackoffStrategy):
    """``base_delay * multiplier^(attempts - 1)``, capped at ``max_delay``.

    The first failure waits ``base_delay``.
    """

    def __init__(self, base_delay: float = 0.5, max_delay: float = 60.0, multiplier: float = 2.0) -> None:
        if base_delay <= 0 or max_delay < base_delay:
            raise ValueError("ExponentialBackoff needs 0 < base_delay <= max_delay")
        self._base = base_delay
        self._max = max_delay
        self._multiplier = multiplier

    def compute(self, attempts: int) -> float:
        exponent = max(attempts - 1, 0)
        # Cap the exponent so huge attempt counts cannot overflow a float.
        if exponent > 64:
            return self._max
        return min(self._base * (self._multiplier ** exponent), self._max)


__all__ = ["BackoffStrategy", "ConstantBackoff", "ExponentialBackoff"]
