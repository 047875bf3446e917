"""Resilience – RetrySchedule: backoff + jitter bounded by a retry window."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from catalog_sync.resilience.retry.backoff import BackoffStrategy, ExponentialBackoff
from catalog_sync.resilience.retry.jitter import EqualJitter, JitterStrategy


@dataclass
class RetrySchedule:
    """Decides when a failed delivery is tried again, and when to give up.

    Attempts are unbounded in count; only the elapsed time since the first
    attempt ends the retries.
    """

    window: timedelta = timedelta(hours=1)
    backoff: BackoffStrategy = field(default_factory=ExponentialBackoff)
    jitter: JitterStrategy = field(default_factory=EqualJitter)

    def delay(self, attempts: int) -> timedelta:
        return timedelta(seconds=self.jitter.apply(self.backoff.compute(attempts)))

    def next_attempt_at(self, now: datetime, attempts: int) -> datetime:
        return now + self.delay(attempts)

    def exhausted(self, first_attempt_at: datetime | None, now: datetime) -> bool:
        if first_attempt_at is None:
            return False
        return now - first_attempt_at >= self.window


__all__ = ["RetrySchedule"]
