"""Resilience – retry scheduling with backoff and jitter strategies."""
from catalog_sync.resilience.retry.backoff import BackoffStrategy, ConstantBackoff, ExponentialBackoff
from catalog_sync.resilience.retry.jitter import EqualJitter, FullJitter, JitterStrategy, NoJitter
from catalog_sync.resilience.retry.schedule import RetrySchedule
from catalog_sync.resilience.retry.tenacity_adapter import TenacityRetryPolicy

__all__ = [
    "BackoffStrategy", "ConstantBackoff", "EqualJitter", "ExponentialBackoff",
    "FullJitter", "JitterStrategy", "NoJitter", "RetrySchedule", "TenacityRetryPolicy",
]
