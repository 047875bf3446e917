"""Application sync – outbox reconciliation and drift repair."""
from catalog_sync.application.sync.operator import SyncOperator
from catalog_sync.application.sync.reconciler import (
    ReconcilerConfig,
    SyncReconciler,
    partition_of,
    schedule_from_settings,
)
from catalog_sync.application.sync.report import DrainReport

__all__ = [
    "DrainReport",
    "ReconcilerConfig",
    "SyncOperator",
    "SyncReconciler",
    "partition_of",
    "schedule_from_settings",
]
