"""Kernel messaging – change outbox."""
from catalog_sync.kernel.messaging.outbox import (
    CommittedChange,
    DeliveryState,
    OutboxEvent,
    OutboxRepository,
    SyncOperation,
    select_deliverable,
)

__all__ = [
    "CommittedChange",
    "DeliveryState",
    "OutboxEvent",
    "OutboxRepository",
    "SyncOperation",
    "select_deliverable",
]
