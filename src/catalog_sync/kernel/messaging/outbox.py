"""Kernel messaging – listing change outbox ports."""
from __future__ import annotations

import abc
import dataclasses
from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from typing import Any

from catalog_sync.kernel.catalog.listing import Listing
from catalog_sync.kernel.catalog.search import SearchDocument, listing_fields
from catalog_sync.kernel.time import utc_now


class SyncOperation(str, Enum):
    UPSERT = "upsert"
    DELETE = "delete"


class DeliveryState(str, Enum):
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclasses.dataclass
class OutboxEvent:
    """Durable record of one committed listing change awaiting indexing.

    ``sequence`` is assigned by the store on append and only grows, so the
    events of a listing are ordered by it. ``payload`` holds the document
    fields for upserts and is empty for deletes.
    """

    listing_id: str
    operation: SyncOperation
    listing_version: int
    payload: dict[str, Any] = dataclasses.field(default_factory=dict)
    sequence: int | None = None
    state: DeliveryState = DeliveryState.PENDING
    attempts: int = 0
    synthetic: bool = False
    created_at: datetime = dataclasses.field(default_factory=utc_now)
    first_attempt_at: datetime | None = None
    next_attempt_at: datetime | None = None
    claimed_until: datetime | None = None
    delivered_at: datetime | None = None
    last_error: str | None = None

    def __post_init__(self) -> None:
        if self.next_attempt_at is None:
            self.next_attempt_at = self.created_at

    @classmethod
    def for_listing(
        cls,
        listing: Listing,
        *,
        created_at: datetime,
        synthetic: bool = False,
    ) -> OutboxEvent:
        """Upsert for a live listing, delete for a tombstone."""
        if listing.deleted:
            return cls(
                listing_id=listing.id,
                operation=SyncOperation.DELETE,
                listing_version=listing.version,
                synthetic=synthetic,
                created_at=created_at,
            )
        return cls(
            listing_id=listing.id,
            operation=SyncOperation.UPSERT,
            listing_version=listing.version,
            payload=listing_fields(listing),
            synthetic=synthetic,
            created_at=created_at,
        )

    def document(self) -> SearchDocument:
        return SearchDocument(id=self.listing_id, version=self.listing_version, fields=dict(self.payload))

    def is_claimable(self, now: datetime) -> bool:
        if self.state is DeliveryState.PENDING:
            return self.next_attempt_at is None or self.next_attempt_at <= now
        if self.state is DeliveryState.IN_FLIGHT:
            return self.claimed_until is None or self.claimed_until <= now
        return False


def select_deliverable(
    events: Iterable[OutboxEvent],
    now: datetime,
    max_count: int,
    blocked: set[str] | None = None,
) -> list[OutboxEvent]:
    """Pick the next events to hand to the reconciler.

    *events* must be in sequence order. Delivered and failed events are
    skipped. The first undeliverable event of a listing (still backing off,
    or leased to another pass) blocks every later event of that listing.
    Pass *blocked* to carry that state across successive pages of events.
    """
    if blocked is None:
        blocked = set()
    selected: list[OutboxEvent] = []
    for event in events:
        if len(selected) >= max_count:
            break
        if event.state in (DeliveryState.DELIVERED, DeliveryState.FAILED):
            continue
        if event.listing_id in blocked:
            continue
        if event.is_claimable(now):
            selected.append(event)
        else:
            blocked.add(event.listing_id)
    return selected


@dataclasses.dataclass(frozen=True)
class CommittedChange:
    """A store write together with the outbox event appended with it."""

    listing: Listing
    event: OutboxEvent


class OutboxRepository(abc.ABC):
    """Port: persistence for listing change events.

    Only the listing store appends; only the reconciler changes delivery
    state, apart from the operator ``requeue``.
    """

    @abc.abstractmethod
    async def append(self, event: OutboxEvent, *, session: Any | None = None) -> OutboxEvent:
        """Persist *event*, inside *session*'s transaction when given."""

    @abc.abstractmethod
    async def fetch_batch(self, max_count: int) -> list[OutboxEvent]:
        """Claim up to *max_count* deliverable events, in sequence order."""

    @abc.abstractmethod
    async def get(self, sequence: int) -> OutboxEvent | None: ...

    # The settle calls below take the ``claimed_until`` of the claim they
    # finish as *lease*. With a lease the update only lands while that claim
    # still holds the event, and the call returns False once another worker
    # has reclaimed it.

    @abc.abstractmethod
    async def mark_delivered(self, sequence: int, *, lease: datetime | None = None) -> bool: ...

    @abc.abstractmethod
    async def reschedule(
        self, sequence: int, *, next_attempt_at: datetime, error: str, lease: datetime | None = None
    ) -> bool:
        """Return a failed attempt to ``pending``, counting the attempt."""

    @abc.abstractmethod
    async def release(self, sequence: int, *, lease: datetime | None = None) -> bool:
        """Return a claimed event to ``pending`` without counting an attempt."""

    @abc.abstractmethod
    async def mark_failed(self, sequence: int, *, error: str, lease: datetime | None = None) -> bool: ...

    @abc.abstractmethod
    async def list_failed(self, limit: int = 100) -> list[OutboxEvent]: ...

    @abc.abstractmethod
    async def requeue(self, sequence: int) -> OutboxEvent:
        """Move a ``failed`` event back to ``pending`` with a fresh retry window."""

    @abc.abstractmethod
    async def counts(self) -> dict[DeliveryState, int]: ...

    @abc.abstractmethod
    async def purge_delivered(self, before: datetime) -> int: ...

    @abc.abstractmethod
    async def undelivered_listing_ids(self, listing_ids: Iterable[str]) -> set[str]:
        """Subset of *listing_ids* with a ``pending`` or ``in_flight`` event."""


__all__ = [
    "CommittedChange",
    "DeliveryState",
    "OutboxEvent",
    "OutboxRepository",
    "SyncOperation",
    "select_deliverable",
]
