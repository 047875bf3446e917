"""FastAPI adapter – request and response models."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from catalog_sync.kernel.catalog import ListingChanges, ListingStatus, NewListing, SearchHit, SearchResult
from catalog_sync.kernel.messaging import OutboxEvent


class CreateListingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    price: Decimal
    category: str | None = None
    status: ListingStatus = ListingStatus.DRAFT
    id: str | None = Field(default=None, max_length=64)

    def to_domain(self) -> NewListing:
        return NewListing(
            title=self.title,
            price=self.price,
            category=self.category,
            status=self.status,
            id=self.id,
        )


class UpdateListingRequest(BaseModel):
    """Partial update; ``expected_version`` is the version the client last read."""

    model_config = ConfigDict(extra="forbid")

    expected_version: int = Field(ge=1)
    title: str | None = None
    price: Decimal | None = None
    status: ListingStatus | None = None
    category: str | None = None

    def to_domain(self) -> ListingChanges:
        return ListingChanges(title=self.title, price=self.price, status=self.status, category=self.category)


class ListingVersionResponse(BaseModel):
    id: str
    version: int
    sequence: int | None = None


class SearchResponse(BaseModel):
    items: list[dict[str, Any]]
    total: int
    page: int
    size: int

    @classmethod
    def from_result(cls, result: SearchResult[SearchHit]) -> SearchResponse:
        return cls(
            items=[{"id": hit.id, "version": hit.version, **hit.fields} for hit in result.items],
            total=result.total,
            page=result.page,
            size=result.page_size,
        )


class OutboxEventResponse(BaseModel):
    sequence: int
    listing_id: str
    operation: str
    listing_version: int
    state: str
    attempts: int
    synthetic: bool
    created_at: datetime
    first_attempt_at: datetime | None = None
    next_attempt_at: datetime | None = None
    last_error: str | None = None

    @classmethod
    def from_event(cls, event: OutboxEvent) -> OutboxEventResponse:
        return cls(
            sequence=event.sequence or 0,
            listing_id=event.listing_id,
            operation=event.operation.value,
            listing_version=event.listing_version,
            state=event.state.value,
            attempts=event.attempts,
            synthetic=event.synthetic,
            created_at=event.created_at,
            first_attempt_at=event.first_attempt_at,
            next_attempt_at=event.next_attempt_at,
            last_error=event.last_error,
        )


class SyncStatusResponse(BaseModel):
    outbox: dict[str, int]
    reconciler_running: bool


__all__ = [
    "CreateListingRequest",
    "ListingVersionResponse",
    "OutboxEventResponse",
    "SearchResponse",
    "SyncStatusResponse",
    "UpdateListingRequest",
]
