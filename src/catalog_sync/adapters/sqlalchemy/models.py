"""SQLAlchemy adapter – ORM models for listings and the change outbox."""
from __future__ import annotations

import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from catalog_sync.kernel.catalog import Listing, ListingStatus
from catalog_sync.kernel.messaging import DeliveryState, OutboxEvent, SyncOperation
from catalog_sync.kernel.time import as_utc


class Base(DeclarativeBase):
    pass


class ListingRow(Base):
    """System-of-record row. Deleted listings stay as tombstones."""

    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(256), index=True)
    title: Mapped[str] = mapped_column(String(300))
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    status: Mapped[str] = mapped_column(String(16))
    category: Mapped[str | None] = mapped_column(String(128), nullable=True, default=None)
    version: Mapped[int] = mapped_column(Integer)
    deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True))


class OutboxRow(Base):
    """One pending index change; ``sequence`` never repeats, even after purges."""

    __tablename__ = "listing_outbox"
    __table_args__ = (
        Index("ix_listing_outbox_state_sequence", "state", "sequence"),
        {"sqlite_autoincrement": True},
    )

    sequence: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    listing_id: Mapped[str] = mapped_column(String(64), index=True)
    operation: Mapped[str] = mapped_column(String(16))
    listing_version: Mapped[int] = mapped_column(Integer)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    state: Mapped[str] = mapped_column(String(16), default=DeliveryState.PENDING.value)
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    synthetic: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True))
    first_attempt_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_attempt_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True))
    claimed_until: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)


def _utc(value: datetime.datetime | None) -> datetime.datetime | None:
    return as_utc(value) if value is not None else None


def row_to_listing(row: ListingRow) -> Listing:
    return Listing(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        price=Decimal(row.price),
        status=ListingStatus(row.status),
        category=row.category,
        version=row.version,
        deleted=bool(row.deleted),
        updated_at=_utc(row.updated_at),
    )


def row_to_event(row: OutboxRow) -> OutboxEvent:
    return OutboxEvent(
        sequence=row.sequence,
        listing_id=row.listing_id,
        operation=SyncOperation(row.operation),
        listing_version=row.listing_version,
        payload=dict(row.payload or {}),
        state=DeliveryState(row.state),
        attempts=row.attempts,
        synthetic=bool(row.synthetic),
        created_at=as_utc(row.created_at),
        first_attempt_at=_utc(row.first_attempt_at),
        next_attempt_at=_utc(row.next_attempt_at),
        claimed_until=_utc(row.claimed_until),
        delivered_at=_utc(row.delivered_at),
        last_error=row.last_error,
    )


def event_to_row(event: OutboxEvent) -> OutboxRow:
    return OutboxRow(
        listing_id=event.listing_id,
        operation=event.operation.value,
        listing_version=event.listing_version,
        payload=dict(event.payload),
        state=event.state.value,
        attempts=event.attempts,
        synthetic=event.synthetic,
        created_at=event.created_at,
        first_attempt_at=event.first_attempt_at,
        next_attempt_at=event.next_attempt_at or event.created_at,
        claimed_until=event.claimed_until,
        delivered_at=event.delivered_at,
        last_error=event.last_error,
    )


__all__ = ["Base", "ListingRow", "OutboxRow", "event_to_row", "row_to_event", "row_to_listing"]
