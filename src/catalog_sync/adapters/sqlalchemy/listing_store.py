"""SQLAlchemy adapter – SqlAlchemyListingStore."""
from __future__ import annotations

from collections.abc import Callable
from typing import Any
from uuid import uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_sync.adapters.sqlalchemy.models import ListingRow, row_to_listing
from catalog_sync.adapters.sqlalchemy.outbox import SqlAlchemyOutboxRepository
from catalog_sync.kernel.catalog import (
    Listing,
    ListingChanges,
    ListingStore,
    ListingVersion,
    NewListing,
)
from catalog_sync.kernel.errors import (
    ConflictError,
    InfrastructureError,
    NotFoundError,
    VersionConflictError,
)
from catalog_sync.kernel.messaging import CommittedChange, OutboxEvent, SyncOperation
from catalog_sync.kernel.time import Clock, SystemClock
from catalog_sync.observability.logging import get_logger

_log = get_logger(__name__)


class SqlAlchemyListingStore(ListingStore):
    """Listings table plus outbox, written in one transaction per mutation.

    Writes are a single compare-and-set ``UPDATE`` guarded by id, expected
    version and the tombstone flag. When it touches no row the store reads
    the row once more to tell a missing listing from a stale version.
    """

    def __init__(
        self,
        sessions: Any,
        outbox: SqlAlchemyOutboxRepository,
        clock: Clock | None = None,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
    ) -> None:
        self._sessions = sessions
        self._outbox = outbox
        self._clock = clock or SystemClock()
        self._id_factory = id_factory

    async def get(self, listing_id: str) -> Listing:
        async with self._sessions() as session:
            row = await session.get(ListingRow, listing_id)
            if row is None or row.deleted:
                raise NotFoundError("Listing", listing_id)
            return row_to_listing(row)

    async def create(self, owner_id: str, new_listing: NewListing) -> CommittedChange:
        now = self._clock.now()
        listing_id = new_listing.id or self._id_factory()
        try:
            async with self._sessions() as session, session.begin():
                if await session.get(ListingRow, listing_id) is not None:
                    raise ConflictError(f"Listing '{listing_id}' already exists", detail={"listing_id": listing_id})
                row = ListingRow(
                    id=listing_id,
                    owner_id=owner_id,
                    title=new_listing.title,
                    price=new_listing.price,
                    status=new_listing.status.value,
                    category=new_listing.category,
                    version=1,
                    deleted=False,
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
                await session.flush()
                listing = row_to_listing(row)
                event = await self._outbox.append(OutboxEvent.for_listing(listing, created_at=now), session=session)
        except IntegrityError as exc:
            raise ConflictError(
                f"Listing '{listing_id}' already exists", detail={"listing_id": listing_id}, cause=exc
            ) from exc
        except OperationalError as exc:
            raise InfrastructureError("Listing store unavailable", cause=exc) from exc
        return CommittedChange(listing=listing, event=event)

    async def write(
        self,
        listing_id: str,
        expected_version: int,
        changes: ListingChanges,
    ) -> CommittedChange:
        return await self._compare_and_set(listing_id, expected_version, changes.as_values())

    async def delete(self, listing_id: str, expected_version: int) -> CommittedChange:
        return await self._compare_and_set(listing_id, expected_version, {"deleted": True})

    async def _compare_and_set(
        self,
        listing_id: str,
        expected_version: int,
        values: dict[str, Any],
    ) -> CommittedChange:
        now = self._clock.now()
        try:
            async with self._sessions() as session, session.begin():
                result = await session.execute(
                    update(ListingRow)
                    .where(
                        ListingRow.id == listing_id,
                        ListingRow.version == expected_version,
                        ListingRow.deleted.is_(False),
                    )
                    .values(**values, version=ListingRow.version + 1, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    await self._raise_write_failure(session, listing_id, expected_version)
                row = await session.get(ListingRow, listing_id, populate_existing=True)
                if row is None:
                    raise NotFoundError("Listing", listing_id)
                listing = row_to_listing(row)
                event = await self._outbox.append(OutboxEvent.for_listing(listing, created_at=now), session=session)
        except OperationalError as exc:
            raise InfrastructureError("Listing store unavailable", cause=exc) from exc
        return CommittedChange(listing=listing, event=event)

    async def _raise_write_failure(self, session: AsyncSession, listing_id: str, expected_version: int) -> None:
        current = await session.get(ListingRow, listing_id)
        if current is None or current.deleted:
            raise NotFoundError("Listing", listing_id)
        _log.info(
            "store.version_conflict",
            listing_id=listing_id,
            expected_version=expected_version,
            actual_version=current.version,
        )
        raise VersionConflictError(listing_id, expected_version, current.version)

    async def sample_versions(self, after_id: str | None, limit: int) -> list[ListingVersion]:
        stmt = select(ListingRow.id, ListingRow.version, ListingRow.deleted).order_by(ListingRow.id).limit(limit)
        if after_id is not None:
            stmt = stmt.where(ListingRow.id > after_id)
        async with self._sessions() as session:
            result = await session.execute(stmt)
            return [
                ListingVersion(listing_id=id_, version=version, deleted=bool(deleted))
                for id_, version, deleted in result.all()
            ]

    async def enqueue_resync(self, listing_id: str, *, replace: bool = False) -> list[OutboxEvent]:
        now = self._clock.now()
        async with self._sessions() as session, session.begin():
            row = await session.get(ListingRow, listing_id)
            if row is None:
                raise NotFoundError("Listing", listing_id)
            listing = row_to_listing(row)
            events: list[OutboxEvent] = []
            if replace and not listing.deleted:
                drop = OutboxEvent(
                    listing_id=listing.id,
                    operation=SyncOperation.DELETE,
                    listing_version=listing.version,
                    synthetic=True,
                    created_at=now,
                )
                events.append(await self._outbox.append(drop, session=session))
            resend = OutboxEvent.for_listing(listing, created_at=now, synthetic=True)
            events.append(await self._outbox.append(resend, session=session))
        return events

    async def ping(self) -> bool:
        async with self._sessions() as session:
            await session.execute(select(1))
        return True


__all__ = ["SqlAlchemyListingStore"]
