"""SQLAlchemy adapter – SqlAlchemyOutboxRepository."""
from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import case, delete, func, null, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_sync.adapters.sqlalchemy.models import OutboxRow, event_to_row, row_to_event
from catalog_sync.kernel.errors import ConflictError, NotFoundError
from catalog_sync.kernel.messaging import DeliveryState, OutboxEvent, OutboxRepository, select_deliverable
from catalog_sync.kernel.time import Clock, SystemClock

_OPEN_STATES = (DeliveryState.PENDING.value, DeliveryState.IN_FLIGHT.value)


class SqlAlchemyOutboxRepository(OutboxRepository):
    """Outbox table ``listing_outbox`` in the same database as the listings.

    Claims are optimistic: each claim is an ``UPDATE`` guarded by the state,
    attempt count and lease that were read, so a row taken by a concurrent
    claimer is skipped rather than delivered twice. The lease written by a
    claim doubles as its fencing token: a settle call that passes it only
    lands while the row is still ``in_flight`` under that same lease.

    Parameters
    ----------
    sessions:
        Callable returning a new :class:`AsyncSession`.
    clock:
        Source of "now" for due times, leases and delivery stamps.
    claim_lease:
        How long a claimed event is reserved before another pass may take it.
    """

    def __init__(
        self,
        sessions: Any,
        clock: Clock | None = None,
        claim_lease: timedelta = timedelta(seconds=30),
    ) -> None:
        self._sessions = sessions
        self._clock = clock or SystemClock()
        self._lease = claim_lease

    # ------------------------------------------------------------------
    # Append (store side)
    # ------------------------------------------------------------------

    async def append(self, event: OutboxEvent, *, session: AsyncSession | None = None) -> OutboxEvent:
        if session is None:
            async with self._sessions() as own, own.begin():
                return await self._append(event, own)
        return await self._append(event, session)

    async def _append(self, event: OutboxEvent, session: AsyncSession) -> OutboxEvent:
        row = event_to_row(event)
        session.add(row)
        await session.flush()
        return dataclasses.replace(event, sequence=row.sequence)

    # ------------------------------------------------------------------
    # Delivery (reconciler side)
    # ------------------------------------------------------------------

    async def fetch_batch(self, max_count: int) -> list[OutboxEvent]:
        now = self._clock.now()
        page_size = max(max_count * 2, 50)
        claimed: list[OutboxEvent] = []
        blocked: set[str] = set()
        after = 0
        async with self._sessions() as session, session.begin():
            while len(claimed) < max_count:
                rows = (
                    await session.scalars(
                        select(OutboxRow)
                        .where(OutboxRow.state.in_(_OPEN_STATES), OutboxRow.sequence > after)
                        .order_by(OutboxRow.sequence)
                        .limit(page_size)
                    )
                ).all()
                if not rows:
                    break
                after = rows[-1].sequence
                raw = {row.sequence: row for row in rows}
                events = [row_to_event(row) for row in rows]
                for event in select_deliverable(events, now, max_count - len(claimed), blocked):
                    if await self._claim(session, raw[event.sequence], now):
                        claimed.append(
                            dataclasses.replace(
                                event,
                                state=DeliveryState.IN_FLIGHT,
                                claimed_until=now + self._lease,
                                first_attempt_at=event.first_attempt_at or now,
                            )
                        )
                    else:
                        blocked.add(event.listing_id)
                if len(rows) < page_size:
                    break
        return claimed

    async def _claim(self, session: AsyncSession, row: OutboxRow, now: datetime) -> bool:
        lease_guard = (
            OutboxRow.claimed_until.is_(None)
            if row.claimed_until is None
            else OutboxRow.claimed_until == row.claimed_until
        )
        result = await session.execute(
            update(OutboxRow)
            .where(
                OutboxRow.sequence == row.sequence,
                OutboxRow.state == row.state,
                OutboxRow.attempts == row.attempts,
                lease_guard,
            )
            .values(
                state=DeliveryState.IN_FLIGHT.value,
                claimed_until=now + self._lease,
                first_attempt_at=func.coalesce(OutboxRow.first_attempt_at, now),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def get(self, sequence: int) -> OutboxEvent | None:
        async with self._sessions() as session:
            row = await session.get(OutboxRow, sequence)
            return row_to_event(row) if row is not None else None

    async def mark_delivered(self, sequence: int, *, lease: datetime | None = None) -> bool:
        return await self._settle(
            sequence,
            lease,
            state=DeliveryState.DELIVERED.value,
            delivered_at=self._clock.now(),
            claimed_until=None,
        )

    async def reschedule(
        self, sequence: int, *, next_attempt_at: datetime, error: str, lease: datetime | None = None
    ) -> bool:
        return await self._settle(
            sequence,
            lease,
            state=DeliveryState.PENDING.value,
            attempts=OutboxRow.attempts + 1,
            first_attempt_at=func.coalesce(OutboxRow.first_attempt_at, self._clock.now()),
            next_attempt_at=next_attempt_at,
            claimed_until=None,
            last_error=error,
        )

    async def release(self, sequence: int, *, lease: datetime | None = None) -> bool:
        return await self._settle(
            sequence,
            lease,
            state=DeliveryState.PENDING.value,
            claimed_until=None,
            first_attempt_at=case((OutboxRow.attempts == 0, null()), else_=OutboxRow.first_attempt_at),
        )

    async def mark_failed(self, sequence: int, *, error: str, lease: datetime | None = None) -> bool:
        return await self._settle(
            sequence,
            lease,
            state=DeliveryState.FAILED.value,
            attempts=OutboxRow.attempts + 1,
            claimed_until=None,
            last_error=error,
        )

    async def _settle(self, sequence: int, lease: datetime | None, **values: Any) -> bool:
        guards = [OutboxRow.sequence == sequence]
        if lease is not None:
            guards += [OutboxRow.state == DeliveryState.IN_FLIGHT.value, OutboxRow.claimed_until == lease]
        async with self._sessions() as session, session.begin():
            result = await session.execute(
                update(OutboxRow)
                .where(*guards)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    # ------------------------------------------------------------------
    # Operator surface
    # ------------------------------------------------------------------

    async def list_failed(self, limit: int = 100) -> list[OutboxEvent]:
        async with self._sessions() as session:
            rows = await session.scalars(
                select(OutboxRow)
                .where(OutboxRow.state == DeliveryState.FAILED.value)
                .order_by(OutboxRow.sequence)
                .limit(limit)
            )
            return [row_to_event(row) for row in rows.all()]

    async def requeue(self, sequence: int) -> OutboxEvent:
        now = self._clock.now()
        async with self._sessions() as session, session.begin():
            result = await session.execute(
                update(OutboxRow)
                .where(OutboxRow.sequence == sequence, OutboxRow.state == DeliveryState.FAILED.value)
                .values(
                    state=DeliveryState.PENDING.value,
                    attempts=0,
                    first_attempt_at=None,
                    next_attempt_at=now,
                    claimed_until=None,
                )
                .execution_options(synchronize_session=False)
            )
            row = await session.get(OutboxRow, sequence, populate_existing=True)
            if row is None:
                raise NotFoundError("OutboxEvent", sequence)
            if result.rowcount != 1:
                raise ConflictError(
                    f"Outbox event {sequence} is {row.state}, only failed events can be requeued",
                    detail={"sequence": sequence, "state": row.state},
                )
            return row_to_event(row)

    async def counts(self) -> dict[DeliveryState, int]:
        async with self._sessions() as session:
            result = await session.execute(
                select(OutboxRow.state, func.count()).group_by(OutboxRow.state)
            )
            counts = {state: 0 for state in DeliveryState}
            for state, count in result.all():
                counts[DeliveryState(state)] = count
            return counts

    async def purge_delivered(self, before: datetime) -> int:
        async with self._sessions() as session, session.begin():
            result = await session.execute(
                delete(OutboxRow).where(
                    OutboxRow.state == DeliveryState.DELIVERED.value,
                    OutboxRow.delivered_at < before,
                )
                .execution_options(synchronize_session=False)
            )
            return result.rowcount

    async def undelivered_listing_ids(self, listing_ids: Iterable[str]) -> set[str]:
        ids = list(listing_ids)
        if not ids:
            return set()
        async with self._sessions() as session:
            rows = await session.scalars(
                select(OutboxRow.listing_id)
                .where(OutboxRow.listing_id.in_(ids), OutboxRow.state.in_(_OPEN_STATES))
                .distinct()
            )
            return set(rows.all())


__all__ = ["SqlAlchemyOutboxRepository"]
