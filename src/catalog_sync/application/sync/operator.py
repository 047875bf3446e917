"""Application sync – SyncOperator: the operator view of the outbox."""
from __future__ import annotations

from catalog_sync.application.access import AccessGuard, Action
from catalog_sync.kernel.errors import ConflictError, NotFoundError
from catalog_sync.kernel.messaging import DeliveryState, OutboxEvent, OutboxRepository
from catalog_sync.kernel.security import Principal
from catalog_sync.observability.logging import get_logger

_log = get_logger(__name__)


class SyncOperator:
    """Inspect parked events and put them back in the queue.

    Listing and requeueing failed events needs an elevated role; the
    per-state counts are open to any caller.
    """

    def __init__(self, outbox: OutboxRepository, guard: AccessGuard) -> None:
        self._outbox = outbox
        self._guard = guard

    async def status(self) -> dict[str, int]:
        counts = await self._outbox.counts()
        return {state.value: counts.get(state, 0) for state in DeliveryState}

    async def list_failed(self, principal: Principal, limit: int = 100) -> list[OutboxEvent]:
        self._guard.require(principal, Action.OPERATE)
        return await self._outbox.list_failed(limit)

    async def requeue(self, principal: Principal, sequence: int) -> OutboxEvent:
        self._guard.require(principal, Action.OPERATE)
        event = await self._outbox.get(sequence)
        if event is None:
            raise NotFoundError("OutboxEvent", sequence)
        if event.state is not DeliveryState.FAILED:
            raise ConflictError(
                f"Outbox event {sequence} is {event.state.value}, only failed events can be requeued",
                detail={"sequence": sequence, "state": event.state.value},
            )
        requeued = await self._outbox.requeue(sequence)
        _log.info("sync.requeued", sequence=sequence, listing_id=event.listing_id, subject=principal.subject)
        return requeued


__all__ = ["SyncOperator"]
