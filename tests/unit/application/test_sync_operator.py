"""Unit tests – operator view of the outbox: status, failed events, requeue."""
from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from catalog_sync.application.access import AccessGuard
from catalog_sync.application.sync import ReconcilerConfig, SyncOperator, SyncReconciler
from catalog_sync.kernel.catalog import NewListing
from catalog_sync.kernel.errors import AuthorizationError, ConflictError, NotFoundError
from catalog_sync.kernel.messaging import DeliveryState
from catalog_sync.kernel.security import Principal, Role
from catalog_sync.resilience.retry import ConstantBackoff, NoJitter, RetrySchedule
from catalog_sync.testing import FlakySearchIndex

ADMIN = Principal("ops", datetime(2030, 1, 1, tzinfo=UTC), frozenset({Role("admin")}))
SELLER = Principal("alice", datetime(2030, 1, 1, tzinfo=UTC), frozenset({Role("seller")}))


@pytest.fixture()
def operator(outbox) -> SyncOperator:
    return SyncOperator(outbox, AccessGuard())


@pytest.fixture()
def parked(store, outbox, index, clock) -> tuple[SyncReconciler, FlakySearchIndex, int]:
    """One listing whose only event has exhausted its retry window."""
    flaky = FlakySearchIndex(index)
    reconciler = SyncReconciler(
        outbox,
        flaky,
        store,
        config=ReconcilerConfig(partitions=1),
        schedule=RetrySchedule(window=timedelta(seconds=30), backoff=ConstantBackoff(5), jitter=NoJitter()),
        clock=clock,
    )
    change = asyncio.run(store.create("alice", NewListing(title="Sofa", price=Decimal("300"))))
    flaky.fail_always()
    asyncio.run(reconciler.drain())
    clock.advance(minutes=1)
    asyncio.run(reconciler.drain())
    return reconciler, flaky, change.event.sequence


class TestStatus:
    def test_counts_every_state(self, operator, store) -> None:
        asyncio.run(store.create("alice", NewListing(title="Sofa", price=1)))
        status = asyncio.run(operator.status())
        assert status == {"pending": 1, "in_flight": 0, "delivered": 0, "failed": 0}


class TestFailedEvents:
    def test_list_failed_requires_elevated_role(self, operator, parked) -> None:
        with pytest.raises(AuthorizationError):
            asyncio.run(operator.list_failed(SELLER))

    def test_list_failed(self, operator, parked) -> None:
        _, _, sequence = parked
        [event] = asyncio.run(operator.list_failed(ADMIN))
        assert event.sequence == sequence
        assert event.state is DeliveryState.FAILED
        assert event.last_error

    def test_requeue_redelivers(self, operator, parked, index, outbox) -> None:
        reconciler, flaky, sequence = parked
        flaky.heal()

        requeued = asyncio.run(operator.requeue(ADMIN, sequence))
        assert requeued.state is DeliveryState.PENDING
        assert requeued.attempts == 0
        assert requeued.first_attempt_at is None

        asyncio.run(reconciler.drain())
        assert asyncio.run(outbox.get(sequence)).state is DeliveryState.DELIVERED
        assert asyncio.run(index.get(requeued.listing_id)).version == 1

    def test_requeue_requires_elevated_role(self, operator, parked) -> None:
        _, _, sequence = parked
        with pytest.raises(AuthorizationError):
            asyncio.run(operator.requeue(SELLER, sequence))

    def test_requeue_unknown_sequence(self, operator) -> None:
        with pytest.raises(NotFoundError):
            asyncio.run(operator.requeue(ADMIN, 404))

    def test_requeue_pending_event_conflicts(self, operator, store) -> None:
        change = asyncio.run(store.create("alice", NewListing(title="Sofa", price=1)))
        with pytest.raises(ConflictError):
            asyncio.run(operator.requeue(ADMIN, change.event.sequence))
