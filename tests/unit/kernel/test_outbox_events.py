"""Unit tests – outbox events and deliverable selection."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from catalog_sync.kernel.catalog import Listing, ListingStatus
from catalog_sync.kernel.messaging import DeliveryState, OutboxEvent, SyncOperation, select_deliverable

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _event(seq: int, listing_id: str = "a", **kwargs) -> OutboxEvent:
    return OutboxEvent(
        listing_id=listing_id,
        operation=SyncOperation.UPSERT,
        listing_version=seq,
        sequence=seq,
        created_at=NOW - timedelta(minutes=1),
        **kwargs,
    )


class TestOutboxEvent:
    def _listing(self, deleted: bool = False) -> Listing:
        return Listing(
            id="l-9",
            owner_id="alice",
            title="Desk",
            price=Decimal("80.00"),
            status=ListingStatus.ACTIVE,
            category=None,
            version=2,
            deleted=deleted,
        )

    def test_live_listing_yields_upsert_with_payload(self) -> None:
        event = OutboxEvent.for_listing(self._listing(), created_at=NOW)
        assert event.operation is SyncOperation.UPSERT
        assert event.listing_version == 2
        assert event.payload["title"] == "Desk"
        assert event.next_attempt_at == NOW

    def test_tombstone_yields_delete_without_payload(self) -> None:
        event = OutboxEvent.for_listing(self._listing(deleted=True), created_at=NOW, synthetic=True)
        assert event.operation is SyncOperation.DELETE
        assert event.payload == {}
        assert event.synthetic

    def test_document_carries_version(self) -> None:
        doc = OutboxEvent.for_listing(self._listing(), created_at=NOW).document()
        assert (doc.id, doc.version) == ("l-9", 2)

    def test_pending_event_waits_for_its_due_time(self) -> None:
        event = _event(1, next_attempt_at=NOW + timedelta(seconds=5))
        assert not event.is_claimable(NOW)
        assert event.is_claimable(NOW + timedelta(seconds=5))

    def test_in_flight_event_is_claimable_after_lease(self) -> None:
        event = _event(1, state=DeliveryState.IN_FLIGHT, claimed_until=NOW + timedelta(seconds=30))
        assert not event.is_claimable(NOW)
        assert event.is_claimable(NOW + timedelta(seconds=31))

    def test_settled_events_are_never_claimable(self) -> None:
        assert not _event(1, state=DeliveryState.DELIVERED).is_claimable(NOW)
        assert not _event(2, state=DeliveryState.FAILED).is_claimable(NOW)


class TestSelectDeliverable:
    def test_sequence_order_is_kept(self) -> None:
        events = [_event(1, "a"), _event(2, "b"), _event(3, "a")]
        assert [e.sequence for e in select_deliverable(events, NOW, 10)] == [1, 2, 3]

    def test_max_count(self) -> None:
        events = [_event(i, f"l{i}") for i in range(1, 6)]
        assert len(select_deliverable(events, NOW, 2)) == 2

    def test_backing_off_event_blocks_later_events_of_same_listing(self) -> None:
        events = [
            _event(1, "a", next_attempt_at=NOW + timedelta(seconds=10)),
            _event(2, "b"),
            _event(3, "a"),
        ]
        assert [e.sequence for e in select_deliverable(events, NOW, 10)] == [2]

    def test_leased_event_blocks_later_events_of_same_listing(self) -> None:
        events = [
            _event(1, "a", state=DeliveryState.IN_FLIGHT, claimed_until=NOW + timedelta(seconds=10)),
            _event(2, "a"),
        ]
        assert select_deliverable(events, NOW, 10) == []

    def test_failed_event_does_not_block(self) -> None:
        events = [_event(1, "a", state=DeliveryState.FAILED), _event(2, "a")]
        assert [e.sequence for e in select_deliverable(events, NOW, 10)] == [2]

    def test_blocked_set_carries_across_pages(self) -> None:
        blocked: set[str] = set()
        first_page = [_event(1, "a", next_attempt_at=NOW + timedelta(seconds=10))]
        assert select_deliverable(first_page, NOW, 10, blocked) == []
        assert select_deliverable([_event(2, "a")], NOW, 10, blocked) == []
        assert blocked == {"a"}
