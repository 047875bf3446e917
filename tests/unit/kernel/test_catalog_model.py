"""Unit tests – listing value objects, drift detection and search types."""
from __future__ import annotations

from decimal import Decimal

import pytest

from catalog_sync.kernel.catalog import (
    DriftRecord,
    Listing,
    ListingChanges,
    ListingStatus,
    ListingVersion,
    NewListing,
    SearchDocument,
    SearchQuery,
    SearchResult,
)
from catalog_sync.kernel.catalog.listing import MAX_PRICE
from catalog_sync.kernel.errors import ValidationError


def _listing(**overrides) -> Listing:
    values = dict(
        id="l-1",
        owner_id="alice",
        title="Bike",
        price=Decimal("120.00"),
        status=ListingStatus.ACTIVE,
        category="sports",
        version=3,
    )
    values.update(overrides)
    return Listing(**values)


# ---------------------------------------------------------------------------
# NewListing / ListingChanges
# ---------------------------------------------------------------------------


class TestNewListing:
    def test_price_is_quantized_to_cents(self) -> None:
        new = NewListing(title="Lamp", price="19.999")
        assert new.price == Decimal("20.00")

    def test_status_defaults_to_draft(self) -> None:
        assert NewListing(title="Lamp", price=5).status is ListingStatus.DRAFT

    def test_status_string_is_coerced(self) -> None:
        assert NewListing(title="Lamp", price=5, status="active").status is ListingStatus.ACTIVE

    def test_blank_title_rejected(self) -> None:
        with pytest.raises(ValidationError) as info:
            NewListing(title="   ", price=5)
        assert info.value.errors[0]["field"] == "title"

    def test_negative_price_rejected(self) -> None:
        with pytest.raises(ValidationError) as info:
            NewListing(title="Lamp", price=-1)
        assert info.value.errors == [{"field": "price", "error": "must be a non-negative amount"}]

    def test_non_numeric_price_rejected(self) -> None:
        with pytest.raises(ValidationError):
            NewListing(title="Lamp", price="cheap")

    @pytest.mark.parametrize("price", ["1e30", "10000000000", "9999999999.995"])
    def test_price_beyond_column_range_rejected(self, price: str) -> None:
        with pytest.raises(ValidationError) as info:
            NewListing(title="Lamp", price=price)
        assert info.value.errors[0]["field"] == "price"

    def test_largest_price_accepted(self) -> None:
        assert NewListing(title="Lamp", price="9999999999.99").price == MAX_PRICE

    def test_oversized_price_change_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ListingChanges(price="1e30")

    def test_all_field_errors_reported_together(self) -> None:
        with pytest.raises(ValidationError) as info:
            NewListing(title="", price="nan", id="")
        assert {e["field"] for e in info.value.errors} == {"title", "price", "id"}


class TestListingChanges:
    def test_empty_changes_rejected(self) -> None:
        with pytest.raises(ValidationError) as info:
            ListingChanges()
        assert info.value.errors[0]["error"] == "no fields to change"

    def test_as_values_contains_only_set_fields(self) -> None:
        changes = ListingChanges(price=Decimal("9.5"), status=ListingStatus.SOLD)
        assert changes.as_values() == {"price": Decimal("9.50"), "status": "sold"}

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError) as info:
            ListingChanges(status="lost")
        assert info.value.errors[0]["field"] == "status"


class TestListing:
    def test_ownership(self) -> None:
        listing = _listing()
        assert listing.is_owned_by("alice")
        assert not listing.is_owned_by("bob")

    def test_document_projection(self) -> None:
        doc = SearchDocument.from_listing(_listing())
        assert doc.id == "l-1"
        assert doc.version == 3
        assert doc.fields == {
            "title": "Bike",
            "price": 120.0,
            "status": "active",
            "category": "sports",
            "owner_id": "alice",
        }


# ---------------------------------------------------------------------------
# DriftRecord
# ---------------------------------------------------------------------------


class TestDriftRecord:
    def test_in_sync_is_not_drift(self) -> None:
        assert DriftRecord.detect(ListingVersion("a", 4), 4) is None

    def test_missing_document_is_drift(self) -> None:
        record = DriftRecord.detect(ListingVersion("a", 4), None)
        assert record == DriftRecord("a", 4, None)
        assert not record.index_ahead

    def test_index_behind_is_drift(self) -> None:
        record = DriftRecord.detect(ListingVersion("a", 4), 2)
        assert record is not None
        assert not record.index_ahead

    def test_index_ahead_is_flagged(self) -> None:
        record = DriftRecord.detect(ListingVersion("a", 4), 7)
        assert record is not None
        assert record.index_ahead

    def test_tombstone_without_document_is_in_sync(self) -> None:
        assert DriftRecord.detect(ListingVersion("a", 5, deleted=True), None) is None

    def test_tombstone_with_document_is_drift(self) -> None:
        record = DriftRecord.detect(ListingVersion("a", 5, deleted=True), 4)
        assert record is not None
        assert record.store_deleted
        assert not record.index_ahead


# ---------------------------------------------------------------------------
# Search value objects
# ---------------------------------------------------------------------------


class TestSearchTypes:
    def test_query_offset(self) -> None:
        assert SearchQuery(page=3, page_size=10).offset == 20

    @pytest.mark.parametrize(
        ("total", "page", "pages", "has_next"),
        [(0, 1, 0, False), (10, 1, 1, False), (11, 1, 2, True), (25, 3, 3, False)],
    )
    def test_result_paging(self, total: int, page: int, pages: int, has_next: bool) -> None:
        result = SearchResult(items=[], total=total, page=page, page_size=10)
        assert result.total_pages == pages
        assert result.has_next is has_next
