"""Kernel catalog – Listing aggregate snapshot and mutation value objects."""
from __future__ import annotations

import dataclasses
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from catalog_sync.kernel.errors import ValidationError

MAX_ID_LENGTH = 64
MAX_TITLE_LENGTH = 300
# Largest amount a NUMERIC(12, 2) price column holds.
MAX_PRICE = Decimal("9999999999.99")
_CENT = Decimal("0.01")


class ListingStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    SOLD = "sold"
    ARCHIVED = "archived"


def _as_price(value: Any, errors: list[dict[str, Any]]) -> Decimal | None:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        errors.append({"field": "price", "error": "not a number"})
        return None
    if not price.is_finite() or price < 0:
        errors.append({"field": "price", "error": "must be a non-negative amount"})
        return None
    if price <= MAX_PRICE:
        price = price.quantize(_CENT)
    if price > MAX_PRICE:
        errors.append({"field": "price", "error": f"must not exceed {MAX_PRICE}"})
        return None
    return price


def _check_title(value: str, errors: list[dict[str, Any]]) -> None:
    if not value or not value.strip():
        errors.append({"field": "title", "error": "must not be empty"})
    elif len(value) > MAX_TITLE_LENGTH:
        errors.append({"field": "title", "error": f"longer than {MAX_TITLE_LENGTH} characters"})


@dataclasses.dataclass(frozen=True)
class Listing:
    """A marketplace listing as committed in the system of record.

    ``version`` starts at 1 and grows by one on every committed write,
    deletes included. A deleted listing keeps its row as a tombstone so the
    version keeps fencing the search index.
    """

    id: str
    owner_id: str
    title: str
    price: Decimal
    status: ListingStatus
    category: str | None
    version: int
    deleted: bool = False
    updated_at: datetime | None = None

    def is_owned_by(self, subject: str) -> bool:
        return self.owner_id == subject


@dataclasses.dataclass(frozen=True)
class NewListing:
    """Fields supplied when a listing is first created."""

    title: str
    price: Decimal
    category: str | None = None
    status: ListingStatus = ListingStatus.DRAFT
    id: str | None = None

    def __post_init__(self) -> None:
        errors: list[dict[str, Any]] = []
        _check_title(self.title, errors)
        price = _as_price(self.price, errors)
        if self.id is not None and not (0 < len(self.id) <= MAX_ID_LENGTH):
            errors.append({"field": "id", "error": f"must be 1..{MAX_ID_LENGTH} characters"})
        if errors:
            raise ValidationError("Invalid listing", errors=errors)
        object.__setattr__(self, "price", price)
        object.__setattr__(self, "status", ListingStatus(self.status))


@dataclasses.dataclass(frozen=True)
class ListingChanges:
    """Partial update of a listing's mutable fields.

    ``None`` means "leave unchanged"; at least one field must be set.
    """

    title: str | None = None
    price: Decimal | None = None
    status: ListingStatus | None = None
    category: str | None = None

    def __post_init__(self) -> None:
        errors: list[dict[str, Any]] = []
        if self.title is not None:
            _check_title(self.title, errors)
        if self.price is not None:
            price = _as_price(self.price, errors)
            object.__setattr__(self, "price", price)
        if self.status is not None:
            try:
                object.__setattr__(self, "status", ListingStatus(self.status))
            except ValueError:
                errors.append({"field": "status", "error": f"unknown status {self.status!r}"})
        if not errors and not self.as_values():
            errors.append({"field": None, "error": "no fields to change"})
        if errors:
            raise ValidationError("Invalid listing changes", errors=errors)

    def as_values(self) -> dict[str, Any]:
        """Return the set fields as column values."""
        values: dict[str, Any] = {}
        if self.title is not None:
            values["title"] = self.title
        if self.price is not None:
            values["price"] = self.price
        if self.status is not None:
            values["status"] = ListingStatus(self.status).value
        if self.category is not None:
            values["category"] = self.category
        return values


@dataclasses.dataclass(frozen=True)
class ListingVersion:
    """Store-side version stamp of one listing, used by drift sweeps."""

    listing_id: str
    version: int
    deleted: bool = False


__all__ = [
    "MAX_PRICE",
    "Listing",
    "ListingChanges",
    "ListingStatus",
    "ListingVersion",
    "NewListing",
]
