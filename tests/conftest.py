"""Shared fixtures – in-memory ports, a frozen clock and a token signer."""
from __future__ import annotations

import pytest

from catalog_sync.adapters.search import InMemorySearchIndex
from catalog_sync.application.access import AccessGuard
from catalog_sync.application.catalog import ListingService
from catalog_sync.security.tokens import KeyRing, SigningKey, TokenVerifier
from catalog_sync.testing import FakeClock, InMemoryListingStore, InMemoryOutboxRepository, TokenSigner

PRIMARY_SECRET = "primary-secret-0123456789abcdef0123456789"
ROTATED_SECRET = "rotated-secret-fedcba9876543210fedcba9876"


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def primary_key() -> SigningKey:
    return SigningKey(kid="k1", secret=PRIMARY_SECRET)


@pytest.fixture()
def signer(primary_key: SigningKey, clock) -> TokenSigner:
    return TokenSigner(primary_key, clock)


@pytest.fixture()
def verifier(primary_key: SigningKey, clock) -> TokenVerifier:
    return TokenVerifier(KeyRing([primary_key]), clock)


@pytest.fixture()
def outbox(clock) -> InMemoryOutboxRepository:
    return InMemoryOutboxRepository(clock)


@pytest.fixture()
def store(outbox, clock) -> InMemoryListingStore:
    counter = iter(range(1, 10_000))
    return InMemoryListingStore(outbox, clock, id_factory=lambda: f"lst-{next(counter):04d}")


@pytest.fixture()
def index() -> InMemorySearchIndex:
    return InMemorySearchIndex()


@pytest.fixture()
def listing_service(verifier, store) -> ListingService:
    return ListingService(verifier, AccessGuard(), store)
