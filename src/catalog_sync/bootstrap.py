"""Composition root – wires settings into stores, index, verifier and reconciler."""
from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from catalog_sync.adapters.search import HttpSearchIndex, InMemorySearchIndex
from catalog_sync.adapters.sqlalchemy import (
    SqlAlchemyListingStore,
    SqlAlchemyOutboxRepository,
    SqlAlchemySessionFactory,
)
from catalog_sync.application.access import AccessGuard
from catalog_sync.application.catalog import ListingService
from catalog_sync.application.search import ListingSearchService
from catalog_sync.application.sync import (
    ReconcilerConfig,
    SyncOperator,
    SyncReconciler,
    schedule_from_settings,
)
from catalog_sync.config import CatalogSyncSettings
from catalog_sync.kernel.catalog import ListingStore, SearchIndex
from catalog_sync.kernel.messaging import OutboxRepository
from catalog_sync.kernel.time import Clock, SystemClock
from catalog_sync.observability.logging import get_logger
from catalog_sync.security.tokens import TokenVerifier

_log = get_logger(__name__)


@dataclasses.dataclass
class CatalogServices:
    """Everything the HTTP surface and background tasks need, built once."""

    settings: CatalogSyncSettings
    clock: Clock
    store: ListingStore
    outbox: OutboxRepository
    index: SearchIndex
    verifier: TokenVerifier
    guard: AccessGuard
    listings: ListingService
    search: ListingSearchService
    operator: SyncOperator
    reconciler: SyncReconciler
    sessions: SqlAlchemySessionFactory | None = None

    async def startup(self) -> None:
        if self.sessions is not None and self.settings.auto_create_schema:
            await self.sessions.create_tables()
        if self.settings.sync_enabled:
            await self.reconciler.start()

    async def shutdown(self) -> None:
        await self.reconciler.stop()
        if isinstance(self.index, HttpSearchIndex):
            await self.index.aclose()
        if self.sessions is not None:
            await self.sessions.dispose()

    def readiness_checks(self) -> dict[str, Callable[[], Awaitable[bool]]]:
        return {"store": self.store.ping, "search_index": self.index.ping}


def assemble(
    settings: CatalogSyncSettings,
    *,
    store: ListingStore,
    outbox: OutboxRepository,
    index: SearchIndex,
    clock: Clock,
    sessions: SqlAlchemySessionFactory | None = None,
) -> CatalogServices:
    """Wire the application layer on top of already-built adapters."""
    verifier = TokenVerifier(
        settings.key_ring(),
        clock,
        leeway=settings.token_leeway_seconds,
        roles_claim=settings.roles_claim,
    )
    guard = AccessGuard(elevated_roles=settings.elevated_roles)
    reconciler = SyncReconciler(
        outbox,
        index,
        store,
        config=ReconcilerConfig.from_settings(settings),
        schedule=schedule_from_settings(settings),
        clock=clock,
    )
    return CatalogServices(
        settings=settings,
        clock=clock,
        store=store,
        outbox=outbox,
        index=index,
        verifier=verifier,
        guard=guard,
        listings=ListingService(verifier, guard, store),
        search=ListingSearchService(index),
        operator=SyncOperator(outbox, guard),
        reconciler=reconciler,
        sessions=sessions,
    )


def build_index(settings: CatalogSyncSettings) -> SearchIndex:
    if settings.search_url:
        return HttpSearchIndex(
            settings.search_url,
            settings.search_index,
            timeout=settings.index_timeout_seconds,
        )
    _log.warning("bootstrap.in_memory_index", reason="search_url not configured")
    return InMemorySearchIndex()


def build_services(
    settings: CatalogSyncSettings,
    *,
    clock: Clock | None = None,
    index: SearchIndex | None = None,
    **engine_kwargs: Any,
) -> CatalogServices:
    """SQLAlchemy-backed services for *settings*."""
    clock = clock or SystemClock()
    sessions = SqlAlchemySessionFactory(settings.database_url, **engine_kwargs)
    outbox = SqlAlchemyOutboxRepository(
        sessions, clock, claim_lease=timedelta(seconds=settings.claim_lease_seconds)
    )
    store = SqlAlchemyListingStore(sessions, outbox, clock)
    return assemble(
        settings,
        store=store,
        outbox=outbox,
        index=index or build_index(settings),
        clock=clock,
        sessions=sessions,
    )


__all__ = ["CatalogServices", "assemble", "build_index", "build_services"]
