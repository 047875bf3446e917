"""FastAPI adapter – application factory."""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from catalog_sync import __version__
from catalog_sync.adapters.fastapi.exception_mapper import CatalogExceptionMapper
from catalog_sync.adapters.fastapi.health import build_health_router
from catalog_sync.adapters.fastapi.routes import build_listing_router, build_sync_router

if TYPE_CHECKING:
    from catalog_sync.bootstrap import CatalogServices


def create_app(services: CatalogServices) -> FastAPI:
    """Build the HTTP surface; the reconciler runs for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # noqa: ARG001
        await services.startup()
        try:
            yield
        finally:
            await services.shutdown()

    app = FastAPI(title="catalog-sync", version=__version__, lifespan=lifespan)
    app.state.services = services
    CatalogExceptionMapper().register(app)
    app.include_router(build_listing_router())
    app.include_router(build_sync_router())
    app.include_router(build_health_router(services.readiness_checks()))
    return app


__all__ = ["create_app"]
