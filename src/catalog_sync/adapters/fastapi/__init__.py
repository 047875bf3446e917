"""FastAPI adapter – routes, exception mapper, health router and app factory."""
from catalog_sync.adapters.fastapi.app import create_app
from catalog_sync.adapters.fastapi.deps import bearer_token, error_responses, get_services
from catalog_sync.adapters.fastapi.exception_mapper import CatalogExceptionMapper
from catalog_sync.adapters.fastapi.health import build_health_router
from catalog_sync.adapters.fastapi.routes import build_listing_router, build_sync_router

__all__ = [
    "CatalogExceptionMapper",
    "bearer_token",
    "build_health_router",
    "build_listing_router",
    "build_sync_router",
    "create_app",
    "error_responses",
    "get_services",
]
