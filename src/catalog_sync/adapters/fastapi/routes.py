"""FastAPI adapter – listing, search and sync operator routes."""
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Depends, Query, status

from catalog_sync.adapters.fastapi.deps import bearer_token, error_responses, get_services
from catalog_sync.adapters.fastapi.schemas import (
    CreateListingRequest,
    ListingVersionResponse,
    OutboxEventResponse,
    SearchResponse,
    SyncStatusResponse,
    UpdateListingRequest,
)
from catalog_sync.application.catalog import SyncOutcome


def _version_response(outcome: SyncOutcome) -> ListingVersionResponse:
    return ListingVersionResponse(id=outcome.listing_id, version=outcome.version, sequence=outcome.sequence)


def build_listing_router(tags: list[str] | None = None) -> APIRouter:
    """Mutation and search routes under ``/listings``."""
    router = APIRouter(prefix="/listings", tags=tags or ["listings"])

    @router.post(
        "",
        status_code=status.HTTP_201_CREATED,
        response_model=ListingVersionResponse,
        responses=error_responses(400, 401, 403, 409),
    )
    async def create_listing(
        body: CreateListingRequest,
        token: str = Depends(bearer_token),
        services: Any = Depends(get_services),
    ) -> ListingVersionResponse:
        outcome = await services.listings.create(token, body.to_domain())
        return _version_response(outcome)

    @router.get("/search", response_model=SearchResponse, responses=error_responses(400, 503))
    async def search_listings(
        q: str = Query(default=""),
        category: str | None = Query(default=None),
        listing_status: str | None = Query(default=None, alias="status"),
        min_price: Decimal | None = Query(default=None, ge=0),
        max_price: Decimal | None = Query(default=None, ge=0),
        sort: str | None = Query(default=None, description="e.g. 'price' or '-price,title'"),
        page: int = Query(default=1),
        size: int = Query(default=20),
        services: Any = Depends(get_services),
    ) -> SearchResponse:
        result = await services.search.search(
            q,
            category=category,
            status=listing_status,
            min_price=min_price,
            max_price=max_price,
            sort=sort,
            page=page,
            size=size,
        )
        return SearchResponse.from_result(result)

    @router.put(
        "/{listing_id}",
        response_model=ListingVersionResponse,
        responses=error_responses(400, 401, 403, 404, 409),
    )
    async def update_listing(
        listing_id: str,
        body: UpdateListingRequest,
        token: str = Depends(bearer_token),
        services: Any = Depends(get_services),
    ) -> ListingVersionResponse:
        outcome = await services.listings.apply(token, listing_id, body.expected_version, body.to_domain())
        return _version_response(outcome)

    @router.delete(
        "/{listing_id}",
        response_model=ListingVersionResponse,
        responses=error_responses(401, 403, 404, 409),
    )
    async def delete_listing(
        listing_id: str,
        expected_version: int = Query(ge=1),
        token: str = Depends(bearer_token),
        services: Any = Depends(get_services),
    ) -> ListingVersionResponse:
        outcome = await services.listings.delete(token, listing_id, expected_version)
        return _version_response(outcome)

    return router


def build_sync_router(tags: list[str] | None = None) -> APIRouter:
    """Operator routes under ``/sync``."""
    router = APIRouter(prefix="/sync", tags=tags or ["sync"])

    @router.get("/status", response_model=SyncStatusResponse)
    async def sync_status(services: Any = Depends(get_services)) -> SyncStatusResponse:
        return SyncStatusResponse(
            outbox=await services.operator.status(),
            reconciler_running=services.reconciler.running,
        )

    @router.get("/failed", response_model=list[OutboxEventResponse], responses=error_responses(401, 403))
    async def list_failed(
        limit: int = Query(default=100, ge=1, le=1000),
        token: str = Depends(bearer_token),
        services: Any = Depends(get_services),
    ) -> list[OutboxEventResponse]:
        principal = services.listings.authenticate(token)
        events = await services.operator.list_failed(principal, limit)
        return [OutboxEventResponse.from_event(e) for e in events]

    @router.post(
        "/failed/{sequence}/requeue",
        response_model=OutboxEventResponse,
        responses=error_responses(401, 403, 404, 409),
    )
    async def requeue_failed(
        sequence: int,
        token: str = Depends(bearer_token),
        services: Any = Depends(get_services),
    ) -> OutboxEventResponse:
        principal = services.listings.authenticate(token)
        event = await services.operator.requeue(principal, sequence)
        return OutboxEventResponse.from_event(event)

    return router


__all__ = ["build_listing_router", "build_sync_router"]
