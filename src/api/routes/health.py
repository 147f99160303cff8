"""Health check endpoints."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.dependencies import get_listing_store
from core.config import settings
from domain.repositories.listing_store import IListingStore

logger = structlog.get_logger()

router = APIRouter(tags=["health"])

API_VERSION = "1.0.0"

# Seller id no listing carries; the check query matches nothing
_CHECK_SELLER_ID = "__health_check__"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    store_backend: str
    store: str | None = None


def _health(status: str, store: str | None = None) -> HealthResponse:
    return HealthResponse(
        status=status,
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.app_env,
        store_backend=settings.store_backend,
        store=store,
    )


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """Liveness for load balancers; never touches the document store."""
    return _health("healthy")


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Health check including the document store",
)
async def detailed_health_check(
    store: IListingStore = Depends(get_listing_store),
) -> HealthResponse:
    """
    Run an empty seller query against the store.

    Reports ``degraded`` instead of failing when the store is unreachable.
    """
    try:
        await store.get_listings_by_seller(_CHECK_SELLER_ID)
    except Exception as e:
        logger.warning("store_health_check_failed", error=str(e))
        return _health("degraded", store=f"unhealthy: {e}")
    return _health("healthy", store="healthy")
