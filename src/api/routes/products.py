"""Product API routes (read only)."""

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_product_service
from api.schemas.common import ErrorResponse, FetchErrorResponse
from api.schemas.product import ProductResponse
from core.rate_limit import READ_LIMIT, limiter
from domain.services.product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get(
    "",
    response_model=list[ProductResponse],
    summary="List all products",
    responses={
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": FetchErrorResponse, "description": "Store query failed"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_products(
    request: Request,
    service: ProductService = Depends(get_product_service),
) -> list[ProductResponse]:
    """All listings, newest first. An empty store yields an empty array."""
    listings = await service.list_all()
    return [ProductResponse.from_entity(listing) for listing in listings]


@router.get(
    "/seller/{user_id}",
    response_model=list[ProductResponse],
    summary="List a seller's products",
    responses={
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": FetchErrorResponse, "description": "Store query failed"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_seller_products(
    request: Request,
    user_id: str,
    service: ProductService = Depends(get_product_service),
) -> list[ProductResponse]:
    """Listings created by ``user_id``, newest first; an empty array when there are none."""
    listings = await service.list_by_seller(user_id)
    return [ProductResponse.from_entity(listing) for listing in listings]
