"""Read-only product queries backing the REST API."""

import structlog

from core.exceptions import AppException, StoreReadError
from domain.entities.listing import Listing, sort_newest_first
from domain.repositories.listing_store import IListingStore

logger = structlog.get_logger()


def _failure_details(exc: Exception) -> str:
    if isinstance(exc, AppException):
        return str(exc.details or exc.message)
    return str(exc)


class ProductService:
    """Service layer for listing reads."""

    def __init__(self, store: IListingStore) -> None:
        self._store = store

    async def list_all(self) -> list[Listing]:
        """All listings, newest first."""
        try:
            listings = await self._store.get_listings()
        except Exception as e:
            logger.error("products_fetch_failed", error=str(e))
            raise StoreReadError("Failed to fetch products", details=_failure_details(e)) from e

        logger.info("products_fetched", count=len(listings))
        return sort_newest_first(listings)

    async def list_by_seller(self, seller_id: str) -> list[Listing]:
        """Listings of one seller, newest first. Empty when the seller has none."""
        try:
            listings = await self._store.get_listings_by_seller(seller_id)
        except Exception as e:
            logger.error("seller_products_fetch_failed", seller_id=seller_id, error=str(e))
            raise StoreReadError(
                "Failed to fetch seller products", details=_failure_details(e)
            ) from e

        logger.info("seller_products_fetched", seller_id=seller_id, count=len(listings))
        return sort_newest_first(listings)
