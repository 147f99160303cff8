"""Dependency injection factories for the API."""

from functools import lru_cache

from core.config import settings
from core.context import build_store
from domain.repositories.listing_store import IListingStore
from domain.services.product_service import ProductService


@lru_cache
def get_listing_store() -> IListingStore:
    """Get the listing store selected in settings."""
    return build_store(settings)


def get_product_service() -> ProductService:
    """Get Product service instance."""
    return ProductService(get_listing_store())
