"""Unit tests for ProductService."""

from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import StoreReadError
from domain.entities.listing import Listing
from domain.services.product_service import ProductService
from tests.unit.conftest import FakeListingStore

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


def _listing(listing_id: str, created_at: datetime | None, seller_id: str = "s1") -> Listing:
    return Listing(
        id=listing_id,
        name=listing_id,
        description="",
        price=1.0,
        seller_id=seller_id,
        created_at=created_at,
    )


@pytest.fixture
def service(store: FakeListingStore) -> ProductService:
    return ProductService(store)


class TestListAll:
    async def test_returns_newest_first(self, service: ProductService, store: FakeListingStore):
        store.get_listings.return_value = [
            _listing("old", NOW),
            _listing("pending", None),
            _listing("new", NOW + timedelta(hours=1)),
        ]

        result = await service.list_all()

        assert [item.id for item in result] == ["new", "old", "pending"]

    async def test_empty_store_returns_empty_list(self, service: ProductService):
        assert await service.list_all() == []

    async def test_store_failure_raises_store_read_error(
        self, service: ProductService, store: FakeListingStore
    ):
        store.get_listings.side_effect = RuntimeError("deadline exceeded")

        with pytest.raises(StoreReadError) as exc_info:
            await service.list_all()

        assert exc_info.value.message == "Failed to fetch products"
        assert exc_info.value.details == "deadline exceeded"
        assert exc_info.value.status_code == 500


class TestListBySeller:
    async def test_queries_by_seller(self, service: ProductService, store: FakeListingStore):
        store.get_listings_by_seller.return_value = [_listing("a", NOW, seller_id="s2")]

        result = await service.list_by_seller("s2")

        store.get_listings_by_seller.assert_awaited_once_with("s2")
        assert [item.id for item in result] == ["a"]

    async def test_unknown_seller_returns_empty_list(self, service: ProductService):
        assert await service.list_by_seller("nobody") == []

    async def test_wraps_store_read_error_details(
        self, service: ProductService, store: FakeListingStore
    ):
        store.get_listings_by_seller.side_effect = StoreReadError(
            "Listing query failed", details="permission denied"
        )

        with pytest.raises(StoreReadError) as exc_info:
            await service.list_by_seller("s1")

        assert exc_info.value.message == "Failed to fetch seller products"
        assert exc_info.value.details == "permission denied"
