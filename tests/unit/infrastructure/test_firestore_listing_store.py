"""Unit tests for FirestoreListingStore with mocked Firestore clients."""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.api_core.exceptions import ServiceUnavailable
from google.cloud import firestore

from core.exceptions import StoreReadError, StoreWriteError, SubscriptionError
from domain.entities.listing import NewListing
from domain.entities.profile import Profile
from infrastructure.firestore.listing_store import FirestoreListingStore

PRODUCTS_PATH = "artifacts/test-app/public/data/products"
CREATED = datetime(2026, 2, 1, tzinfo=timezone.utc)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _doc(doc_id: str, data: dict[str, Any] | None, exists: bool = True) -> MagicMock:
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = exists
    doc.to_dict.return_value = data
    return doc


def _listing_data(name: str = "Lamp", price: Any = 19.99) -> dict[str, Any]:
    return {
        "name": name,
        "description": "Desk lamp",
        "price": price,
        "imageUrl": "",
        "sellerId": "u1",
        "createdAt": CREATED,
    }


async def _stream(*docs: MagicMock):
    for doc in docs:
        yield doc


async def _failing_stream():
    raise ServiceUnavailable("backend unavailable")
    yield  # pragma: no cover


def _fire_from_thread(callback: Any, *args: Any) -> None:
    """Invoke a watch callback the way the listener thread does."""
    thread = threading.Thread(target=callback, args=args)
    thread.start()
    thread.join()


@pytest.fixture
def async_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def watch_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def store(async_client: MagicMock, watch_client: MagicMock) -> FirestoreListingStore:
    return FirestoreListingStore(
        async_client, watch_client, app_id="test-app", watch_poll_interval=0.01
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


class TestWrites:
    async def test_create_listing_adds_server_timestamp(
        self, store: FirestoreListingStore, async_client: MagicMock
    ):
        doc_ref = MagicMock()
        doc_ref.id = "new-id"
        async_client.collection.return_value.add = AsyncMock(return_value=(None, doc_ref))

        listing_id = await store.create_listing(
            NewListing(name="Lamp", description="Desk lamp", price=19.99, seller_id="u1")
        )

        assert listing_id == "new-id"
        async_client.collection.assert_called_once_with(PRODUCTS_PATH)
        [document] = async_client.collection.return_value.add.await_args.args
        assert document["createdAt"] is firestore.SERVER_TIMESTAMP
        assert document["sellerId"] == "u1"
        assert "id" not in document

    async def test_create_listing_failure_raises_store_write_error(
        self, store: FirestoreListingStore, async_client: MagicMock
    ):
        async_client.collection.return_value.add = AsyncMock(
            side_effect=ServiceUnavailable("backend unavailable")
        )

        with pytest.raises(StoreWriteError) as exc_info:
            await store.create_listing(
                NewListing(name="Lamp", description="d", price=1.0, seller_id="u1")
            )

        assert exc_info.value.details == {"path": PRODUCTS_PATH}

    async def test_create_profile_sets_document(
        self, store: FirestoreListingStore, async_client: MagicMock
    ):
        async_client.document.return_value.set = AsyncMock()

        await store.create_profile("u1", Profile(email="a@b.com", created_at=CREATED))

        async_client.document.assert_called_once_with(
            "artifacts/test-app/users/u1/profile/data"
        )
        async_client.document.return_value.set.assert_awaited_once_with(
            {"email": "a@b.com", "createdAt": CREATED}
        )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestQueries:
    async def test_get_listings_maps_documents(
        self, store: FirestoreListingStore, async_client: MagicMock
    ):
        async_client.collection.return_value.stream = lambda: _stream(
            _doc("a", _listing_data("A")), _doc("b", _listing_data("B"))
        )

        listings = await store.get_listings()

        assert [(item.id, item.name) for item in listings] == [("a", "A"), ("b", "B")]
        assert listings[0].created_at == CREATED

    async def test_get_listings_by_seller_filters_on_seller_id(
        self, store: FirestoreListingStore, async_client: MagicMock
    ):
        query = async_client.collection.return_value.where.return_value
        query.stream = lambda: _stream()

        assert await store.get_listings_by_seller("u1") == []

        field_filter = async_client.collection.return_value.where.call_args.kwargs["filter"]
        assert field_filter.field_path == "sellerId"
        assert field_filter.op_string == "=="
        assert field_filter.value == "u1"

    async def test_query_failure_raises_store_read_error(
        self, store: FirestoreListingStore, async_client: MagicMock
    ):
        async_client.collection.return_value.stream = _failing_stream

        with pytest.raises(StoreReadError) as exc_info:
            await store.get_listings()

        assert "backend unavailable" in exc_info.value.details


# ---------------------------------------------------------------------------
# Watches
# ---------------------------------------------------------------------------


class TestWatches:
    async def test_listing_snapshot_is_delivered_on_the_loop(
        self, store: FirestoreListingStore, watch_client: MagicMock
    ):
        delivered: list[tuple[list, int]] = []
        subscription = store.subscribe_listings(
            lambda listings: delivered.append((listings, threading.get_ident())),
            lambda error: None,
        )
        [callback] = watch_client.collection.return_value.on_snapshot.call_args.args

        _fire_from_thread(callback, [_doc("a", _listing_data())], [], CREATED)
        await asyncio.sleep(0.01)

        [(listings, thread_id)] = delivered
        assert thread_id == threading.get_ident()
        assert [item.id for item in listings] == ["a"]
        subscription.unsubscribe()

    async def test_malformed_listing_reports_subscription_error(
        self, store: FirestoreListingStore, watch_client: MagicMock
    ):
        errors: list[SubscriptionError] = []
        subscription = store.subscribe_listings(lambda listings: None, errors.append)
        [callback] = watch_client.collection.return_value.on_snapshot.call_args.args

        _fire_from_thread(callback, [_doc("a", _listing_data(price="abc"))], [], CREATED)
        await asyncio.sleep(0.01)

        assert len(errors) == 1
        assert errors[0].details == {"target": "listings"}
        subscription.unsubscribe()

    async def test_unsubscribe_stops_the_watch(
        self, store: FirestoreListingStore, watch_client: MagicMock
    ):
        watch = watch_client.collection.return_value.on_snapshot.return_value

        subscription = store.subscribe_listings(lambda listings: None, lambda error: None)
        subscription.unsubscribe()
        subscription.unsubscribe()

        watch.unsubscribe.assert_called_once_with()

    async def test_missing_profile_delivers_none(
        self, store: FirestoreListingStore, watch_client: MagicMock
    ):
        profiles: list = []
        subscription = store.subscribe_profile("u1", profiles.append, lambda error: None)
        watch_client.document.assert_called_once_with("artifacts/test-app/users/u1/profile/data")
        [callback] = watch_client.document.return_value.on_snapshot.call_args.args

        _fire_from_thread(callback, [_doc("data", None, exists=False)], [], CREATED)
        _fire_from_thread(
            callback, [_doc("data", {"email": "a@b.com", "createdAt": CREATED})], [], CREATED
        )
        await asyncio.sleep(0.01)

        assert profiles[0] is None
        assert profiles[1] == Profile(email="a@b.com", created_at=CREATED)
        subscription.unsubscribe()

    async def test_malformed_profile_reports_subscription_error(
        self, store: FirestoreListingStore, watch_client: MagicMock
    ):
        profiles: list = []
        errors: list[SubscriptionError] = []
        subscription = store.subscribe_profile("u1", profiles.append, errors.append)
        [callback] = watch_client.document.return_value.on_snapshot.call_args.args

        _fire_from_thread(callback, [_doc("data", {"email": 42})], [], CREATED)
        await asyncio.sleep(0.01)

        assert profiles == []
        assert len(errors) == 1
        assert errors[0].details == {"target": "profile"}
        subscription.unsubscribe()

    @pytest.mark.parametrize("target", ["listings", "profile"])
    async def test_closed_stream_reports_subscription_error(
        self, store: FirestoreListingStore, watch_client: MagicMock, target: str
    ):
        errors: list[SubscriptionError] = []
        if target == "listings":
            watch = watch_client.collection.return_value.on_snapshot.return_value
            subscription = store.subscribe_listings(lambda listings: None, errors.append)
        else:
            watch = watch_client.document.return_value.on_snapshot.return_value
            subscription = store.subscribe_profile("u1", lambda profile: None, errors.append)
        watch.is_active = True

        await asyncio.sleep(0.05)
        assert errors == []

        watch.is_active = False
        await asyncio.sleep(0.05)

        assert len(errors) == 1
        assert errors[0].details == {"target": target}
        subscription.unsubscribe()
        watch.unsubscribe.assert_called_once_with()

    async def test_closed_stream_after_unsubscribe_is_not_reported(
        self, store: FirestoreListingStore, watch_client: MagicMock
    ):
        errors: list[SubscriptionError] = []
        watch = watch_client.collection.return_value.on_snapshot.return_value
        watch.is_active = True

        subscription = store.subscribe_listings(lambda listings: None, errors.append)
        subscription.unsubscribe()
        watch.is_active = False
        await asyncio.sleep(0.05)

        assert errors == []
