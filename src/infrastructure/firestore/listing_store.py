"""Cloud Firestore implementation of the listing store."""

import asyncio
from collections.abc import Callable
from typing import Any

import structlog
from google.api_core.exceptions import GoogleAPIError
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from core.exceptions import StoreReadError, StoreWriteError, SubscriptionError
from domain.entities.listing import Listing, NewListing
from domain.entities.profile import Profile
from domain.repositories.listing_store import (
    ErrorCallback,
    ListingsCallback,
    ProfileCallback,
    Subscription,
)

logger = structlog.get_logger()


class FirestoreListingStore:
    """IListingStore over Firestore.

    Documents live under ``artifacts/{app_id}``:
        users/{user_id}/profile/data   one profile per user
        public/data/products           shared listings, auto ids
    """

    def __init__(
        self,
        async_client: firestore.AsyncClient,
        watch_client: firestore.Client,
        app_id: str,
        watch_poll_interval: float = 1.0,
    ) -> None:
        self._async_client = async_client
        self._watch_client = watch_client
        self._app_id = app_id
        self._watch_poll_interval = watch_poll_interval

    @property
    def products_path(self) -> str:
        return f"artifacts/{self._app_id}/public/data/products"

    def profile_path(self, user_id: str) -> str:
        return f"artifacts/{self._app_id}/users/{user_id}/profile/data"

    async def create_listing(self, new_listing: NewListing) -> str:
        document = new_listing.to_document()
        document["createdAt"] = firestore.SERVER_TIMESTAMP
        try:
            _, doc_ref = await self._async_client.collection(self.products_path).add(document)
        except GoogleAPIError as e:
            logger.error("listing_write_failed", error=str(e))
            raise StoreWriteError(str(e), path=self.products_path) from e
        logger.info("listing_created", listing_id=doc_ref.id, seller_id=new_listing.seller_id)
        return doc_ref.id

    async def create_profile(self, user_id: str, profile: Profile) -> None:
        path = self.profile_path(user_id)
        try:
            await self._async_client.document(path).set(profile.to_document())
        except GoogleAPIError as e:
            logger.error("profile_write_failed", user_id=user_id, error=str(e))
            raise StoreWriteError(str(e), path=path) from e

    async def get_listings(self) -> list[Listing]:
        return await self._query(self._async_client.collection(self.products_path))

    async def get_listings_by_seller(self, seller_id: str) -> list[Listing]:
        query = self._async_client.collection(self.products_path).where(
            filter=FieldFilter("sellerId", "==", seller_id)
        )
        return await self._query(query)

    def subscribe_listings(
        self, on_snapshot: ListingsCallback, on_error: ErrorCallback
    ) -> Subscription:
        deliver = _loop_dispatcher()

        def _on_watch(docs: list[Any], changes: Any, read_time: Any) -> None:
            try:
                listings = [Listing.from_document(doc.id, doc.to_dict() or {}) for doc in docs]
            except (TypeError, ValueError) as e:
                deliver(on_error, SubscriptionError(f"Malformed listing: {e}", target="listings"))
                return
            deliver(on_snapshot, listings)

        watch = self._watch_client.collection(self.products_path).on_snapshot(_on_watch)
        return self._track(watch, on_error, target="listings")

    def subscribe_profile(
        self, user_id: str, on_snapshot: ProfileCallback, on_error: ErrorCallback
    ) -> Subscription:
        deliver = _loop_dispatcher()

        def _on_watch(docs: list[Any], changes: Any, read_time: Any) -> None:
            doc = docs[0] if docs else None
            if doc is None or not doc.exists:
                deliver(on_snapshot, None)
                return
            try:
                profile = Profile.from_document(doc.to_dict() or {})
            except (AttributeError, TypeError, ValueError) as e:
                deliver(on_error, SubscriptionError(f"Malformed profile: {e}", target="profile"))
                return
            deliver(on_snapshot, profile)

        watch = self._watch_client.document(self.profile_path(user_id)).on_snapshot(_on_watch)
        return self._track(watch, on_error, target="profile")

    def _track(self, watch: Any, on_error: ErrorCallback, target: str) -> Subscription:
        """Tie a watch to a monitor task that reports the stream closing on its own."""
        monitor = asyncio.get_running_loop().create_task(
            _monitor_watch(watch, on_error, target, self._watch_poll_interval)
        )

        def _cancel() -> None:
            monitor.cancel()
            watch.unsubscribe()

        return Subscription(_cancel)

    async def _query(self, query: Any) -> list[Listing]:
        try:
            return [
                Listing.from_document(doc.id, doc.to_dict() or {})
                async for doc in query.stream()
            ]
        except GoogleAPIError as e:
            logger.error("listing_query_failed", error=str(e))
            raise StoreReadError("Listing query failed", details=str(e)) from e


async def _monitor_watch(
    watch: Any, on_error: ErrorCallback, target: str, interval: float
) -> None:
    """Poll ``watch.is_active``; the SDK has no callback for a terminated listen stream."""
    while True:
        await asyncio.sleep(interval)
        if not watch.is_active:
            logger.warning("watch_stream_closed", target=target)
            on_error(SubscriptionError("Listen stream closed", target=target))
            return


def _loop_dispatcher() -> Callable[..., None]:
    """Hop watch callbacks from the listener thread onto the caller's loop.

    Deliveries are queued on the loop one at a time, in arrival order.
    Must be called from within a running event loop.
    """
    loop = asyncio.get_running_loop()

    def deliver(callback: Callable[..., None], *args: Any) -> None:
        if not loop.is_closed():
            loop.call_soon_threadsafe(callback, *args)

    return deliver
