"""In-process implementation of the listing store.

Used for local development (``STORE_BACKEND=memory``) and tests. Snapshots
are delivered synchronously to subscribers, in subscription order.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from uuid import uuid4

import structlog

from core.exceptions import SubscriptionError
from domain.entities.listing import Listing, NewListing
from domain.entities.profile import Profile
from domain.repositories.listing_store import (
    ErrorCallback,
    ListingsCallback,
    ProfileCallback,
    Subscription,
)

logger = structlog.get_logger()


class InMemoryListingStore:
    """Dict-backed IListingStore."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._listings: dict[str, Listing] = {}
        self._profiles: dict[str, Profile] = {}
        self._listing_watchers: dict[int, tuple[ListingsCallback, ErrorCallback]] = {}
        self._profile_watchers: dict[int, tuple[str, ProfileCallback, ErrorCallback]] = {}
        self._next_watch_id = 0

    async def create_listing(self, new_listing: NewListing) -> str:
        listing_id = uuid4().hex[:20]
        self._listings[listing_id] = Listing(
            id=listing_id,
            name=new_listing.name,
            description=new_listing.description,
            price=new_listing.price,
            seller_id=new_listing.seller_id,
            image_url=new_listing.image_url,
            created_at=self._clock(),
        )
        logger.debug("listing_stored", listing_id=listing_id)
        self._notify_listings()
        return listing_id

    async def create_profile(self, user_id: str, profile: Profile) -> None:
        self._profiles[user_id] = profile
        for watched_id, on_snapshot, _ in list(self._profile_watchers.values()):
            if watched_id == user_id:
                on_snapshot(profile)

    async def get_listings(self) -> list[Listing]:
        return list(self._listings.values())

    async def get_listings_by_seller(self, seller_id: str) -> list[Listing]:
        return [listing for listing in self._listings.values() if listing.seller_id == seller_id]

    def subscribe_listings(
        self, on_snapshot: ListingsCallback, on_error: ErrorCallback
    ) -> Subscription:
        watch_id = self._allocate_watch_id()
        self._listing_watchers[watch_id] = (on_snapshot, on_error)
        on_snapshot(list(self._listings.values()))
        return Subscription(lambda: self._listing_watchers.pop(watch_id, None))

    def subscribe_profile(
        self, user_id: str, on_snapshot: ProfileCallback, on_error: ErrorCallback
    ) -> Subscription:
        watch_id = self._allocate_watch_id()
        self._profile_watchers[watch_id] = (user_id, on_snapshot, on_error)
        on_snapshot(self._profiles.get(user_id))
        return Subscription(lambda: self._profile_watchers.pop(watch_id, None))

    def disconnect(self, reason: str = "connection lost") -> None:
        """Fail every open subscription, as a dropped transport would."""
        listing_watchers = list(self._listing_watchers.values())
        profile_watchers = list(self._profile_watchers.values())
        self._listing_watchers.clear()
        self._profile_watchers.clear()

        for _, on_error in listing_watchers:
            on_error(SubscriptionError(reason, target="listings"))
        for _, _, on_error in profile_watchers:
            on_error(SubscriptionError(reason, target="profile"))

    @property
    def open_subscriptions(self) -> int:
        return len(self._listing_watchers) + len(self._profile_watchers)

    def _allocate_watch_id(self) -> int:
        self._next_watch_id += 1
        return self._next_watch_id

    def _notify_listings(self) -> None:
        snapshot = list(self._listings.values())
        for on_snapshot, _ in list(self._listing_watchers.values()):
            on_snapshot(list(snapshot))
