"""Listing store protocol and subscription handle."""

from collections.abc import Callable
from typing import Protocol

from core.exceptions import SubscriptionError
from domain.entities.listing import Listing, NewListing
from domain.entities.profile import Profile

ListingsCallback = Callable[[list[Listing]], None]
ProfileCallback = Callable[[Profile | None], None]
ErrorCallback = Callable[[SubscriptionError], None]


class Subscription:
    """Handle for a live subscription. Cancelling more than once is a no-op."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Callable[[], None] | None = cancel

    @property
    def active(self) -> bool:
        return self._cancel is not None

    def unsubscribe(self) -> None:
        cancel, self._cancel = self._cancel, None
        if cancel is not None:
            cancel()


class IListingStore(Protocol):
    """Access to the shared listing collection and per-user profiles."""

    async def create_listing(self, new_listing: NewListing) -> str:
        """Write a new listing and return its store-assigned id.

        Raises:
            StoreWriteError: If the remote write fails
        """
        ...

    async def create_profile(self, user_id: str, profile: Profile) -> None:
        """Write the profile document of a user."""
        ...

    async def get_listings(self) -> list[Listing]:
        """One-shot read of every listing (unordered)."""
        ...

    async def get_listings_by_seller(self, seller_id: str) -> list[Listing]:
        """One-shot read of the listings of one seller (unordered)."""
        ...

    def subscribe_listings(
        self, on_snapshot: ListingsCallback, on_error: ErrorCallback
    ) -> Subscription:
        """Deliver the full listing collection on every remote change."""
        ...

    def subscribe_profile(
        self, user_id: str, on_snapshot: ProfileCallback, on_error: ErrorCallback
    ) -> Subscription:
        """Deliver a user's profile (None when missing) on every change."""
        ...
