"""Shared fixtures for unit tests."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.exceptions import SubscriptionError
from domain.entities.identity import Identity
from domain.repositories.listing_store import Subscription


class RecordedSubscription:
    """One subscription opened on the FakeListingStore, with its callbacks."""

    def __init__(self, on_snapshot: Any, on_error: Any, user_id: str | None = None) -> None:
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.user_id = user_id
        self.cancelled = False
        self.handle = Subscription(self._cancel)

    def _cancel(self) -> None:
        self.cancelled = True

    def push(self, payload: Any) -> None:
        """Deliver a snapshot, even after cancellation (a late callback)."""
        self.on_snapshot(payload)

    def fail(self, message: str = "transport closed") -> None:
        self.on_error(SubscriptionError(message))


class FakeListingStore:
    """Listing store with AsyncMock writes/reads that records subscriptions."""

    def __init__(self) -> None:
        self.create_listing = AsyncMock(return_value="listing-1")
        self.create_profile = AsyncMock()
        self.get_listings = AsyncMock(return_value=[])
        self.get_listings_by_seller = AsyncMock(return_value=[])
        self.listing_subscriptions: list[RecordedSubscription] = []
        self.profile_subscriptions: list[RecordedSubscription] = []

    def subscribe_listings(self, on_snapshot: Any, on_error: Any) -> Subscription:
        recorded = RecordedSubscription(on_snapshot, on_error)
        self.listing_subscriptions.append(recorded)
        return recorded.handle

    def subscribe_profile(self, user_id: str, on_snapshot: Any, on_error: Any) -> Subscription:
        recorded = RecordedSubscription(on_snapshot, on_error, user_id=user_id)
        self.profile_subscriptions.append(recorded)
        return recorded.handle

    @property
    def active_listing_subscriptions(self) -> list[RecordedSubscription]:
        return [s for s in self.listing_subscriptions if not s.cancelled]

    @property
    def active_profile_subscriptions(self) -> list[RecordedSubscription]:
        return [s for s in self.profile_subscriptions if not s.cancelled]


@pytest.fixture
def store() -> FakeListingStore:
    """Create a fresh FakeListingStore."""
    return FakeListingStore()


@pytest.fixture
def identity() -> Identity:
    """A signed-in seller."""
    return Identity(user_id="seller-1", email="seller@example.com")


@pytest.fixture
def session(identity: Identity) -> MagicMock:
    """Session stub reporting ``identity`` as current."""
    session = MagicMock()
    session.current_identity.return_value = identity
    return session
