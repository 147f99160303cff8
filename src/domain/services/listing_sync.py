"""Listing synchronization controller.

Keeps a local, ordered copy of the shared listing collection and the current
user's profile, fed by live store subscriptions, and validates new listings
before they are written.

Every subscription is opened under its own generation number and only the
latest generation per target is live. ``stop``, ``start`` and a failure retire
the live generation, so callbacks from a torn-down or failed subscription can
never touch the cache. Snapshot application never awaits, which keeps
deliveries from interleaving.
"""

import asyncio
import math
import re
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum
from functools import partial

import structlog

from core.config import Settings
from core.exceptions import StoreWriteError, SubmissionError, SubscriptionError, ValidationError
from domain.entities.listing import Listing, NewListing, sort_newest_first
from domain.entities.profile import Profile
from domain.repositories.listing_store import IListingStore, Subscription
from domain.services.identity_session import IdentitySession

logger = structlog.get_logger()

LISTINGS = "listings"
PROFILE = "profile"

# Plain ASCII decimal, optionally signed, with an optional exponent
_PRICE_PATTERN = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


class LoadState(StrEnum):
    """Load state of one cached view."""

    LOADING = "loading"
    LOADED = "loaded"
    ERRORED = "errored"


@dataclass(frozen=True)
class SyncState:
    """Snapshot of everything the dashboard renders."""

    profile: Profile | None = None
    profile_load_state: LoadState = LoadState.LOADING
    listings: tuple[Listing, ...] = ()
    listings_load_state: LoadState = LoadState.LOADING


@dataclass
class ListingForm:
    """Raw input of the "add product" form, kept across failed submissions."""

    name: str = ""
    description: str = ""
    price: str = ""
    image_url: str = ""
    error: str = ""

    def reset(self) -> None:
        self.name = ""
        self.description = ""
        self.price = ""
        self.image_url = ""
        self.error = ""


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for re-opening failed subscriptions."""

    max_attempts: int = 5
    base_delay: float = 1.0
    max_delay: float = 30.0

    def delay(self, attempt: int) -> float:
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.subscription_retry_max_attempts,
            base_delay=settings.subscription_retry_base_delay,
            max_delay=settings.subscription_retry_max_delay,
        )


def validate_listing_form(form: ListingForm) -> float:
    """Check the form and return the parsed price.

    Raises:
        ValidationError: A required field is blank or the price is not positive
    """
    for field_name in ("name", "description", "price"):
        if not getattr(form, field_name).strip():
            raise ValidationError("Please fill in all required fields.", field=field_name)

    text = form.price.strip()
    if not _PRICE_PATTERN.fullmatch(text):
        raise ValidationError("Price must be a positive number.", field="price")

    price = float(text)
    if not math.isfinite(price) or price <= 0:
        raise ValidationError("Price must be a positive number.", field="price")
    return price


class ListingSyncController:
    """Live listing/profile cache plus validated listing creation."""

    def __init__(
        self,
        store: IListingStore,
        session: IdentitySession,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._store = store
        self._session = session
        self._retry = retry_policy or RetryPolicy()
        self._state = SyncState()
        self._user_id: str | None = None
        self._epoch = 0
        self._generation = 0
        self._live: dict[str, int] = {}
        self._subscriptions: dict[str, Subscription] = {}
        self._attempts: dict[str, int] = {LISTINGS: 0, PROFILE: 0}
        self._retry_tasks: set[asyncio.Task[None]] = set()
        self._observers: list[Callable[[SyncState], None]] = []

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def observe(self, callback: Callable[[SyncState], None]) -> Callable[[], None]:
        """Call ``callback`` after every state change; returns a remover."""
        self._observers.append(callback)

        def _remove() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return _remove

    # --- lifecycle ---

    def start(self, user_id: str) -> None:
        """Open the listings and profile subscriptions for ``user_id``."""
        if self._user_id == user_id:
            return
        if self._user_id is not None:
            self.stop()

        self._epoch += 1
        self._user_id = user_id
        self._attempts = {LISTINGS: 0, PROFILE: 0}
        self._set_state(SyncState())
        logger.info("listing_sync_started", user_id=user_id)

        self._open(LISTINGS)
        self._open(PROFILE)

    def stop(self) -> None:
        """Tear down both subscriptions. Safe to call repeatedly."""
        self._epoch += 1
        self._live.clear()
        subscriptions, self._subscriptions = self._subscriptions, {}
        for subscription in subscriptions.values():
            subscription.unsubscribe()
        for task in list(self._retry_tasks):
            task.cancel()
        self._retry_tasks.clear()

        if self._user_id is not None:
            logger.info("listing_sync_stopped", user_id=self._user_id)
        self._user_id = None

    # --- listing creation ---

    async def submit_new_listing(self, form: ListingForm) -> str:
        """Validate the form and write a new listing for the current identity.

        The cache is left alone; the listing shows up with the next snapshot.
        The form is cleared on success and kept as typed on failure.

        Raises:
            ValidationError: Input rejected, nothing written
            SubmissionError: No identity, or the store write failed
        """
        form.error = ""
        try:
            price = validate_listing_form(form)
        except ValidationError as e:
            form.error = e.message
            raise

        identity = self._session.current_identity()
        if identity is None:
            form.error = "You must be signed in to add a product."
            raise SubmissionError(form.error)

        new_listing = NewListing(
            name=form.name.strip(),
            description=form.description.strip(),
            price=price,
            seller_id=identity.user_id,
            image_url=form.image_url.strip(),
        )
        try:
            listing_id = await self._store.create_listing(new_listing)
        except StoreWriteError as e:
            form.error = f"Failed to add product: {e.message}"
            logger.error("listing_submission_failed", error=e.message)
            raise SubmissionError(form.error) from e

        form.reset()
        logger.info("listing_submitted", listing_id=listing_id, seller_id=identity.user_id)
        return listing_id

    # --- subscription plumbing ---

    def _open(self, target: str) -> None:
        if self._user_id is None:
            raise RuntimeError("listing sync is not started")
        self._generation += 1
        generation = self._generation
        self._live[target] = generation

        if target == LISTINGS:
            subscription = self._store.subscribe_listings(
                partial(self._apply_listings, generation),
                partial(self._subscription_failed, LISTINGS, generation),
            )
        else:
            subscription = self._store.subscribe_profile(
                self._user_id,
                partial(self._apply_profile, generation),
                partial(self._subscription_failed, PROFILE, generation),
            )

        if self._is_live(target, generation):
            self._subscriptions[target] = subscription
        else:
            # failed or torn down while subscribing
            subscription.unsubscribe()

    def _is_live(self, target: str, generation: int) -> bool:
        return self._live.get(target) == generation

    def _apply_listings(self, generation: int, listings: list[Listing]) -> None:
        if not self._is_live(LISTINGS, generation):
            logger.debug("stale_snapshot_dropped", target=LISTINGS)
            return
        self._attempts[LISTINGS] = 0
        self._set_state(
            replace(
                self._state,
                listings=tuple(sort_newest_first(listings)),
                listings_load_state=LoadState.LOADED,
            )
        )

    def _apply_profile(self, generation: int, profile: Profile | None) -> None:
        if not self._is_live(PROFILE, generation):
            logger.debug("stale_snapshot_dropped", target=PROFILE)
            return
        self._attempts[PROFILE] = 0
        self._set_state(
            replace(self._state, profile=profile, profile_load_state=LoadState.LOADED)
        )

    def _subscription_failed(
        self, target: str, generation: int, error: SubscriptionError
    ) -> None:
        if not self._is_live(target, generation):
            return

        del self._live[target]
        subscription = self._subscriptions.pop(target, None)
        if subscription is not None:
            subscription.unsubscribe()

        logger.warning("subscription_failed", target=target, error=error.message)
        if target == LISTINGS:
            self._set_state(replace(self._state, listings_load_state=LoadState.ERRORED))
        else:
            self._set_state(replace(self._state, profile_load_state=LoadState.ERRORED))
        self._schedule_retry(target)

    def _schedule_retry(self, target: str) -> None:
        attempt = self._attempts[target] + 1
        if attempt > self._retry.max_attempts:
            logger.warning("subscription_retry_exhausted", target=target)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("subscription_retry_skipped", target=target, reason="no event loop")
            return

        self._attempts[target] = attempt
        delay = self._retry.delay(attempt)
        task = loop.create_task(self._resubscribe(target, self._epoch, attempt, delay))
        self._retry_tasks.add(task)
        task.add_done_callback(self._retry_tasks.discard)

    async def _resubscribe(self, target: str, epoch: int, attempt: int, delay: float) -> None:
        await asyncio.sleep(delay)
        if epoch != self._epoch:
            return
        logger.info("subscription_retry", target=target, attempt=attempt, delay=delay)
        self._open(target)

    def _set_state(self, state: SyncState) -> None:
        self._state = state
        for observer in list(self._observers):
            observer(state)
