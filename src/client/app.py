"""Presentation view-model for the marketplace client.

Decides which screen to show and produces the strings the dashboard renders.
Drawing them is left to whatever UI drives this object.
"""

from enum import StrEnum

import structlog

from core.context import AppContext
from core.exceptions import SessionInitError
from domain.entities.identity import Identity
from domain.entities.listing import Listing
from domain.services.listing_sync import LoadState

logger = structlog.get_logger()

EMPTY_LISTINGS_MESSAGE = "No products listed yet. Be the first to add one!"


class Screen(StrEnum):
    LOADING = "loading"
    AUTH = "auth"
    DASHBOARD = "dashboard"


class MarketplaceClient:
    """Glue between the identity session, the sync controller and a UI."""

    def __init__(self, context: AppContext) -> None:
        self._context = context
        self._booted = False

    @property
    def screen(self) -> Screen:
        if not self._booted:
            return Screen.LOADING
        if self._context.session.current_identity() is None:
            return Screen.AUTH
        return Screen.DASHBOARD

    async def bootstrap(self) -> Screen:
        """Establish some identity; fall back to the auth screen on failure."""
        try:
            await self._context.session.ensure_session()
        except SessionInitError as e:
            logger.warning("falling_back_to_auth_screen", error=e.message)
        self._booted = True
        self._sync_controller(self._context.session.current_identity())
        return self.screen

    async def follow_identity(self) -> None:
        """Start or stop listing sync on every identity change. Runs until cancelled."""
        try:
            async for identity in self._context.session.identity_changes():
                self._sync_controller(identity)
        finally:
            self._context.controller.stop()

    def greeting(self) -> str:
        profile = self._context.controller.state.profile
        email = profile.email if profile and profile.email else None
        return f"Welcome to eMarket, {email or 'User'}!"

    def listings_message(self) -> str | None:
        """Placeholder text when there is nothing to list, else None."""
        state = self._context.controller.state
        if state.listings_load_state == LoadState.LOADING:
            return "Loading products..."
        if state.listings_load_state == LoadState.ERRORED and not state.listings:
            return "Products are unavailable right now."
        if not state.listings:
            return EMPTY_LISTINGS_MESSAGE
        return None

    @staticmethod
    def buy_now(listing: Listing) -> str:
        """Simulated purchase; nothing is written anywhere."""
        return f'You bought "{listing.name}" for ${listing.price:.2f}! (Simulated)'

    def _sync_controller(self, identity: Identity | None) -> None:
        if identity is None:
            self._context.controller.stop()
        else:
            self._context.controller.start(identity.user_id)
