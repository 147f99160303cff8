"""Identity session: sign-in state and identity-change events."""

import asyncio
from collections.abc import AsyncIterator

import structlog

from core.exceptions import AppException, SessionInitError
from domain.entities.identity import Identity
from domain.entities.profile import Profile
from domain.repositories.listing_store import IListingStore
from infrastructure.auth.provider import IIdentityProvider

logger = structlog.get_logger()


class IdentitySession:
    """Holds the current identity and broadcasts every change to listeners."""

    def __init__(
        self,
        provider: IIdentityProvider,
        store: IListingStore,
        initial_auth_token: str | None = None,
    ) -> None:
        self._provider = provider
        self._store = store
        self._initial_auth_token = initial_auth_token or None
        self._identity: Identity | None = None
        self._listeners: set[asyncio.Queue[Identity | None]] = set()

    def current_identity(self) -> Identity | None:
        return self._identity

    async def sign_up(self, email: str, password: str) -> Identity:
        """Create an account and its profile document.

        Raises:
            CredentialError: Email already registered or password rejected
            StoreWriteError: The profile document could not be written
        """
        identity = await self._provider.sign_up(email, password)
        self._set_identity(identity)
        await self._store.create_profile(identity.user_id, Profile(email=identity.email))
        logger.info("signed_up", user_id=identity.user_id)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        identity = await self._provider.sign_in(email, password)
        self._set_identity(identity)
        logger.info("signed_in", user_id=identity.user_id)
        return identity

    def sign_out(self) -> None:
        if self._identity is not None:
            logger.info("signed_out", user_id=self._identity.user_id)
        self._set_identity(None)

    async def ensure_session(self) -> Identity:
        """Make sure some identity exists before the dashboard is shown.

        Uses the pre-issued token when one is configured, otherwise signs in
        anonymously. Failures are not retried.

        Raises:
            SessionInitError: The fallback identity could not be established
        """
        if self._identity is not None:
            return self._identity

        try:
            if self._initial_auth_token:
                identity = await self._provider.sign_in_with_custom_token(self._initial_auth_token)
            else:
                identity = await self._provider.sign_in_anonymously()
        except AppException as e:
            logger.warning("session_init_failed", error=e.message)
            raise SessionInitError(f"Could not establish a session: {e.message}") from e

        self._set_identity(identity)
        return identity

    async def identity_changes(self) -> AsyncIterator[Identity | None]:
        """Yield the current identity, then every change, until the consumer stops."""
        queue: asyncio.Queue[Identity | None] = asyncio.Queue()
        self._listeners.add(queue)
        try:
            yield self._identity
            while True:
                yield await queue.get()
        finally:
            self._listeners.discard(queue)

    def _set_identity(self, identity: Identity | None) -> None:
        self._identity = identity
        for queue in list(self._listeners):
            queue.put_nowait(identity)
