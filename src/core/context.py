"""Explicit wiring of the client-side components.

Everything a component needs is passed in through ``AppContext`` instead of
being looked up from module globals.
"""

from dataclasses import dataclass

from core.config import Settings
from domain.repositories.listing_store import IListingStore
from domain.services.identity_session import IdentitySession
from domain.services.listing_sync import ListingSyncController, RetryPolicy
from infrastructure.auth.provider import IIdentityProvider


@dataclass
class AppContext:
    """Session, store and controller for one running client."""

    settings: Settings
    provider: IIdentityProvider
    store: IListingStore
    session: IdentitySession
    controller: ListingSyncController


def build_store(settings: Settings) -> IListingStore:
    """Create the listing store selected by ``settings.store_backend``."""
    if settings.store_backend == "memory":
        from infrastructure.memory.listing_store import InMemoryListingStore

        return InMemoryListingStore()

    if settings.store_backend == "firestore":
        from infrastructure.firestore.client import get_async_client, get_watch_client
        from infrastructure.firestore.listing_store import FirestoreListingStore

        project_id = settings.firebase_project_id
        credentials_file = settings.firebase_credentials_file
        return FirestoreListingStore(
            get_async_client(project_id, credentials_file),
            get_watch_client(project_id, credentials_file),
            settings.app_id,
        )

    raise ValueError(f"Unknown store backend: {settings.store_backend}")


def build_provider(settings: Settings) -> IIdentityProvider:
    """Create the identity provider matching the store backend."""
    if settings.store_backend == "memory":
        from infrastructure.auth.memory_provider import InMemoryIdentityProvider

        return InMemoryIdentityProvider(secret_key=settings.custom_token_secret)

    from infrastructure.auth.firebase_provider import FirebaseIdentityProvider

    return FirebaseIdentityProvider(
        api_key=settings.firebase_api_key,
        base_url=settings.identity_toolkit_url,
    )


def build_context(
    settings: Settings,
    store: IListingStore | None = None,
    provider: IIdentityProvider | None = None,
) -> AppContext:
    """Assemble a client context; explicit ``store``/``provider`` win over settings."""
    store = store if store is not None else build_store(settings)
    provider = provider if provider is not None else build_provider(settings)
    session = IdentitySession(provider, store, initial_auth_token=settings.initial_auth_token)
    controller = ListingSyncController(
        store, session, retry_policy=RetryPolicy.from_settings(settings)
    )
    return AppContext(
        settings=settings,
        provider=provider,
        store=store,
        session=session,
        controller=controller,
    )
