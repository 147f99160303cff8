"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator
from pathlib import Path

# Disable rate limiting and keep everything in-process during tests
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STORE_BACKEND"] = "memory"

import pytest
from httpx import ASGITransport, AsyncClient

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.config import Settings
from core.context import AppContext, build_context
from infrastructure.auth.memory_provider import InMemoryIdentityProvider
from infrastructure.memory.listing_store import InMemoryListingStore

TEST_TOKEN_SECRET = "test-secret-key"


@pytest.fixture
def test_settings() -> Settings:
    """Settings for an in-memory client with retries disabled."""
    return Settings(
        store_backend="memory",
        app_id="test-app",
        custom_token_secret=TEST_TOKEN_SECRET,
        subscription_retry_max_attempts=0,
        rate_limit_enabled=False,
    )


@pytest.fixture
def memory_store() -> InMemoryListingStore:
    """Fresh in-memory listing store."""
    return InMemoryListingStore()


@pytest.fixture
def memory_provider() -> InMemoryIdentityProvider:
    """Fresh in-memory identity provider."""
    return InMemoryIdentityProvider(
        secret_key=TEST_TOKEN_SECRET, expire_minutes=30, bcrypt_rounds=4
    )


@pytest.fixture
def app_context(
    test_settings: Settings,
    memory_store: InMemoryListingStore,
    memory_provider: InMemoryIdentityProvider,
) -> AppContext:
    """Client context sharing the in-memory store with the API client."""
    return build_context(test_settings, store=memory_store, provider=memory_provider)


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no overrides)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def api_client(
    memory_store: InMemoryListingStore,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client whose product endpoints read ``memory_store``.

    Listings written through a client context in the same test are visible
    to the API, as they would be through the shared document store.
    """
    from api.dependencies import get_product_service
    from domain.services.product_service import ProductService
    from main import create_app

    app = create_app()

    def override_get_product_service() -> ProductService:
        return ProductService(memory_store)

    app.dependency_overrides[get_product_service] = override_get_product_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
