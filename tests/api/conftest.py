"""Fixtures for HTTP API tests"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from gymtrainer import config
from gymtrainer.api.middleware import limiter
from gymtrainer.api.server import create_api_application
from gymtrainer.services import init_container, reset_container

TEST_API_KEY = "test_key_123"


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {TEST_API_KEY}"}


@pytest_asyncio.fixture
async def client(monkeypatch, repository, catalog):
    """
    API client bound to an in-memory container.

    ASGITransport does not run the lifespan, so the container is
    initialized here instead.
    """
    monkeypatch.setattr(config, "API_KEYS", [TEST_API_KEY])
    limiter.reset()
    init_container(repository, catalog)

    app = create_api_application()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    reset_container()
