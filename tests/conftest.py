"""
Test fixtures for the Ledger API test suite.

This module provides shared fixtures used across all test files:

  - settings: Frozen Settings pointing at an in-memory SQLite database
  - app: A fresh application built by create_app(settings), tables created
  - client: Async HTTP test client (unauthenticated)
  - token_service: The app's TokenService, for minting/inspecting tokens
  - ann / bob: Two registered, logged-in account holders

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database, no state leaks between tests.
  - The app is built with create_app(settings), exactly as the server is, so
    tests exercise the real engine/session/token wiring instead of overrides.
  - ann and bob are created through the real registration and login
    endpoints. Ann starts with a balance of 100, Bob with 0.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from helpers import TEST_SECRET_KEY, Holder, create_holder
from ledger_api.config import Settings
from ledger_api.database import Base
from ledger_api.main import create_app


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
def settings():
    """Test configuration; the local .env file is ignored."""
    return Settings(
        _env_file=None,
        SECRET_KEY=TEST_SECRET_KEY,
        DATABASE_URL=TEST_DATABASE_URL,
        LOG_LEVEL="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings):
    """A fresh application with all tables created."""
    application = create_app(settings)
    engine = application.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield application
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP test client talking to the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def token_service(app):
    return app.state.token_service


@pytest_asyncio.fixture
async def ann(client) -> Holder:
    """Ann, password pw1, balance 100."""
    return await create_holder(client, "Ann", "Archer", "pw1", opening_balance=100)


@pytest_asyncio.fixture
async def bob(client) -> Holder:
    """Bob, password pw2, balance 0."""
    return await create_holder(client, "Bob", "Baker", "pw2")
