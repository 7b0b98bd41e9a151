"""Shared test fixtures — a fresh in-memory ledger per test."""
from __future__ import annotations

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from pfc.db.ledger import LedgerStore, get_store

# In-memory SQLite; build_engine pins it to a single connection (StaticPool)
# so every statement in a test sees the same database.
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# Import app BEFORE overriding its dependencies
from pfc.api.main import app  # noqa: E402


@pytest_asyncio.fixture
async def store():
    """An open LedgerStore with the pfc table created."""
    ledger = LedgerStore.from_url(TEST_DB_URL)
    await ledger.create_tables()
    yield ledger
    await ledger.close()


@pytest_asyncio.fixture
async def bare_store():
    """An open LedgerStore whose table was never created — every query fails."""
    ledger = LedgerStore.from_url(TEST_DB_URL)
    yield ledger
    await ledger.close()


@pytest_asyncio.fixture
async def client(store):
    app.dependency_overrides[get_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
