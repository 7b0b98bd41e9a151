"""Tests for settings validation, engine construction and the app lifespan."""
from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from pfc.api.main import create_app
from pfc.db.engine import async_url
from pfc.startup_checks import validate_settings


class _MemorySettings(Settings):
    DATABASE_URL = "sqlite+aiosqlite:///:memory:"
    AUTO_CREATE_TABLES = True
    REQUEST_TIMEOUT_SECONDS = 15.0


class _PostgresSettings(Settings):
    DATABASE_URL = "postgresql://pfc:secret@db:5432/pfc"
    CORS_ORIGINS = ["https://app.example.com"]
    REQUEST_TIMEOUT_SECONDS = 15.0
    DB_POOL_TIMEOUT = 10.0


class TestValidateSettings:
    def test_sqlite_is_a_warning(self):
        warnings = validate_settings(_MemorySettings())
        assert any("SQLite" in w for w in warnings)

    def test_clean_postgres_config(self):
        assert validate_settings(_PostgresSettings()) == []

    def test_wildcard_cors_in_production(self):
        class _Cfg(_PostgresSettings):
            CORS_ORIGINS = ["*"]
        assert any("CORS" in w for w in validate_settings(_Cfg()))

    def test_pool_timeout_longer_than_deadline(self):
        class _Cfg(_PostgresSettings):
            DB_POOL_TIMEOUT = 30.0
        assert any("DB_POOL_TIMEOUT" in w for w in validate_settings(_Cfg()))

    def test_unsupported_driver_exits(self):
        class _Cfg(Settings):
            DATABASE_URL = "mysql://root@localhost/pfc"
        with pytest.raises(SystemExit):
            validate_settings(_Cfg())

    def test_non_positive_timeout_exits(self):
        class _Cfg(_MemorySettings):
            REQUEST_TIMEOUT_SECONDS = 0
        with pytest.raises(SystemExit):
            validate_settings(_Cfg())


class TestAsyncUrl:
    def test_postgres_gets_asyncpg(self):
        assert async_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
        assert async_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"

    def test_sqlite_gets_aiosqlite(self):
        assert async_url("sqlite:///pfc.db") == "sqlite+aiosqlite:///pfc.db"

    def test_async_urls_untouched(self):
        assert async_url("sqlite+aiosqlite:///pfc.db") == "sqlite+aiosqlite:///pfc.db"
        assert async_url("postgresql+asyncpg://h/db") == "postgresql+asyncpg://h/db"


@pytest.mark.asyncio
async def test_lifespan_opens_and_closes_store():
    app = create_app(settings=_MemorySettings())
    assert app.state.store is None

    async with app.router.lifespan_context(app):
        store = app.state.store
        assert store is not None

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            resp = await ac.post("/pfc", json={"date": "2024-01-01", "fats": 3})
            assert resp.status_code == 205
            resp = await ac.get("/pfc", params={"date": "2024-01-01"})
            assert resp.json()["fats"] == 3.0

    assert app.state.store is None


@pytest.mark.asyncio
async def test_lifespan_leaves_injected_store_open(store):
    app = create_app(settings=_MemorySettings(), store=store)

    async with app.router.lifespan_context(app):
        assert app.state.store is store

    assert app.state.store is store
    assert await store.ping() is True
