"""Async SQLAlchemy engine construction.

Supports both SQLite (dev/tests) and PostgreSQL (prod) with appropriate pool
settings. Nothing is created at import time; the app builds one engine per
LedgerStore at startup.
"""
from __future__ import annotations

import ssl as ssl_module

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from config.settings import Settings, settings as default_settings


def async_url(url: str) -> str:
    """Convert postgresql:// to postgresql+asyncpg:// for async support."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or "mode=memory" in url or url.endswith("://"))


def build_engine(url: str, settings: Settings | None = None) -> AsyncEngine:
    """Create an async engine with a bounded connection pool."""
    settings = settings or default_settings
    url = async_url(url)

    engine_kwargs: dict = {"echo": False}

    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        # In-memory databases live and die with a single connection
        if _is_memory_sqlite(url):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update({
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": True,
        })
        if settings.DB_SSL:
            ssl_context = ssl_module.create_default_context()
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl_module.CERT_NONE
            engine_kwargs["connect_args"] = {"ssl": ssl_context}

    return create_async_engine(url, **engine_kwargs)
