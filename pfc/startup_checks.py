"""Startup validation — catch misconfigurations before the app serves traffic."""
from __future__ import annotations

import logging
import sys

from config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("sqlite", "postgres", "postgresql")


def _scheme(url: str) -> str:
    return url.split(":", 1)[0].split("+", 1)[0].lower()


def validate_settings(settings: Settings | None = None) -> list[str]:
    """Validate configuration. Returns list of warnings (empty = all good).

    Raises SystemExit for misconfigurations the service cannot run with.
    """
    settings = settings or default_settings
    warnings: list[str] = []
    scheme = _scheme(settings.DATABASE_URL)

    if scheme not in SUPPORTED_SCHEMES:
        logger.critical("DATABASE_URL uses unsupported driver %r (need SQLite or PostgreSQL)", scheme)
        sys.exit(1)

    if settings.REQUEST_TIMEOUT_SECONDS <= 0:
        logger.critical("REQUEST_TIMEOUT_SECONDS must be positive, got %s", settings.REQUEST_TIMEOUT_SECONDS)
        sys.exit(1)

    is_prod = scheme != "sqlite"

    if not is_prod:
        warnings.append("DATABASE_URL points at SQLite — fine for dev, use PostgreSQL in production")

    if is_prod and "*" in settings.CORS_ORIGINS:
        warnings.append("CORS_ORIGINS is set to * — restrict in production")

    if is_prod and settings.DB_POOL_TIMEOUT > settings.REQUEST_TIMEOUT_SECONDS:
        warnings.append(
            "DB_POOL_TIMEOUT exceeds REQUEST_TIMEOUT_SECONDS — requests will be abandoned "
            "while still waiting for a connection"
        )

    for w in warnings:
        logger.warning("%s", w)

    if not warnings:
        logger.info("All startup checks passed")

    return warnings
