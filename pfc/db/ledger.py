"""Ledger store — atomic upsert-accumulate / floor-subtract over the pfc table.

Every write is a single SQL statement so concurrent requests for the same
date can never interleave a read and a write. Never read a row, compute in
Python and write it back.
"""
from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import case, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.requests import Request

from config.settings import Settings
from pfc.db.engine import build_engine
from pfc.db.tables import Base, PfcRow
from pfc.errors import NotFound, StorageError
from pfc.models.entry import PfcDelta, PfcTotals

logger = logging.getLogger(__name__)

pfc_table = PfcRow.__table__

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Driver-level failures that escape SQLAlchemy's exception wrapping
# (e.g. asyncpg refusing a connection).
_BACKEND_ERRORS = (SQLAlchemyError, OSError)


def _floored(column, amount: float):
    """column - amount, clamped at zero, evaluated by the database."""
    remaining = column - amount
    return case((remaining < 0, 0.0), else_=remaining)


class LedgerStore:
    """Daily PFC totals backed by one table.

    Lifecycle: ``LedgerStore.from_url(...)`` → operations → ``await close()``.
    """

    def __init__(self, engine: AsyncEngine):
        dialect = engine.dialect.name
        if dialect not in _UPSERT_INSERTS:
            raise ValueError(f"Unsupported database dialect: {dialect}")
        self._engine = engine
        self._insert = _UPSERT_INSERTS[dialect]

    @classmethod
    def from_url(cls, url: str, settings: Settings | None = None) -> "LedgerStore":
        return cls(build_engine(url, settings))

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_tables(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self._engine.dispose()

    async def ping(self) -> bool:
        """True when the database answers a trivial query."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except _BACKEND_ERRORS:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    async def increment(self, delta: PfcDelta) -> None:
        """Add the delta to the day's totals, creating the row if needed."""
        stmt = self._insert(pfc_table).values(
            date=delta.date,
            proteins=delta.proteins,
            fats=delta.fats,
            carbs=delta.carbs,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[pfc_table.c.date],
            set_={
                "proteins": pfc_table.c.proteins + stmt.excluded.proteins,
                "fats": pfc_table.c.fats + stmt.excluded.fats,
                "carbs": pfc_table.c.carbs + stmt.excluded.carbs,
            },
        )
        try:
            async with self._engine.begin() as conn:
                await conn.execute(stmt)
        except _BACKEND_ERRORS as exc:
            logger.exception("increment failed for %s", delta.date.isoformat())
            raise StorageError("increment") from exc
        logger.debug("incremented %s by %s/%s/%s", delta.date, delta.proteins, delta.fats, delta.carbs)

    async def decrement(self, delta: PfcDelta) -> None:
        """Subtract the delta from an existing day, flooring each column at 0.

        Raises NotFound when the day has no row; no row is created.
        """
        stmt = (
            update(pfc_table)
            .where(pfc_table.c.date == delta.date)
            .values(
                proteins=_floored(pfc_table.c.proteins, delta.proteins),
                fats=_floored(pfc_table.c.fats, delta.fats),
                carbs=_floored(pfc_table.c.carbs, delta.carbs),
            )
        )
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
        except _BACKEND_ERRORS as exc:
            logger.exception("decrement failed for %s", delta.date.isoformat())
            raise StorageError("decrement") from exc

        if result.rowcount != 1:
            raise NotFound(delta.date)
        logger.debug("decremented %s by %s/%s/%s", delta.date, delta.proteins, delta.fats, delta.carbs)

    async def get(self, day: date) -> PfcTotals:
        """Totals for one day. Raises NotFound for a never-touched date."""
        stmt = (
            select(pfc_table.c.proteins, pfc_table.c.fats, pfc_table.c.carbs)
            .where(pfc_table.c.date == day)
            .limit(1)
        )
        try:
            async with self._engine.connect() as conn:
                row = (await conn.execute(stmt)).first()
        except _BACKEND_ERRORS as exc:
            logger.exception("lookup failed for %s", day.isoformat())
            raise StorageError("get") from exc

        if row is None:
            raise NotFound(day)
        return PfcTotals(
            date=day,
            proteins=float(row.proteins),
            fats=float(row.fats),
            carbs=float(row.carbs),
        )


def get_store(request: Request) -> LedgerStore:
    """Dependency for FastAPI — the store opened by the app's lifespan."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("LedgerStore is not open; the app lifespan has not run")
    return store
