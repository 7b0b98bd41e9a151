"""SQLAlchemy ORM models for the PFC ledger."""
from __future__ import annotations

from sqlalchemy import Column, Date, Float, text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class PfcRow(Base):
    """One row per calendar date — accumulated totals in grams."""
    __tablename__ = "pfc"

    date = Column(Date, primary_key=True)
    proteins = Column(Float, nullable=False, default=0.0, server_default=text("0"))
    fats = Column(Float, nullable=False, default=0.0, server_default=text("0"))
    carbs = Column(Float, nullable=False, default=0.0, server_default=text("0"))
