"""Entry data models — wire schemas and the values passed to the store."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict

# Fields arrive as whatever JSON carried (numbers, numeric strings, junk); the
# normalizer decides what is valid so bad values produce field-specific errors.
RawValue = Any


@dataclass(frozen=True)
class PfcDelta:
    """A validated change to one day's totals."""
    date: date
    proteins: float = 0.0
    fats: float = 0.0
    carbs: float = 0.0


@dataclass(frozen=True)
class PfcTotals:
    """Accumulated totals for one day, as stored."""
    date: date
    proteins: float
    fats: float
    carbs: float


class PfcPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    date: RawValue = None
    proteins: RawValue = None
    fats: RawValue = None
    carbs: RawValue = None


class PfcResponse(BaseModel):
    date: str  # YYYY-MM-DD
    proteins: float
    fats: float
    carbs: float

    @classmethod
    def from_totals(cls, totals: PfcTotals) -> "PfcResponse":
        return cls(
            date=totals.date.isoformat(),
            proteins=totals.proteins,
            fats=totals.fats,
            carbs=totals.carbs,
        )
