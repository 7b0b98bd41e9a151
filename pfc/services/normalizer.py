"""Request normalizer — turn raw request fields into a validated PfcDelta.

Pure parsing: nothing here touches the store. Dates accept both the padded
(2024-01-05) and unpadded (2024-1-5) forms and always come out as a real
``datetime.date``, so the store and the wire only ever see ISO form.
"""
from __future__ import annotations

import math
import re
from datetime import date
from typing import Any, Callable, Optional

from pfc.errors import InvalidDate, InvalidNutrient
from pfc.models.entry import PfcDelta

NUTRIENT_FIELDS = ("proteins", "fats", "carbs")

# ASCII digits only; \d alone would also accept Arabic-Indic and other digits
_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$", re.ASCII)
_DECIMAL_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$", re.ASCII)

Today = Callable[[], date]


def current_date() -> date:
    """Today's calendar date in the server's local time zone."""
    return date.today()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_date(value: Any, today: Optional[Today] = None) -> date:
    """Parse a YYYY-MM-DD (or YYYY-M-D) string; blank means today."""
    if _is_blank(value):
        return (today or current_date)()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate(value)

    match = _DATE_RE.match(value.strip())
    if not match:
        raise InvalidDate(value)
    year, month, day = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidDate(value) from exc


def parse_nutrient(field: str, value: Any) -> float:
    """Parse one nutrient delta in grams; blank means 0."""
    if _is_blank(value):
        return 0.0
    # bool is an int subclass, but true/false is never a gram amount
    if isinstance(value, bool):
        raise InvalidNutrient(field, value)

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as exc:
            # JSON integers have no size limit
            raise InvalidNutrient(field, value) from exc
    elif isinstance(value, str) and _DECIMAL_RE.match(value.strip()):
        number = float(value.strip())
    else:
        raise InvalidNutrient(field, value)

    if not math.isfinite(number):
        raise InvalidNutrient(field, value)
    return number


def normalize(
    date: Any = None,
    proteins: Any = None,
    fats: Any = None,
    carbs: Any = None,
    *,
    today: Optional[Today] = None,
) -> PfcDelta:
    """Validate a request's date and nutrient deltas.

    Raises InvalidDate or InvalidNutrient (both InvalidInput). Negative
    deltas pass through untouched; flooring is the store's job.
    """
    return PfcDelta(
        date=parse_date(date, today=today),
        proteins=parse_nutrient("proteins", proteins),
        fats=parse_nutrient("fats", fats),
        carbs=parse_nutrient("carbs", carbs),
    )
