"""PFC API — /pfc endpoints: add to, subtract from and read a day's totals."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from pfc.db.ledger import LedgerStore, get_store
from pfc.models.entry import PfcDelta, PfcPayload, PfcResponse
from pfc.services.normalizer import normalize, parse_date

router = APIRouter(tags=["pfc"])


def _delta_from(payload: Optional[PfcPayload]) -> PfcDelta:
    payload = payload or PfcPayload()
    return normalize(
        date=payload.date,
        proteins=payload.proteins,
        fats=payload.fats,
        carbs=payload.carbs,
    )


@router.post("/pfc", status_code=205, response_class=Response)
async def add_pfc(
    payload: Optional[PfcPayload] = None,
    store: LedgerStore = Depends(get_store),
):
    """Add proteins/fats/carbs to a day's totals (today when date is omitted)."""
    delta = _delta_from(payload)
    await store.increment(delta)
    return Response(status_code=205)


@router.patch("/pfc", status_code=204, response_class=Response)
async def subtract_pfc(
    payload: Optional[PfcPayload] = None,
    store: LedgerStore = Depends(get_store),
):
    """Subtract from an existing day's totals; each column stops at zero."""
    delta = _delta_from(payload)
    await store.decrement(delta)
    return Response(status_code=204)


@router.get("/pfc", response_model=PfcResponse)
async def get_pfc(
    day: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today"),
    store: LedgerStore = Depends(get_store),
):
    totals = await store.get(parse_date(day))
    return PfcResponse.from_totals(totals)
