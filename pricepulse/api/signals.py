"""
Signals API
Create and inspect price signals.

Endpoints:
    POST /api/signals              → Create signal (baseline = current price)
    GET  /api/signals?owner=...    → List an owner's signals
    GET  /api/signals/{id}         → Get signal by ID
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from pricepulse.api.deps import get_engine, http_error
from pricepulse.core.engine import EvaluationEngine
from pricepulse.core.exceptions import PricePulseError
from pricepulse.core.models import Signal, SignalStatus

router = APIRouter(prefix="/signals", tags=["Signals"])


class CreateSignalRequest(BaseModel):
    """Request body for creating a signal"""
    email: str
    asset_id: str = Field(..., min_length=1)
    threshold_percent: Decimal = Field(..., gt=0)
    owner_id: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "user@example.com",
                "asset_id": "bitcoin",
                "threshold_percent": "2.0",
            }
        }
    }

    @field_validator('email')
    @classmethod
    def looks_like_email(cls, v: str) -> str:
        v = v.strip()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("email must be an email address")
        return v


@router.post("", status_code=201)
def create_signal(request: CreateSignalRequest, engine: EvaluationEngine = Depends(get_engine)):
    """
    Create a signal. The current price becomes its baseline.
    """
    try:
        quote = engine.source.fetch(request.asset_id)
        signal = Signal.new(
            owner_id=request.owner_id or request.email,
            contact_address=request.email,
            asset_id=request.asset_id,
            threshold_percent=request.threshold_percent,
            baseline_price=quote.price,
        )
        engine.signals.add(signal)
    except PricePulseError as e:
        raise http_error(e)

    return {
        "status": "signal created",
        "signal": signal.to_dict(),
    }


@router.get("")
async def list_signals(
    owner: str = Query(..., min_length=1),
    status: Optional[SignalStatus] = Query(default=None),
    engine: EvaluationEngine = Depends(get_engine),
):
    """List an owner's signals, optionally filtered by status"""
    try:
        signals = engine.signals.query_by_owner(owner, status)
    except PricePulseError as e:
        raise http_error(e)

    return {
        "owner": owner,
        "count": len(signals),
        "signals": [s.to_dict() for s in signals],
    }


@router.get("/{signal_id}")
async def get_signal(signal_id: str, engine: EvaluationEngine = Depends(get_engine)):
    try:
        signal = engine.signals.get(signal_id)
    except PricePulseError as e:
        raise http_error(e)

    if not signal:
        raise HTTPException(404, f"Signal not found: {signal_id}")

    return {"signal": signal.to_dict()}
