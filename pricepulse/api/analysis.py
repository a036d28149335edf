from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from pricepulse.api.deps import get_app_settings, get_engine, http_error
from pricepulse.config import Settings
from pricepulse.core.engine import EvaluationEngine
from pricepulse.core.exceptions import PricePulseError
from pricepulse.core.models import SignalStatus

router = APIRouter(tags=["Analysis"])


@router.get("/analysis")
async def analysis(
    asset: Optional[str] = Query(default=None),
    window_hours: Optional[int] = Query(default=None, gt=0, le=24 * 365),
    engine: EvaluationEngine = Depends(get_engine),
    settings: Settings = Depends(get_app_settings),
):
    try:
        report = engine.average(asset or settings.default_asset, window_hours or settings.default_window_hours)
    except PricePulseError as e:
        raise http_error(e)

    if report.insufficient_data:
        raise HTTPException(404, f"Not enough data for analysis of {report.asset_id} "
                                 f"in the last {report.window_hours}h")

    return report.to_dict()


@router.get("/owners/{owner}/summary")
async def owner_summary(
    owner: str,
    asset: Optional[str] = Query(default=None),
    window_hours: Optional[int] = Query(default=None, gt=0, le=24 * 365),
    engine: EvaluationEngine = Depends(get_engine),
    settings: Settings = Depends(get_app_settings),
):
    """An owner's active signals plus the moving average for one asset"""
    try:
        active = engine.signals.query_by_owner(owner, SignalStatus.ACTIVE)
        report = engine.average(asset or settings.default_asset, window_hours or settings.default_window_hours)
    except PricePulseError as e:
        raise http_error(e)

    return {
        "owner": owner,
        "active_signals": [s.to_dict() for s in active],
        "analysis": report.to_dict(),
    }
