"""
Cycle API
The endpoint an external scheduler calls to run one polling cycle.

Endpoints:
    POST /api/collect-data?asset=bitcoin  → Run one cycle
    GET  /api/engine/stats                → Engine counters
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from pricepulse.api.deps import get_app_settings, get_engine, http_error
from pricepulse.config import Settings
from pricepulse.core.engine import EvaluationEngine
from pricepulse.core.exceptions import PricePulseError
from pricepulse.core.models import CycleOptions

router = APIRouter(tags=["Cycles"])


@router.post("/collect-data")
def collect_data(
    asset: Optional[str] = Query(default=None),
    evaluate: bool = Query(default=True),
    notify: bool = Query(default=True),
    engine: EvaluationEngine = Depends(get_engine),
    settings: Settings = Depends(get_app_settings),
):
    """
    Fetch the current price, record it and check active signals.

    evaluate=false only records the sample; notify=false transitions
    fired signals without sending mail.
    """
    options = CycleOptions(evaluate_signals=evaluate, notify=notify)
    try:
        result = engine.run_cycle(asset or settings.default_asset, options)
    except PricePulseError as e:
        raise http_error(e)

    return {
        "status": "data collected and signals checked",
        **result.to_dict(),
    }


@router.get("/engine/stats")
async def engine_stats(engine: EvaluationEngine = Depends(get_engine)):
    return engine.stats()
