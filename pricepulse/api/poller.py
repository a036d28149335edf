"""
Poller API
Endpoints to control the in-process polling loop.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from pricepulse.api.deps import get_app_settings, get_poller
from pricepulse.config import Settings
from pricepulse.services import PollingService

router = APIRouter(prefix="/poller", tags=["Poller"])


class StartPollerRequest(BaseModel):
    """Request to start polling"""
    assets: Optional[List[str]] = None
    interval_sec: Optional[float] = Field(default=None, gt=0)


class PollerResponse(BaseModel):
    """Response for poller operations"""
    status: str
    assets: Optional[List[str]] = None
    message: Optional[str] = None
    cycles_run: Optional[int] = None


@router.post("/start", response_model=PollerResponse)
async def start_poller(
    request: StartPollerRequest,
    poller: PollingService = Depends(get_poller),
    settings: Settings = Depends(get_app_settings),
):
    """Start polling; assets and interval default to settings"""
    return poller.start(
        request.assets or settings.poll_assets,
        request.interval_sec or settings.poll_interval_sec,
    )


@router.post("/stop", response_model=PollerResponse)
def stop_poller(poller: PollingService = Depends(get_poller)):
    return poller.stop()


@router.get("/status")
async def poller_status(poller: PollingService = Depends(get_poller)):
    return {
        "status": "running" if poller.is_running else "stopped",
        **poller.stats.to_dict(),
    }
