"""
Request-scoped access to the collaborators wired by create_app().
"""

from fastapi import HTTPException, Request

from pricepulse.config import Settings
from pricepulse.core.engine import EvaluationEngine
from pricepulse.core.exceptions import AlreadyExists, PriceUnavailable, StoreUnavailable
from pricepulse.db import SQLiteStorage
from pricepulse.services import PollingService


def get_engine(request: Request) -> EvaluationEngine:
    return request.app.state.engine


def get_storage(request: Request) -> SQLiteStorage:
    return request.app.state.storage


def get_poller(request: Request) -> PollingService:
    return request.app.state.poller


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def http_error(e: Exception) -> HTTPException:
    """Map engine errors onto HTTP status codes"""
    if isinstance(e, PriceUnavailable):
        return HTTPException(502, str(e))
    if isinstance(e, StoreUnavailable):
        return HTTPException(503, str(e))
    if isinstance(e, AlreadyExists):
        return HTTPException(409, str(e))
    return HTTPException(500, str(e))
