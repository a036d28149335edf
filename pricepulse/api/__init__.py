"""
API Routers
"""
from .analysis import router as analysis_router
from .cycles import router as cycles_router
from .poller import router as poller_router
from .signals import router as signals_router
from .users import router as users_router

__all__ = ["analysis_router", "cycles_router", "poller_router", "signals_router", "users_router"]
