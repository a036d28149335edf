import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from pricepulse import __version__
from pricepulse.alerts import LogNotifier, SendGridNotifier
from pricepulse.api import (
    analysis_router,
    cycles_router,
    poller_router,
    signals_router,
    users_router,
)
from pricepulse.config import Settings, configure_logging, get_settings
from pricepulse.core.engine import EvaluationEngine
from pricepulse.core.models import utcnow
from pricepulse.core.ports import Notifier, PriceSource
from pricepulse.db import SQLiteStorage
from pricepulse.services import CoinGeckoPriceSource, PollingService

logger = logging.getLogger(__name__)


def build_notifier(settings: Settings) -> Notifier:
    """SendGrid when an API key is configured, otherwise alerts go to the log"""
    if not settings.sendgrid_api_key:
        logger.warning("PRICEPULSE_SENDGRID_API_KEY not set, alerts will only be logged")
        return LogNotifier()
    return SendGridNotifier(
        api_key=settings.sendgrid_api_key,
        from_email=settings.sendgrid_from_email,
        from_name=settings.sendgrid_from_name,
        timeout=settings.notify_timeout_sec,
    )


def create_app(
    settings: Optional[Settings] = None,
    source: Optional[PriceSource] = None,
    storage: Optional[SQLiteStorage] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """
    Wire collaborators and build the app.

    Anything not passed in is built from settings.
    """
    settings = settings or get_settings()
    storage = storage or SQLiteStorage(settings.db_path, timeout=settings.db_timeout_sec)
    source = source or CoinGeckoPriceSource(
        base_url=settings.coingecko_url,
        currency=settings.currency,
        timeout=settings.price_timeout_sec,
    )
    notifier = notifier or build_notifier(settings)
    engine = EvaluationEngine(
        source=source,
        history=storage,
        signals=storage,
        notifier=notifier,
        evaluation_workers=settings.evaluation_workers,
    )
    poller = PollingService(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.poll_autostart:
            poller.start(settings.poll_assets, settings.poll_interval_sec)
        yield
        if poller.is_running:
            poller.stop()

    app = FastAPI(
        title="PricePulse API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.engine = engine
    app.state.poller = poller
    app.state.notifier = notifier

    app.include_router(users_router, prefix="/api")
    app.include_router(signals_router, prefix="/api")
    app.include_router(cycles_router, prefix="/api")
    app.include_router(analysis_router, prefix="/api")
    app.include_router(poller_router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "name": "PricePulse API",
            "version": __version__,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "time": utcnow().isoformat(),
            "engine": engine.stats(),
            "poller": {
                "is_running": poller.is_running,
                "assets": poller.stats.assets,
                "cycles_run": poller.stats.cycles_run,
            },
        }

    return app


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Server starting on %s:%s", settings.host, settings.port)

    import uvicorn
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
