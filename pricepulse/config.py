"""
Settings
Read from environment variables (prefix PRICEPULSE_) and an optional .env file.

    PRICEPULSE_DB_PATH=data/pricepulse.db
    PRICEPULSE_SENDGRID_API_KEY=...
    PRICEPULSE_POLL_ASSETS='["bitcoin","ethereum"]'
"""

import logging
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PRICEPULSE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # storage
    db_path: str = "data/pricepulse.db"
    db_timeout_sec: float = 5.0

    # price source
    coingecko_url: str = "https://api.coingecko.com/api/v3"
    currency: str = "usd"
    default_asset: str = "bitcoin"
    price_timeout_sec: float = Field(default=10.0, gt=0)

    # notifications
    sendgrid_api_key: str = ""
    sendgrid_from_email: str = "alerts@pricepulse.local"
    sendgrid_from_name: str = "PricePulse"
    notify_timeout_sec: float = Field(default=10.0, gt=0)

    # engine
    evaluation_workers: int = Field(default=1, ge=1)
    default_window_hours: int = Field(default=24, gt=0)

    # poller
    poll_assets: List[str] = ["bitcoin"]
    poll_interval_sec: float = Field(default=60.0, gt=0)
    poll_autostart: bool = False

    # server
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup, called once at app start"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
