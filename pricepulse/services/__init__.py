"""
Services
Adapters to the outside world and background workers.
"""

from .poller import PollerStats, PollingService
from .price_source import CoinGeckoPriceSource

__all__ = ["CoinGeckoPriceSource", "PollingService", "PollerStats"]
