"""
Analytics Module
Aggregations over recorded price history.

Structure:
    analytics/
    ├── models.py          → Output types (dataclasses)
    └── moving_average.py  → Simple moving average over a trailing window

Usage:
    from pricepulse.analytics import MovingAverageAggregator

    report = MovingAverageAggregator(history).average("bitcoin", 24)
    if report.insufficient_data:
        ...

Design Principles:
    ✓ simple_moving_average is PURE (inputs → computation → outputs)
    ✓ NO cached state: every report is recomputed from the store
"""

from .models import MovingAverageReport
from .moving_average import MovingAverageAggregator, simple_moving_average

__all__ = [
    "MovingAverageReport",
    "MovingAverageAggregator",
    "simple_moving_average",
]
