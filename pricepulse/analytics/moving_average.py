"""
Moving Average
Unweighted mean of an asset's price history over a trailing window.

The window is relative to wall-clock time and samples are immutable,
so every call recomputes from the store. No incremental state.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional, Tuple

from pricepulse.analytics.models import MovingAverageReport
from pricepulse.core.models import PriceSample, utcnow
from pricepulse.core.ports import PriceHistoryStore


def simple_moving_average(prices: Iterable[Decimal]) -> Tuple[Optional[Decimal], int]:
    """
    Mean of prices using Decimal for both sum and division.

    Returns:
        (average, count); average is None when count is 0
    """
    total = Decimal(0)
    count = 0
    for price in prices:
        total += price
        count += 1
    if count == 0:
        return None, 0
    return total / Decimal(count), count


def in_window(sample: PriceSample, start: datetime, end: datetime) -> bool:
    """Closed interval [start, end]"""
    return start <= sample.observed_at <= end


class MovingAverageAggregator:
    """
    Usage:
        aggregator = MovingAverageAggregator(history)
        report = aggregator.average("bitcoin", window_hours=24)
        if not report.insufficient_data:
            print(report.average)
    """

    def __init__(self, history: PriceHistoryStore, clock: Callable[[], datetime] = utcnow):
        self._history = history
        self._clock = clock

    def average(self, asset_id: str, window_hours: int) -> MovingAverageReport:
        """
        Raises:
            ValueError: window_hours is not positive
            StoreUnavailable: history query failed
        """
        if window_hours <= 0:
            raise ValueError(f"window_hours must be positive, got {window_hours}")

        asset_id = asset_id.strip().lower()
        now = self._clock()
        start = now - timedelta(hours=window_hours)

        # Store filters by start; the end bound also drops samples stamped after now
        samples = self._history.query(asset_id, start)
        average, count = simple_moving_average(
            s.price for s in samples if in_window(s, start, now)
        )

        return MovingAverageReport(
            asset_id=asset_id,
            window_hours=window_hours,
            average=average,
            sample_count=count,
        )
