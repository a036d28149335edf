"""
Analytics Output Types
Dataclasses for analytics results.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class MovingAverageReport:
    """
    Simple moving average over a trailing wall-clock window.

    Derived, never persisted. When the window holds no samples,
    sample_count is 0 and average is None: callers branch on
    insufficient_data before reading average.
    """
    asset_id: str
    window_hours: int
    average: Optional[Decimal]
    sample_count: int

    @property
    def insufficient_data(self) -> bool:
        return self.sample_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "time_window_hours": self.window_hours,
            "simple_moving_average": str(self.average) if self.average is not None else None,
            "data_points_used": self.sample_count,
            "insufficient_data": self.insufficient_data,
        }
