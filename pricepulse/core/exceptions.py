"""
Error Taxonomy
Every failure the engine reasons about is one of these.

Hierarchy:
    PricePulseError
    ├── PriceUnavailable     → source unreachable or unparsable, aborts the cycle
    ├── StoreUnavailable     → history/signal store read or write failed
    ├── CorruptSignal        → stored record breaks an invariant, skipped
    ├── AlreadyExists        → unique key taken (username)
    └── NotificationFailed   → alert delivery failed, logged only

"Insufficient data" for the moving average is NOT an error:
it is reported through MovingAverageReport.insufficient_data.
"""

from typing import Optional


class PricePulseError(Exception):
    """Base class for all engine errors"""


class PriceUnavailable(PricePulseError):
    """No consistent observed price could be established"""

    def __init__(self, asset_id: str, reason: str = ""):
        self.asset_id = asset_id
        self.reason = reason
        message = f"Price unavailable for {asset_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class StoreUnavailable(PricePulseError):
    """A history or signal store operation failed"""

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        self.reason = reason
        message = f"Store unavailable during {operation}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CorruptSignal(PricePulseError):
    """A stored signal violates its creation invariants"""

    def __init__(self, signal_id: str, reason: str):
        self.signal_id = signal_id
        self.reason = reason
        super().__init__(f"Corrupt signal {signal_id}: {reason}")


class AlreadyExists(PricePulseError):
    """A record with the same unique key is already stored"""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind.capitalize()} already exists: {key}")


class NotificationFailed(PricePulseError):
    """Alert delivery failed (never fatal)"""

    def __init__(self, address: str, reason: str = "", status_code: Optional[int] = None):
        self.address = address
        self.reason = reason
        self.status_code = status_code
        message = f"Notification to {address} failed"
        if status_code is not None:
            message = f"{message} (HTTP {status_code})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
