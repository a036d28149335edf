"""Port definitions for the engine's collaborators.

Responsibilities:
  - Define the contracts the engine calls (price source, stores, notifier).
Must not:
  - Implement logic; interfaces only.

Implementations raise from pricepulse.core.exceptions:
  PriceSource  → PriceUnavailable
  stores       → StoreUnavailable
  Notifier     → NotificationFailed
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from pricepulse.core.models import PriceQuote, PriceSample, Signal, SignalStatus


class PriceSource(Protocol):
    def fetch(self, asset_id: str) -> PriceQuote:
        ...


class PriceHistoryStore(Protocol):
    def append(self, sample: PriceSample) -> None:
        ...

    def query(self, asset_id: str, since: datetime) -> Sequence[PriceSample]:
        ...


class SignalStore(Protocol):
    def add(self, signal: Signal) -> Signal:
        ...

    def get(self, signal_id: str) -> Optional[Signal]:
        ...

    def query_active(self, asset_id: str) -> Sequence[Signal]:
        ...

    def query_by_owner(self, owner_id: str, status: Optional[SignalStatus] = None) -> Sequence[Signal]:
        ...

    def compare_and_set_status(self, signal_id: str, expected: SignalStatus, new: SignalStatus) -> bool:
        ...


class Notifier(Protocol):
    def send(self, address: str, subject: str, body: str, html_body: Optional[str] = None) -> None:
        ...
