"""
Shared fixtures and fakes for PricePulse tests.
"""

import sqlite3
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

import pytest

from pricepulse.core.exceptions import PriceUnavailable
from pricepulse.core.models import PriceQuote, Signal, SignalStatus
from pricepulse.db import MemoryPriceHistory, MemorySignalStore


NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================
# FAKES
# ============================================================

class FakePriceSource:
    """Returns a fixed price, or raises PriceUnavailable when failing"""

    def __init__(self, price: Optional[Decimal] = Decimal("68000.00"), fail: bool = False):
        self.price = price
        self.fail = fail
        self.calls: List[str] = []

    def fetch(self, asset_id: str) -> PriceQuote:
        self.calls.append(asset_id)
        if self.fail:
            raise PriceUnavailable(asset_id, "provider down")
        return PriceQuote(asset_id=asset_id, currency="usd", price=self.price)


class RecordingNotifier:
    """Keeps every message it is asked to send"""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.sent: List[dict] = []

    def send(self, address, subject, body, html_body=None):
        self.sent.append({"address": address, "subject": subject, "body": body, "html_body": html_body})
        if self.error:
            raise self.error


def make_signal(
    baseline: str = "66000.00",
    threshold: str = "2.0",
    asset_id: str = "bitcoin",
    owner: str = "alice@example.com",
    status: SignalStatus = SignalStatus.ACTIVE,
    signal_id: Optional[str] = None,
) -> Signal:
    """Build a signal directly, bypassing Signal.new() validation (for corrupt records)"""
    return Signal(
        id=signal_id or f"sig_{owner.split('@')[0]}_{baseline}_{threshold}",
        owner_id=owner,
        contact_address=owner,
        asset_id=asset_id,
        threshold_percent=Decimal(threshold),
        baseline_price=Decimal(baseline),
        status=status,
        created_at=NOW,
    )


def corrupt(storage, sql: str) -> None:
    """Write directly to a SQLite store's file, bypassing model validation"""
    conn = sqlite3.connect(storage.db_path)
    try:
        with conn:
            conn.execute(sql)
    finally:
        conn.close()


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def history():
    return MemoryPriceHistory()


@pytest.fixture
def signals():
    return MemorySignalStore()


@pytest.fixture
def source():
    return FakePriceSource()


@pytest.fixture
def notifier():
    return RecordingNotifier()
