"""
Tests for the PollingService background loop.
"""

import threading
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from pricepulse.core.engine import EvaluationEngine
from pricepulse.core.exceptions import PriceUnavailable
from pricepulse.core.models import PriceQuote
from pricepulse.services import PollingService

from tests.conftest import make_signal


@pytest.fixture
def engine(source, history, signals, notifier, clock):
    return EvaluationEngine(source, history, signals, notifier, clock=clock)


class TestPollingService:
    """Tests for tick(), start() and stop()."""

    def test_tick_runs_one_cycle_per_asset(self, engine, source, signals):
        signals.add(make_signal())
        poller = PollingService(engine)

        poller.tick(["bitcoin", "ethereum"])

        assert source.calls == ["bitcoin", "ethereum"]
        assert poller.stats.cycles_run == 2
        assert poller.stats.signals_triggered == 1
        assert poller.stats.last_cycle_at is not None

    def test_tick_counts_failed_assets(self, history, signals, clock):
        source = MagicMock()

        def fetch(asset_id):
            if asset_id == "bad":
                raise PriceUnavailable(asset_id)
            return PriceQuote(asset_id=asset_id, price=Decimal("1"))

        source.fetch.side_effect = fetch
        poller = PollingService(EvaluationEngine(source, history, signals, clock=clock))

        poller.tick(["bitcoin", "bad"])

        assert poller.stats.cycles_run == 1
        assert poller.stats.cycles_failed == 1

    def test_start_and_stop(self, engine):
        poller = PollingService(engine)
        ticked = threading.Event()
        engine.on_cycle(lambda result: ticked.set())

        started = poller.start(["Bitcoin"], interval_sec=60)
        assert started == {"status": "started", "assets": ["bitcoin"]}
        assert poller.is_running
        assert ticked.wait(5)

        again = poller.start(["ethereum"])
        assert again["status"] == "already_running"

        stopped = poller.stop()
        assert stopped["status"] == "stopped"
        assert stopped["cycles_run"] >= 1
        assert not poller.is_running
        assert poller.stop() == {"status": "not_running"}

    def test_start_rejects_bad_input(self, engine):
        poller = PollingService(engine)

        assert poller.start([" "])["status"] == "error"
        assert poller.start(["bitcoin"], interval_sec=0)["status"] == "error"
        assert not poller.is_running

    def test_stats_dict(self, engine):
        poller = PollingService(engine)
        data = poller.stats.to_dict()

        assert data["is_running"] is False
        assert data["cycles_run"] == 0
        assert data["started_at"] is None
