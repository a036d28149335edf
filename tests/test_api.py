"""
Tests for the HTTP surface.

============================================================
PURPOSE
============================================================
- Endpoints wire through to the engine and stores
- Domain errors map to HTTP status codes (502 / 503 / 404 / 409)
============================================================
"""

import sqlite3
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pricepulse.alerts import LogNotifier, SendGridNotifier
from pricepulse.config import Settings
from pricepulse.db import SQLiteStorage
from pricepulse.main import build_notifier, create_app

from tests.conftest import FakePriceSource, corrupt


@pytest.fixture
def storage(tmp_path):
    return SQLiteStorage(db_path=str(tmp_path / "api.db"))


@pytest.fixture
def api_source():
    return FakePriceSource(price=Decimal("68000.00"))


@pytest.fixture
def mailer():
    return LogNotifier()


@pytest.fixture
def client(storage, api_source, mailer, tmp_path):
    settings = Settings(db_path=str(tmp_path / "api.db"), poll_autostart=False)
    app = create_app(settings, source=api_source, storage=storage, notifier=mailer)
    with TestClient(app) as c:
        yield c


def create_signal(client, email="alice@example.com", threshold="2.0", asset_id="bitcoin"):
    resp = client.post("/api/signals", json={
        "email": email,
        "asset_id": asset_id,
        "threshold_percent": threshold,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()["signal"]


# ============================================================
# SERVICE
# ============================================================

class TestService:
    def test_log_notifier_without_sendgrid_key(self, storage, api_source, tmp_path):
        settings = Settings(db_path=str(tmp_path / "api.db"), sendgrid_api_key="")
        app = create_app(settings, source=api_source, storage=storage)

        assert isinstance(app.state.notifier, LogNotifier)

    def test_sendgrid_with_key(self):
        notifier = build_notifier(Settings(sendgrid_api_key="SG.key", sendgrid_from_email="ops@example.com"))

        assert isinstance(notifier, SendGridNotifier)
        assert notifier.from_email == "ops@example.com"

    def test_root(self, client):
        assert client.get("/").json()["name"] == "PricePulse API"

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["poller"]["is_running"] is False


# ============================================================
# USERS & SIGNALS
# ============================================================

class TestUsers:
    def test_create_and_conflict(self, client):
        first = client.post("/api/users", json={"username": "alice"})
        assert first.status_code == 201
        assert first.json()["user"]["id"].startswith("usr_")

        second = client.post("/api/users", json={"username": "alice"})
        assert second.status_code == 409
        assert "alice" in second.json()["detail"]

    def test_empty_username_rejected(self, client):
        assert client.post("/api/users", json={"username": ""}).status_code == 422


class TestSignals:
    """Tests for /api/signals."""

    def test_create_uses_current_price_as_baseline(self, client, api_source):
        signal = create_signal(client)

        assert signal["baseline_price"] == "68000.00"
        assert signal["threshold_percent"] == "2.0"
        assert signal["status"] == "active"
        assert signal["owner_id"] == "alice@example.com"
        assert api_source.calls == ["bitcoin"]

    def test_get_and_list(self, client):
        signal = create_signal(client)

        got = client.get(f"/api/signals/{signal['id']}")
        assert got.status_code == 200
        assert got.json()["signal"]["id"] == signal["id"]

        listed = client.get("/api/signals", params={"owner": "alice@example.com"}).json()
        assert listed["count"] == 1

    def test_get_missing(self, client):
        assert client.get("/api/signals/sig_missing").status_code == 404

    @pytest.mark.parametrize("body", [
        {"email": "alice@example.com", "asset_id": "bitcoin", "threshold_percent": "0"},
        {"email": "alice@example.com", "asset_id": "bitcoin", "threshold_percent": "-1"},
        {"email": "not-an-email", "asset_id": "bitcoin", "threshold_percent": "2"},
        {"email": "alice@example.com", "asset_id": "", "threshold_percent": "2"},
    ])
    def test_invalid_request(self, client, body):
        assert client.post("/api/signals", json=body).status_code == 422

    def test_price_unavailable_is_502(self, client, api_source):
        api_source.fail = True
        resp = client.post("/api/signals", json={
            "email": "alice@example.com", "asset_id": "bitcoin", "threshold_percent": "2",
        })
        assert resp.status_code == 502


# ============================================================
# CYCLES
# ============================================================

class TestCollectData:
    """Tests for POST /api/collect-data."""

    def test_cycle_triggers_signal_and_notifies(self, client, api_source, mailer):
        signal = create_signal(client)
        api_source.price = Decimal("69400.00")

        resp = client.post("/api/collect-data", params={"asset": "bitcoin"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "data collected and signals checked"
        assert data["observed_price"] == "69400.00"
        assert data["signals_evaluated"] == 1
        assert data["signals_triggered"] == 1
        assert len(mailer.sent) == 1

        stored = client.get(f"/api/signals/{signal['id']}").json()["signal"]
        assert stored["status"] == "triggered"
        triggered = client.get("/api/signals", params={"owner": "alice@example.com", "status": "triggered"})
        assert triggered.json()["count"] == 1

    def test_second_cycle_does_not_refire(self, client, api_source, mailer):
        create_signal(client)
        api_source.price = Decimal("80000")

        client.post("/api/collect-data")
        second = client.post("/api/collect-data").json()

        assert second["signals_evaluated"] == 0
        assert len(mailer.sent) == 1

    def test_evaluate_false_only_records(self, client, api_source, storage):
        create_signal(client)
        api_source.price = Decimal("80000")

        data = client.post("/api/collect-data", params={"evaluate": "false"}).json()

        assert data["signals_evaluated"] == 0
        assert storage.get_stats()["sample_count"] == 1
        assert storage.get_stats()["active_signals"] == 1

    def test_price_unavailable_is_502(self, client, api_source, storage):
        api_source.fail = True
        assert client.post("/api/collect-data").status_code == 502
        assert storage.get_stats()["sample_count"] == 0

    def test_store_unavailable_is_503(self, client, storage):
        with sqlite3.connect(storage.db_path) as conn:
            conn.execute("DROP TABLE price_history")

        assert client.post("/api/collect-data").status_code == 503

    def test_engine_stats(self, client):
        client.post("/api/collect-data")
        stats = client.get("/api/engine/stats").json()
        assert stats["cycles_run"] == 1


# ============================================================
# ANALYSIS
# ============================================================

class TestAnalysis:
    def test_moving_average(self, client, api_source):
        client.post("/api/collect-data")
        api_source.price = Decimal("70000.00")
        client.post("/api/collect-data")

        data = client.get("/api/analysis", params={"asset": "bitcoin", "window_hours": 24}).json()

        assert Decimal(data["simple_moving_average"]) == Decimal("69000")
        assert data["data_points_used"] == 2
        assert data["time_window_hours"] == 24

    def test_no_data_is_404(self, client):
        assert client.get("/api/analysis", params={"asset": "ethereum"}).status_code == 404

    def test_unreadable_history_is_503(self, client, storage):
        client.post("/api/collect-data")
        corrupt(storage, "UPDATE price_history SET price = 'garbage'")

        assert client.get("/api/analysis", params={"asset": "bitcoin"}).status_code == 503

    def test_bad_window_is_422(self, client):
        assert client.get("/api/analysis", params={"window_hours": 0}).status_code == 422

    def test_owner_summary(self, client):
        create_signal(client)
        client.post("/api/collect-data")

        data = client.get("/api/owners/alice@example.com/summary").json()

        assert len(data["active_signals"]) == 1
        assert data["analysis"]["data_points_used"] == 1


class TestPollerEndpoints:
    def test_status_when_stopped(self, client):
        data = client.get("/api/poller/status").json()
        assert data["status"] == "stopped"

    def test_stop_when_not_running(self, client):
        assert client.post("/api/poller/stop").json()["status"] == "not_running"

    def test_start_then_stop(self, client):
        started = client.post("/api/poller/start", json={"assets": ["bitcoin"], "interval_sec": 3600})
        assert started.json()["status"] == "started"

        stopped = client.post("/api/poller/stop")
        assert stopped.json()["status"] == "stopped"
