"""
Polling Service
The in-process recurring trigger: runs a polling cycle for each watched
asset every `interval` seconds on a background thread.

Usage:
    poller = PollingService(engine)
    poller.start(["bitcoin", "ethereum"], interval_sec=60)
    # cycles run in the background
    poller.stop()

One worker thread means two cycles never overlap. There is no retry
inside a cycle: a failed asset is simply polled again on the next tick.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pricepulse.core.engine import EvaluationEngine
from pricepulse.core.models import CycleOptions, utcnow

logger = logging.getLogger(__name__)


@dataclass
class PollerStats:
    """Polling service statistics"""
    is_running: bool = False
    assets: List[str] = field(default_factory=list)
    interval_sec: float = 0.0
    cycles_run: int = 0
    cycles_failed: int = 0
    signals_triggered: int = 0
    last_cycle_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "assets": self.assets,
            "interval_sec": self.interval_sec,
            "cycles_run": self.cycles_run,
            "cycles_failed": self.cycles_failed,
            "signals_triggered": self.signals_triggered,
            "last_cycle_at": self.last_cycle_at.isoformat() if self.last_cycle_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "uptime_seconds": (utcnow() - self.started_at).total_seconds() if self.started_at else 0,
            "errors": self.errors,
        }


class PollingService:
    """Background thread that calls engine.run_cycles on a fixed interval"""

    def __init__(self, engine: EvaluationEngine, options: CycleOptions = CycleOptions()):
        self._engine = engine
        self._options = options
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._stats = PollerStats()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stats(self) -> PollerStats:
        return self._stats

    def start(self, assets: List[str], interval_sec: float = 60.0) -> Dict[str, Any]:
        """
        Start polling the given assets.

        Returns:
            Status dict
        """
        with self._lock:
            if self.is_running:
                return {"status": "already_running", "assets": self._stats.assets}

            assets = [a.lower().strip() for a in assets if a.strip()]
            if not assets:
                return {"status": "error", "message": "No assets provided"}
            if interval_sec <= 0:
                return {"status": "error", "message": "interval_sec must be positive"}

            self._stats = PollerStats(
                is_running=True,
                assets=assets,
                interval_sec=interval_sec,
                started_at=utcnow(),
            )
            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run, args=(assets, interval_sec), name="pricepulse-poller", daemon=True
            )
            self._thread.start()

        logger.info("Poller started for %s every %ss", ", ".join(assets), interval_sec)
        return {"status": "started", "assets": assets}

    def stop(self, timeout: float = 10.0) -> Dict[str, Any]:
        """Stop polling and wait for the in-flight cycle to finish"""
        with self._lock:
            if not self.is_running:
                return {"status": "not_running"}

            self._stop_event.set()
            self._thread.join(timeout)
            self._stats.is_running = False

        logger.info("Poller stopped after %d cycles", self._stats.cycles_run)
        return {
            "status": "stopped",
            "cycles_run": self._stats.cycles_run,
        }

    def tick(self, assets: List[str]) -> None:
        """Run one round of cycles (one per asset)"""
        results = self._engine.run_cycles(assets, self._options)
        for result in results.values():
            if result is None:
                self._stats.cycles_failed += 1
            else:
                self._stats.cycles_run += 1
                self._stats.signals_triggered += result.signals_triggered
        self._stats.last_cycle_at = utcnow()

    def _run(self, assets: List[str], interval_sec: float) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick(assets)
            except Exception:
                self._stats.errors += 1
                logger.exception("Polling round failed")
            self._stop_event.wait(interval_sec)
        self._stats.is_running = False
