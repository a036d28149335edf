"""
In-Memory Stores
Fast, asset-keyed storage with the same contracts as SQLiteStorage.

Purpose:
- Tests and local runs without a database file
- Single-process deployments where history loss on restart is acceptable

This is NOT DURABLE. Status transitions are serialized by a lock,
so compare_and_set_status has the same at-most-once guarantee as SQL.
"""

import threading
from collections import deque
from datetime import datetime
from typing import Dict, List, Optional

from pricepulse.core.models import PriceSample, Signal, SignalStatus


class MemoryPriceHistory:
    """
    In-memory price history.

    - Per-asset deques with optional eviction
    - O(1) append

    Usage:
        history = MemoryPriceHistory()
        history.append(sample)
        recent = history.query("bitcoin", since)
    """

    def __init__(self, maxlen: Optional[int] = None):
        self.maxlen = maxlen
        self._data: Dict[str, deque] = {}
        self._lock = threading.Lock()
        self._count: int = 0

    def append(self, sample: PriceSample) -> None:
        with self._lock:
            if sample.asset_id not in self._data:
                self._data[sample.asset_id] = deque(maxlen=self.maxlen)
            self._data[sample.asset_id].append(sample)
            self._count += 1

    def query(self, asset_id: str, since: datetime) -> List[PriceSample]:
        """Samples with observed_at >= since, oldest first"""
        with self._lock:
            samples = list(self._data.get(asset_id, ()))
        return sorted(
            (s for s in samples if s.observed_at >= since),
            key=lambda s: s.observed_at,
        )

    def assets(self) -> List[str]:
        return list(self._data.keys())

    def count(self, asset_id: str = None) -> int:
        if asset_id:
            return len(self._data.get(asset_id, ()))
        return self._count


class MemorySignalStore:
    """
    In-memory signal store.

    Signals are immutable models; a status change replaces the record.
    """

    def __init__(self):
        self._signals: Dict[str, Signal] = {}
        self._lock = threading.Lock()

    def add(self, signal: Signal) -> Signal:
        with self._lock:
            if signal.id in self._signals:
                raise ValueError(f"Signal already exists: {signal.id}")
            self._signals[signal.id] = signal
        return signal

    def get(self, signal_id: str) -> Optional[Signal]:
        return self._signals.get(signal_id)

    def query_active(self, asset_id: str) -> List[Signal]:
        with self._lock:
            return [
                s for s in self._signals.values()
                if s.asset_id == asset_id and s.status == SignalStatus.ACTIVE
            ]

    def query_by_owner(self, owner_id: str, status: Optional[SignalStatus] = None) -> List[Signal]:
        with self._lock:
            return [
                s for s in self._signals.values()
                if s.owner_id == owner_id and (status is None or s.status == status)
            ]

    def compare_and_set_status(self, signal_id: str, expected: SignalStatus, new: SignalStatus) -> bool:
        with self._lock:
            current = self._signals.get(signal_id)
            if current is None or current.status != expected:
                return False
            self._signals[signal_id] = current.model_copy(update={"status": new})
            return True
