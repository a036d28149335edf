import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Sequence

from pricepulse.analytics.models import MovingAverageReport
from pricepulse.analytics.moving_average import MovingAverageAggregator
from pricepulse.core.evaluator import SignalEvaluator
from pricepulse.core.exceptions import (
    CorruptSignal,
    PricePulseError,
    PriceUnavailable,
    StoreUnavailable,
)
from pricepulse.core.models import (
    CycleOptions,
    CycleResult,
    EvaluationOutcome,
    PriceSample,
    Signal,
    utcnow,
)
from pricepulse.core.ports import Notifier, PriceHistoryStore, PriceSource, SignalStore

logger = logging.getLogger(__name__)

OnCycleCallback = Callable[[CycleResult], None]


class EvaluationEngine:
    """
    Runs polling cycles: fetch price → record history → evaluate signals.

    Collaborators are injected; the engine holds no global state.
    Cycles for one asset are expected to be run sequentially by the caller.
    """

    def __init__(
        self,
        source: PriceSource,
        history: PriceHistoryStore,
        signals: SignalStore,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = utcnow,
        evaluation_workers: int = 1,
    ):
        self._source = source
        self._history = history
        self._signals = signals
        self._clock = clock
        self._evaluator = SignalEvaluator(signals, notifier)
        self._aggregator = MovingAverageAggregator(history, clock)
        self._workers = max(1, evaluation_workers)
        self._on_cycle: List[OnCycleCallback] = []
        self._stats_lock = threading.Lock()
        self._stats = {
            "cycles_run": 0,
            "cycles_failed": 0,
            "signals_evaluated": 0,
            "signals_triggered": 0,
            "signals_skipped": 0,
            "store_failures": 0,
            "notification_failures": 0,
            "start_time": self._clock(),
        }

    @property
    def signals(self) -> SignalStore:
        return self._signals

    @property
    def source(self) -> PriceSource:
        return self._source

    def run_cycle(self, asset_id: str, options: CycleOptions = CycleOptions()) -> CycleResult:
        """
        One evaluation pass for asset_id.

        Raises:
            PriceUnavailable: nothing was written, nothing evaluated
            StoreUnavailable: history append or active-signal load failed
        """
        asset_id = asset_id.strip().lower()
        try:
            price = self._fetch_price(asset_id)
            observed_at = self._clock()

            if options.record_history:
                self._record(asset_id, price, observed_at)

            result = CycleResult(asset_id=asset_id, observed_price=price, observed_at=observed_at)
            if options.evaluate_signals:
                active = self._load_active(asset_id)
                self._evaluate_all(active, price, options.notify, result)
        except PricePulseError:
            with self._stats_lock:
                self._stats["cycles_failed"] += 1
            raise

        # overlapping cycles (poller thread + HTTP threadpool) share these counters
        with self._stats_lock:
            self._stats["cycles_run"] += 1
            for key in ("signals_evaluated", "signals_triggered", "signals_skipped",
                        "store_failures", "notification_failures"):
                self._stats[key] += getattr(result, key)

        logger.info(
            "Cycle for %s at %s: %d evaluated, %d triggered, %d skipped, %d store failures",
            asset_id, price, result.signals_evaluated, result.signals_triggered,
            result.signals_skipped, result.store_failures,
        )

        for callback in self._on_cycle:
            try:
                callback(result)
            except Exception:
                logger.exception("Cycle callback failed")

        return result

    def run_cycles(self, asset_ids: Sequence[str], options: CycleOptions = CycleOptions()) -> Dict[str, Optional[CycleResult]]:
        """One cycle per asset; a failed asset maps to None and does not stop the others"""
        results: Dict[str, Optional[CycleResult]] = {}
        for asset_id in asset_ids:
            try:
                results[asset_id] = self.run_cycle(asset_id, options)
            except PricePulseError as e:
                logger.error("Cycle for %s aborted: %s", asset_id, e)
                results[asset_id] = None
        return results

    def average(self, asset_id: str, window_hours: int) -> MovingAverageReport:
        return self._aggregator.average(asset_id, window_hours)

    def on_cycle(self, callback: OnCycleCallback) -> None:
        self._on_cycle.append(callback)

    def stats(self) -> Dict[str, Any]:
        with self._stats_lock:
            counters = {k: v for k, v in self._stats.items() if k != "start_time"}
        uptime = (self._clock() - self._stats["start_time"]).total_seconds()
        return {
            **counters,
            "uptime_seconds": round(uptime, 2),
            "evaluation_workers": self._workers,
        }

    # =========================================================================
    # Cycle steps
    # =========================================================================

    def _fetch_price(self, asset_id: str) -> Decimal:
        try:
            quote = self._source.fetch(asset_id)
        except PriceUnavailable:
            raise
        except Exception as e:
            raise PriceUnavailable(asset_id, str(e)) from e

        raw = getattr(quote, "price", None)
        try:
            price = raw if isinstance(raw, Decimal) else Decimal(str(raw))
        except (InvalidOperation, ValueError) as e:
            raise PriceUnavailable(asset_id, f"unparsable price {raw!r}") from e
        if isinstance(raw, bool) or not price.is_finite() or price <= 0:
            raise PriceUnavailable(asset_id, f"invalid price {raw!r}")
        return price

    def _record(self, asset_id: str, price: Decimal, observed_at: datetime) -> None:
        sample = PriceSample(asset_id=asset_id, price=price, observed_at=observed_at)
        try:
            self._history.append(sample)
        except StoreUnavailable:
            raise
        except Exception as e:
            raise StoreUnavailable("history append", str(e)) from e

    def _load_active(self, asset_id: str) -> Sequence[Signal]:
        try:
            return list(self._signals.query_active(asset_id))
        except StoreUnavailable:
            raise
        except Exception as e:
            raise StoreUnavailable("active signal query", str(e)) from e

    def _evaluate_all(self, active: Sequence[Signal], price: Decimal, notify: bool, result: CycleResult) -> None:
        if not active:
            return

        if self._workers > 1 and len(active) > 1:
            with ThreadPoolExecutor(max_workers=min(self._workers, len(active))) as pool:
                outcomes = list(pool.map(lambda s: self._evaluate_one(s, price, notify), active))
        else:
            outcomes = [self._evaluate_one(s, price, notify) for s in active]

        for outcome in outcomes:
            if outcome.skipped:
                result.signals_skipped += 1
                continue
            result.signals_evaluated += 1
            if outcome.store_failed:
                result.store_failures += 1
            elif outcome.won:
                result.signals_triggered += 1
            if outcome.notification_failed:
                result.notification_failures += 1

    def _evaluate_one(self, signal: Signal, price: Decimal, notify: bool) -> EvaluationOutcome:
        """Evaluate one signal; its failures never escape to sibling signals"""
        try:
            return self._evaluator.evaluate(signal, price, notify=notify)
        except CorruptSignal as e:
            logger.warning("Skipping signal: %s", e)
            return EvaluationOutcome(signal_id=signal.id, fired=False, skipped=True)
        except Exception as e:
            logger.error("Status update failed for signal %s: %s", signal.id, e)
            return EvaluationOutcome(signal_id=signal.id, fired=True, store_failed=True)
