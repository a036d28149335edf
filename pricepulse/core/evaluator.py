import logging
from decimal import Decimal
from typing import Optional

from pricepulse.alerts.models import AlertMessage
from pricepulse.core.exceptions import CorruptSignal, NotificationFailed
from pricepulse.core.models import EvaluationOutcome, Signal, SignalStatus
from pricepulse.core.ports import Notifier, SignalStore

logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)


def percent_change(baseline_price: Decimal, observed_price: Decimal) -> Decimal:
    """
    Signed percentage move from baseline to observed.

    pct = (observed - baseline) / baseline * 100
    """
    return (observed_price - baseline_price) / baseline_price * _HUNDRED


def should_fire(change: Decimal, threshold_percent: Decimal) -> bool:
    """Boundary inclusive: a move of exactly the threshold fires"""
    return abs(change) >= threshold_percent


class SignalEvaluator:
    """
    Decides whether one Active signal fires against one observed price,
    and applies the Active → Triggered transition.

    Order on fire is notify THEN persist: a failed status write must not
    swallow an alert. A retried cycle may notify twice; the final state is
    written at most once (compare-and-set on status == Active).
    """

    def __init__(self, signals: SignalStore, notifier: Optional[Notifier] = None):
        self._signals = signals
        self._notifier = notifier

    def evaluate(self, signal: Signal, observed_price: Decimal, notify: bool = True) -> EvaluationOutcome:
        """
        Raises:
            CorruptSignal: baseline is zero/negative or threshold invalid
            StoreUnavailable: the status write failed (propagated to the cycle)
        """
        if signal.status != SignalStatus.ACTIVE:
            return EvaluationOutcome(signal_id=signal.id, fired=False)

        self._check_invariants(signal)

        change = percent_change(signal.baseline_price, observed_price)
        logger.debug(
            "Checking signal %s (owner %s, %s): change %.2f%%, threshold %s%%",
            signal.id, signal.owner_id, signal.asset_id, change, signal.threshold_percent,
        )

        if not should_fire(change, signal.threshold_percent):
            return EvaluationOutcome(signal_id=signal.id, fired=False, percent_change=change)

        logger.info(
            "Signal %s triggered for owner %s: %s moved %.2f%%",
            signal.id, signal.owner_id, signal.asset_id, change,
        )

        notified = False
        notification_failed = False
        if notify and self._notifier is not None:
            notified = self._notify(signal, change, observed_price)
            notification_failed = not notified

        won = self._signals.compare_and_set_status(signal.id, SignalStatus.ACTIVE, SignalStatus.TRIGGERED)
        if not won:
            logger.info("Signal %s already triggered by another cycle", signal.id)

        return EvaluationOutcome(
            signal_id=signal.id,
            fired=True,
            percent_change=change,
            notified=notified,
            notification_failed=notification_failed,
            persisted=True,
            won=won,
        )

    def _check_invariants(self, signal: Signal) -> None:
        baseline = signal.baseline_price
        if not baseline.is_finite() or baseline <= 0:
            raise CorruptSignal(signal.id, f"baseline_price must be > 0, got {baseline}")
        threshold = signal.threshold_percent
        if not threshold.is_finite() or threshold <= 0:
            raise CorruptSignal(signal.id, f"threshold_percent must be > 0, got {threshold}")

    def _notify(self, signal: Signal, change: Decimal, observed_price: Decimal) -> bool:
        """Best-effort delivery. Never raises."""
        message = AlertMessage.for_signal(signal, change, observed_price)
        try:
            self._notifier.send(message.address, message.subject, message.body, message.html_body)
        except NotificationFailed as e:
            logger.warning("Alert for signal %s not delivered: %s", signal.id, e)
            return False
        except Exception:
            logger.exception("Unexpected notifier error for signal %s", signal.id)
            return False
        return True
