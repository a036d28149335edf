"""
Core Module
Domain models and error taxonomy of the signal evaluation engine.

Exports:
    Models: PriceQuote, PriceSample, Signal, SignalStatus, User,
            CycleOptions, CycleResult, EvaluationOutcome
    Errors: PricePulseError, PriceUnavailable, StoreUnavailable,
            CorruptSignal, AlreadyExists, NotificationFailed

The engine itself lives in submodules that depend on analytics/ and alerts/:
    from pricepulse.core.engine import EvaluationEngine
    from pricepulse.core.evaluator import SignalEvaluator
"""

from .models import (
    PriceQuote,
    PriceSample,
    Signal,
    SignalStatus,
    User,
    CycleOptions,
    CycleResult,
    EvaluationOutcome,
    utcnow,
)

from .exceptions import (
    PricePulseError,
    PriceUnavailable,
    StoreUnavailable,
    CorruptSignal,
    AlreadyExists,
    NotificationFailed,
)

__all__ = [
    # Models
    "PriceQuote",
    "PriceSample",
    "Signal",
    "SignalStatus",
    "User",
    "CycleOptions",
    "CycleResult",
    "EvaluationOutcome",
    "utcnow",
    # Errors
    "PricePulseError",
    "PriceUnavailable",
    "StoreUnavailable",
    "CorruptSignal",
    "AlreadyExists",
    "NotificationFailed",
]
