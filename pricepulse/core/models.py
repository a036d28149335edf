"""
Domain Models
The SINGLE SOURCE OF TRUTH for data formats.

Adapters (price source, stores, HTTP) convert to these types at the boundary.
The engine never sees JSON bodies, SQL rows or raw provider payloads.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Timezone-aware current time (all stored timestamps are UTC)"""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# Signal Status
# =============================================================================

class SignalStatus(str, Enum):
    """Lifecycle of a signal: Active → Triggered, never back"""
    ACTIVE = "active"
    TRIGGERED = "triggered"


# =============================================================================
# PriceQuote — What a PriceSource adapter returns
# =============================================================================

class PriceQuote(BaseModel):
    """
    A validated price observation from an external source.

    Replaces the provider's nested {asset: {currency: value}} payload.
    A quote that exists is always a positive, finite decimal.
    """
    model_config = ConfigDict(frozen=True)

    asset_id: str = Field(..., min_length=1)
    currency: str = "usd"
    price: Decimal = Field(..., gt=0)

    @field_validator('asset_id', 'currency', mode='before')
    @classmethod
    def lowercase(cls, v):
        """Provider ids are lowercase"""
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator('price', mode='before')
    @classmethod
    def reject_bool(cls, v):
        # bool is an int subclass; True must not become a price of 1
        if isinstance(v, bool):
            raise ValueError("price must be a number")
        return v


# =============================================================================
# PriceSample — One row of price history
# =============================================================================

class PriceSample(BaseModel):
    """Immutable (asset, price, timestamp) sample. Ordered by observed_at."""
    model_config = ConfigDict(frozen=True)

    asset_id: str = Field(..., min_length=1)
    price: Decimal = Field(..., gt=0)
    observed_at: datetime

    @field_validator('observed_at')
    @classmethod
    def normalize_ts(cls, v: datetime) -> datetime:
        return _as_utc(v)


# =============================================================================
# Signal — A persisted watch request
# =============================================================================

class Signal(BaseModel):
    """
    A watch on one asset's price relative to its baseline.

    baseline_price and threshold_percent are unconstrained here (NaN included):
    records read back from a store must load even when corrupt, so the
    evaluator can report them as CorruptSignal instead of the whole query
    failing. New signals are built through Signal.new(), which enforces
    both > 0.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    contact_address: str
    asset_id: str
    threshold_percent: Decimal = Field(..., allow_inf_nan=True)
    baseline_price: Decimal = Field(..., allow_inf_nan=True)
    status: SignalStatus = SignalStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator('created_at')
    @classmethod
    def normalize_ts(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @classmethod
    def new(
        cls,
        owner_id: str,
        contact_address: str,
        asset_id: str,
        threshold_percent: Decimal,
        baseline_price: Decimal,
        created_at: Optional[datetime] = None,
    ) -> "Signal":
        """Create a fresh Active signal, enforcing creation invariants"""
        threshold_percent = Decimal(str(threshold_percent))
        baseline_price = Decimal(str(baseline_price))
        if not threshold_percent.is_finite() or threshold_percent <= 0:
            raise ValueError("threshold_percent must be > 0")
        if not baseline_price.is_finite() or baseline_price <= 0:
            raise ValueError("baseline_price must be > 0")
        return cls(
            id=f"sig_{uuid.uuid4().hex[:12]}",
            owner_id=owner_id,
            contact_address=contact_address,
            asset_id=asset_id.strip().lower(),
            threshold_percent=threshold_percent,
            baseline_price=baseline_price,
            status=SignalStatus.ACTIVE,
            created_at=created_at or utcnow(),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "contact_address": self.contact_address,
            "asset_id": self.asset_id,
            "threshold_percent": str(self.threshold_percent),
            "baseline_price": str(self.baseline_price),
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }


# =============================================================================
# User
# =============================================================================

class User(BaseModel):
    """Minimal user record. No credentials, no auth."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"usr_{uuid.uuid4().hex[:12]}")
    username: str = Field(..., min_length=1, max_length=100)
    created_at: datetime = Field(default_factory=utcnow)


# =============================================================================
# Engine Results
# =============================================================================

@dataclass(frozen=True)
class CycleOptions:
    """
    Which steps of a polling cycle are enabled.

    One engine, parameterized, instead of a handler per combination.
    """
    record_history: bool = True
    evaluate_signals: bool = True
    notify: bool = True


@dataclass(frozen=True)
class EvaluationOutcome:
    """Result of evaluating one signal against one price"""
    signal_id: str
    fired: bool
    percent_change: Optional[Decimal] = None
    notified: bool = False
    notification_failed: bool = False
    persisted: bool = False
    won: bool = False  # this call moved the record out of Active
    skipped: bool = False
    store_failed: bool = False


class CycleResult(BaseModel):
    """Aggregate counts for one polling cycle"""
    asset_id: str
    observed_price: Decimal
    observed_at: datetime
    signals_evaluated: int = 0
    signals_triggered: int = 0
    signals_skipped: int = 0
    store_failures: int = 0
    notification_failures: int = 0

    def to_dict(self) -> dict:
        return {
            "asset_id": self.asset_id,
            "observed_price": str(self.observed_price),
            "observed_at": self.observed_at.isoformat(),
            "signals_evaluated": self.signals_evaluated,
            "signals_triggered": self.signals_triggered,
            "signals_skipped": self.signals_skipped,
            "store_failures": self.store_failures,
            "notification_failures": self.notification_failures,
        }
