"""
Alert Models
The human-readable message sent when a signal fires.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from pricepulse.core.models import Signal

_CENTS = Decimal("0.01")


def _fmt(value: Decimal, signed: bool = False) -> str:
    rounded = value.quantize(_CENTS, rounding=ROUND_HALF_UP)
    if signed and rounded > 0:
        return f"+{rounded}"
    return f"{rounded}"


@dataclass(frozen=True)
class AlertMessage:
    """
    A rendered price alert.

    Example:
        subject: "Price Alert for bitcoin"
        body:    "Alert for bitcoin! It moved by +3.03%. The new price is $68000.00."
    """
    address: str
    subject: str
    body: str
    html_body: str

    @classmethod
    def for_signal(cls, signal: Signal, percent_change: Decimal, observed_price: Decimal) -> "AlertMessage":
        """Render the alert for a fired signal"""
        change = _fmt(percent_change, signed=True)
        price = _fmt(observed_price)
        asset = signal.asset_id

        return cls(
            address=signal.contact_address,
            subject=f"Price Alert for {asset}",
            body=f"Alert for {asset}! It moved by {change}%. The new price is ${price}.",
            html_body=(
                f"<strong>Alert for {asset}!</strong> It moved by <strong>{change}%</strong>. "
                f"The new price is <strong>${price}</strong>."
            ),
        )
