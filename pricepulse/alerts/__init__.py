"""
Alert Delivery
Rendering and sending of price alerts.

Structure:
    alerts/
    ├── models.py    → AlertMessage (subject + plain/HTML body)
    └── notifier.py  → SendGridNotifier, LogNotifier

Usage:
    from pricepulse.alerts import AlertMessage, SendGridNotifier

    message = AlertMessage.for_signal(signal, percent_change, price)
    notifier = SendGridNotifier(api_key, from_email)
    notifier.send(message.address, message.subject, message.body, message.html_body)
"""

from .models import AlertMessage
from .notifier import LogNotifier, SendGridNotifier

__all__ = [
    "AlertMessage",
    "SendGridNotifier",
    "LogNotifier",
]
