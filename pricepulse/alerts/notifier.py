"""
Notifiers
Delivery of rendered alerts. Always best-effort from the engine's view.

    SendGridNotifier → email through the SendGrid v3 mail API
    LogNotifier      → writes the alert to the log (local runs, dry runs)
"""

import logging
from typing import List, Optional

import requests

from pricepulse.core.exceptions import NotificationFailed

logger = logging.getLogger(__name__)


class SendGridNotifier:
    """
    Email notifier.

    Without an API key, sends are skipped with a log line instead of
    failing: a deployment without mail configured still evaluates signals.
    """

    API_URL = "https://api.sendgrid.com/v3/mail/send"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str = "PricePulse",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, address: str, subject: str, body: str, html_body: Optional[str] = None) -> None:
        """
        Raises:
            NotificationFailed: transport error, timeout or HTTP >= 400
        """
        if not self.enabled:
            logger.info("SendGrid API key not set. Skipping email notification to %s", address)
            return

        content = [{"type": "text/plain", "value": body}]
        if html_body:
            content.append({"type": "text/html", "value": html_body})

        payload = {
            "personalizations": [{"to": [{"email": address, "name": "Valued User"}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": content,
        }

        try:
            resp = self.session.post(
                self.API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NotificationFailed(address, str(e)) from e

        if resp.status_code >= 400:
            raise NotificationFailed(address, resp.text[:200], status_code=resp.status_code)

        logger.info("Email sent successfully to %s", address)


class LogNotifier:
    """Writes alerts to the log and keeps them for inspection"""

    def __init__(self, keep: int = 100):
        self.keep = keep
        self.sent: List[dict] = []

    def send(self, address: str, subject: str, body: str, html_body: Optional[str] = None) -> None:
        logger.warning("ALERT to %s | %s | %s", address, subject, body)
        self.sent.append({"address": address, "subject": subject, "body": body})
        if len(self.sent) > self.keep:
            del self.sent[0]
