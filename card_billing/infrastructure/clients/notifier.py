"""Statement notification webhook client with exponential backoff retry logic"""

import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from card_billing.config import settings
from card_billing.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

logger = logging.getLogger(__name__)


class NotificationClient:
    """Client for sending statement events to the workspace notification webhook"""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self._sleep = sleep
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def send_event(self, payload: Dict[str, Any]) -> None:
        """
        Send an event to the webhook with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on HTTP status errors and network failures
        - Tracks latency histogram and failure counter

        Raises:
            httpx.HTTPError: After the last attempt fails
        """
        if not self.enabled:
            logger.debug("Notification webhook not configured, skipping event", extra={"event": payload.get("event")})
            return

        attempt = 0
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError):
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        # Final failure after all retries
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    self._sleep(backoff)

    def send_statement_closed(
        self,
        workspace_id: str,
        card_id: str,
        statement_id: str,
        last_four_digits: str,
        network: str,
        due_date: str,
        total_amount_cents: int,
    ) -> None:
        """Notify the workspace that a card statement was closed"""
        self.send_event(
            {
                "event": "STATEMENT_CLOSED",
                "workspace_id": workspace_id,
                "card_id": card_id,
                "statement_id": statement_id,
                "due_date": due_date,
                "total_amount_cents": total_amount_cents,
                "message": f"Statement closed for {network} card ending in {last_four_digits}. Due: {due_date}",
            }
        )
