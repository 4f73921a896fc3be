"""Report-ready webhook client with exponential backoff"""

import asyncio
import logging
from typing import Any, Dict

import httpx

from receivables_gateway.config import settings
from receivables_gateway.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter


def _is_retryable(error: Exception) -> bool:
    """Network failures and 5xx are transient; a 4xx will not fix itself"""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500
    return isinstance(error, httpx.RequestError)


class ReportWebhookClient:
    """Notifies export/storage adapters that a stored report is ready"""

    def __init__(self, webhook_url: str | None = None, max_retries: int | None = None):
        self.webhook_url = webhook_url or settings.report_webhook_url
        self.max_retries = max_retries or settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    def backoff_seconds(self, attempt: int) -> float:
        """base, 2*base, 4*base, ... for attempt 1, 2, 3, ..."""
        return self.backoff_base * (2 ** (attempt - 1))

    async def send_report_event(self, payload: Dict[str, Any]) -> None:
        """
        Deliver a report event, retrying transient failures.

        Raises:
            httpx.HTTPError: On a non-retryable response, or once retries run out
        """
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
            for attempt in range(1, self.max_retries + 1):
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                    return
                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    webhook_failure_counter.inc()
                    if attempt == self.max_retries or not _is_retryable(e):
                        logging.error(
                            f"Report webhook failed: {e}",
                            extra={"event": payload.get("event"), "attempt": attempt},
                        )
                        raise
                    await asyncio.sleep(self.backoff_seconds(attempt))
