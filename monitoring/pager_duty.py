"""
monitoring/pager_duty.py - PagerDuty Events API v2 client.
"""

from typing import Optional

import httpx

from core.constants import DEFAULT_ALERT_SOURCE, DEFAULT_HTTP_TIMEOUT_SECONDS, PAGER_DUTY_EVENTS_URL
from core.exceptions import AlertDeliveryError


class PagerDutyClient:
    """Triggers one critical incident per call."""

    def __init__(
        self,
        source: str = DEFAULT_ALERT_SOURCE,
        events_url: str = PAGER_DUTY_EVENTS_URL,
        timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.source = source
        self.events_url = events_url
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        self._owns_client = client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send_alert(self, message: str, routing_key: str) -> None:
        """
        Trigger an incident.

        Raises:
            AlertDeliveryError: If PagerDuty could not be reached or refused the event
        """
        payload = {
            "routing_key": routing_key,
            "event_action": "trigger",
            "payload": {
                "summary": message,
                "severity": "critical",
                "source": self.source,
            },
        }
        try:
            resp = await self._client.post(self.events_url, json=payload)
        except httpx.HTTPError as e:
            raise AlertDeliveryError(f"PagerDuty unreachable: {e!r}") from e

        if resp.is_error:
            raise AlertDeliveryError(
                f"PagerDuty returned HTTP {resp.status_code}",
                details={"status": resp.status_code, "body": resp.text[:500]},
            )
