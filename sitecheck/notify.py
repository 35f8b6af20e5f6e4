"""
Notifications. Down alert and up-again alert rendered as one line each,
posted to a Slack incoming webhook with httpx. Failures raise DeliveryError;
the monitor logs and drops them (never retried).
LogNotifier writes the same text to the log instead (dry run).
"""
import logging
from typing import Optional

import httpx

from sitecheck.state import EventKind, NotificationEvent

logger = logging.getLogger("sitecheck.notify")


class DeliveryError(Exception):
    pass


def render_message(event: NotificationEvent, identifier: str, interval: int) -> str:
    seconds = event.count * interval
    if event.kind is EventKind.DOWN_ALERT:
        return f"[{identifier}] {event.endpoint} is DOWN ({seconds} seconds) :("
    return f"[{identifier}] {event.endpoint} is UP again after {seconds} seconds!"


class SlackNotifier:
    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.webhook_url = webhook_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def notify(self, event: NotificationEvent, text: str) -> None:
        """POST {"text": ...} to the webhook. Raises DeliveryError on any failure."""
        try:
            resp = await self._client.post(self.webhook_url, json={"text": text})
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DeliveryError(f"Slack webhook unreachable: {e}") from e
        if not resp.is_success:
            raise DeliveryError(f"Slack webhook returned {resp.status_code}: {resp.text[:200]}")
        logger.debug("Delivered %s for %s", event.kind.value, event.endpoint)

    async def aclose(self) -> None:
        await self._client.aclose()


class LogNotifier:
    """Dry run: log the message instead of posting it."""

    async def notify(self, event: NotificationEvent, text: str) -> None:
        logger.info("Notify [%s]: %s", event.kind.value, text)

    async def aclose(self) -> None:
        pass
