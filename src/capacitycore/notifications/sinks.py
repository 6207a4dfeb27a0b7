"""Notification sink implementations."""

import logging
from typing import Optional, Protocol, runtime_checkable

import httpx

from capacitycore.notifications.models import Notification

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationSink(Protocol):
    """Protocol for notification channels."""

    async def send(self, notification: Notification) -> None:
        """Deliver one notification.

        Args:
            notification: Notification to deliver

        Raises whatever the channel raises; the bridge logs failures.
        """
        ...


class LoggingSink:
    """Writes notifications to the application log."""

    async def send(self, notification: Notification) -> None:
        level = logging.WARNING if notification.page else logging.INFO
        logger.log(
            level,
            f"[{notification.severity.value}] {notification.kind.value} "
            f"{notification.subject_type.value}={notification.subject}: {notification.message}"
            + (" (page)" if notification.page else ""),
        )


class WebhookSink:
    """POSTs notifications as JSON to a webhook URL."""

    def __init__(
        self,
        url: str,
        token: str = "",
        timeout_seconds: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._url = url
        self._token = token
        self._timeout = timeout_seconds
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(headers=headers, timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def send(self, notification: Notification) -> None:
        response = await self._get_client().post(
            self._url,
            json=notification.model_dump(mode="json"),
        )
        response.raise_for_status()


class MockNotificationSink:
    """In-memory sink for testing."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[Notification] = []

    async def send(self, notification: Notification) -> None:
        if self.fail:
            raise RuntimeError("notification sink unavailable")
        self.sent.append(notification)

    def clear(self) -> None:
        self.sent.clear()
