"""User-facing notifications (toasts) and where they get delivered."""

from __future__ import annotations

import logging
from collections import deque
from datetime import UTC, datetime
from typing import Literal, Protocol

import httpx
from pydantic import BaseModel, Field
from rich.console import Console

logger = logging.getLogger(__name__)


class Notification(BaseModel):
    title: str
    description: str = ""
    variant: Literal["default", "destructive"] = "default"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


def success(title: str, description: str = "") -> Notification:
    return Notification(title=title, description=description)


def failure(title: str, description: str) -> Notification:
    return Notification(title=title, description=description, variant="destructive")


class Notifier(Protocol):
    async def notify(self, notification: Notification) -> None: ...


class NotificationLog:
    """Keeps the most recent notifications in memory."""

    def __init__(self, maxlen: int = 100):
        self._items: deque[Notification] = deque(maxlen=maxlen)

    async def notify(self, notification: Notification) -> None:
        self._items.append(notification)

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    @property
    def latest(self) -> Notification | None:
        return self._items[-1] if self._items else None

    def clear(self) -> None:
        self._items.clear()


class ConsoleNotifier:
    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    async def notify(self, notification: Notification) -> None:
        style = "red" if notification.is_error else "green"
        line = f"[{style}]{notification.title}[/{style}]"
        if notification.description:
            line += f" [dim]{notification.description}[/dim]"
        self.console.print(line)


class WebhookNotifier:
    """Posts notifications to a chat webhook. Delivery problems are logged, not raised."""

    def __init__(self, webhook_url: str, errors_only: bool = False, transport: httpx.AsyncBaseTransport | None = None):
        self.webhook_url = webhook_url
        self.errors_only = errors_only
        self._transport = transport

    async def notify(self, notification: Notification) -> None:
        if self.errors_only and not notification.is_error:
            return
        icon = "🔴" if notification.is_error else "✅"
        content = f"{icon} **{notification.title}**"
        if notification.description:
            content += f"\n{notification.description}"

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                resp = await client.post(self.webhook_url, json={"content": content})
            except httpx.HTTPError as e:
                logger.warning("Webhook notification error: %s", e)
                return
        if resp.status_code >= 400:
            logger.warning("Webhook notification failed (%s): %s", resp.status_code, resp.text)


class FanoutNotifier:
    def __init__(self, *notifiers: Notifier):
        self.notifiers = notifiers

    async def notify(self, notification: Notification) -> None:
        for notifier in self.notifiers:
            await notifier.notify(notification)
