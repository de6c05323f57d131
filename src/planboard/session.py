"""Session: the data source, notifier and stores one user works against."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from planboard.config import Settings
from planboard.infrastructure.db import Database
from planboard.infrastructure.rest import RestDataSource
from planboard.infrastructure.sources import DataSource, LocalDataSource
from planboard.services.dashboard import ConsolidatedKpis, ProjectKpis, consolidated_kpis, project_kpis
from planboard.services.notifications import FanoutNotifier, NotificationLog, Notifier, WebhookNotifier
from planboard.services.projects import ProjectStore
from planboard.services.table_settings import TableSettings
from planboard.services.tasks import TaskStore

logger = logging.getLogger(__name__)


class Session:
    def __init__(
        self,
        source: DataSource,
        notifications: NotificationLog | None = None,
        notifier: Notifier | None = None,
        done_status: str = "done",
    ):
        self.source = source
        self.notifications = notifications or NotificationLog()
        self.notifier = notifier or self.notifications
        self.done_status = done_status
        self.tasks = TaskStore(source, self.notifier)
        self.projects = ProjectStore(source, self.notifier)
        self.settings = TableSettings(source, self.notifier)

    @property
    def selection(self):
        return self.tasks.selection

    async def start(self, scope: str | None = None) -> None:
        await self.projects.refetch()
        await self.settings.refetch()
        await self.tasks.set_scope(scope)

    async def close(self) -> None:
        await self.source.aclose()

    def dashboard(self, project_id: str | None = None, today: date | None = None) -> ProjectKpis | ConsolidatedKpis | None:
        """KPIs over the loaded tasks; ``None`` when ``project_id`` is not a known project."""
        today = today or date.today()
        if project_id is None:
            return consolidated_kpis(self.projects.projects, self.tasks.tasks, today, self.done_status)
        project = self.projects.get(project_id)
        if project is None:
            return None
        return project_kpis(project, self.tasks.tasks, today, self.done_status)


def build_source(settings: Settings) -> DataSource:
    if settings.backend == "rest":
        logger.info("Using REST backend at %s", settings.rest_url)
        return RestDataSource(settings.rest_url, settings.rest_key, timeout=settings.http_timeout)
    logger.info("Using SQLite backend at %s", settings.db_path)
    return LocalDataSource(Database(settings.db_path))


def build_session(settings: Settings, notifier: Notifier | None = None) -> Session:
    """Session whose notifications are kept in memory and also sent to ``notifier``."""
    notifications = NotificationLog()
    targets: list[Notifier] = [notifications]
    if notifier is not None:
        targets.append(notifier)
    if settings.webhook_url:
        targets.append(WebhookNotifier(settings.webhook_url, errors_only=True))
    fanout = targets[0] if len(targets) == 1 else FanoutNotifier(*targets)
    return Session(build_source(settings), notifications, fanout, settings.done_status)


@asynccontextmanager
async def open_session(
    settings: Settings, scope: str | None = None, notifier: Notifier | None = None
) -> AsyncIterator[Session]:
    session = build_session(settings, notifier)
    try:
        await session.start(scope)
        yield session
    finally:
        await session.close()
