"""Statuses, tags and the task table's column layout."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any

from planboard.errors import DataSourceError
from planboard.infrastructure.sources import DataSource
from planboard.models import Column, ColumnType, Tag, TaskStatus
from planboard.services.notifications import Notifier, failure
from planboard.services.outcome import OK, Outcome, failed, succeeded

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = (
    Column(id="formatted_id", name="ID", type="text"),
    Column(id="project_name", name="Project", type="text"),
    Column(id="assignee", name="Assignee", type="text"),
    Column(id="status", name="Status", type="text"),
    Column(id="priority", name="Priority", type="text"),
    Column(id="tags", name="Tags", type="text"),
    Column(id="progress", name="Progress", type="progress"),
    Column(id="start_date", name="Start", type="date"),
    Column(id="end_date", name="End", type="date"),
    Column(id="duration", name="Duration", type="number"),
)


class TableSettings:
    """Statuses and tags are written remotely first and only then updated locally.

    Columns are local to the session.
    """

    def __init__(self, source: DataSource, notifier: Notifier):
        self.source = source
        self.notifier = notifier
        self.statuses: list[TaskStatus] = []
        self.tags: list[Tag] = []
        self.loading = False
        self.columns: list[Column] = list(DEFAULT_COLUMNS)
        self.visible_columns: list[str] = [c.id for c in DEFAULT_COLUMNS]

    async def refetch(self) -> Outcome:
        self.loading = True
        try:
            statuses, tags = await asyncio.gather(self.source.list_statuses(), self.source.list_tags())
        except DataSourceError as e:
            logger.warning("Loading table settings failed: %s", e)
            await self.notifier.notify(failure("Could not load statuses and tags", str(e)))
            return failed(e)
        finally:
            self.loading = False
        self.statuses, self.tags = statuses, tags
        logger.debug("Loaded %d statuses, %d tags", len(statuses), len(tags))
        return OK

    # --- statuses ---

    async def add_status(self, name: str, color: str, display_order: int | None = None) -> Outcome:
        try:
            status = await self.source.insert_status(name, color, display_order)
        except DataSourceError as e:
            await self.notifier.notify(failure("Could not add status", str(e)))
            return failed(e)
        self.statuses.append(status)
        return succeeded(status)

    async def update_status(self, status_id: str, **changes: Any) -> Outcome:
        try:
            await self.source.update_status(status_id, **changes)
        except DataSourceError as e:
            await self.notifier.notify(failure("Could not update status", str(e)))
            return failed(e)
        self.statuses = [s.model_copy(update=changes) if s.id == status_id else s for s in self.statuses]
        return OK

    async def delete_status(self, status_id: str) -> Outcome:
        try:
            await self.source.delete_status(status_id)
        except DataSourceError as e:
            await self.notifier.notify(failure("Could not delete status", str(e)))
            return failed(e)
        self.statuses = [s for s in self.statuses if s.id != status_id]
        return OK

    # --- tags ---

    async def add_tag(self, name: str) -> Outcome:
        try:
            tag = await self.source.insert_tag(name)
        except DataSourceError as e:
            await self.notifier.notify(failure("Could not add tag", str(e)))
            return failed(e)
        self.tags.append(tag)
        return succeeded(tag)

    async def update_tag(self, tag_id: str, name: str) -> Outcome:
        try:
            await self.source.update_tag(tag_id, name)
        except DataSourceError as e:
            await self.notifier.notify(failure("Could not update tag", str(e)))
            return failed(e)
        self.tags = [Tag(id=t.id, name=name) if t.id == tag_id else t for t in self.tags]
        return OK

    async def delete_tag(self, tag_id: str) -> Outcome:
        try:
            await self.source.delete_tag(tag_id)
        except DataSourceError as e:
            await self.notifier.notify(failure("Could not delete tag", str(e)))
            return failed(e)
        self.tags = [t for t in self.tags if t.id != tag_id]
        return OK

    # --- columns ---

    def get_column(self, column_id: str) -> Column | None:
        return next((c for c in self.columns if c.id == column_id), None)

    def add_column(self, name: str, column_type: ColumnType) -> Column:
        column = Column(id=f"custom_{uuid.uuid4().hex[:8]}", name=name, type=column_type)
        self.columns.append(column)
        self.visible_columns.append(column.id)
        return column

    def update_column(self, column_id: str, name: str, column_type: ColumnType) -> Column | None:
        if self.get_column(column_id) is None:
            return None
        updated = Column(id=column_id, name=name, type=column_type)
        self.columns = [updated if c.id == column_id else c for c in self.columns]
        return updated

    def duplicate_column(self, column_id: str) -> Column | None:
        original = self.get_column(column_id)
        if original is None:
            return None
        copy = Column(id=f"{original.id}_{uuid.uuid4().hex[:8]}", name=f"{original.name} (copy)", type=original.type)
        self.columns.append(copy)
        self.visible_columns.append(copy.id)
        return copy

    def delete_column(self, column_id: str) -> bool:
        if self.get_column(column_id) is None:
            return False
        self.columns = [c for c in self.columns if c.id != column_id]
        self.visible_columns = [i for i in self.visible_columns if i != column_id]
        return True

    def set_visible_columns(self, column_ids: list[str]) -> list[str]:
        """Show exactly these columns, ignoring unknown ids."""
        known = {c.id for c in self.columns}
        self.visible_columns = [i for i in dict.fromkeys(column_ids) if i in known]
        return self.visible_columns
