"""Data source contract and the SQLite-backed implementation."""

from __future__ import annotations

import logging
from collections.abc import Collection
from typing import Protocol

from planboard.infrastructure.db import Database
from planboard.models import (
    ALL_SCOPE,
    Project,
    ProjectFields,
    Tag,
    Task,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
)

logger = logging.getLogger(__name__)


class DataSource(Protocol):
    """Everything the stores need from the backend.

    Implementations raise only ``planboard.errors.DataSourceError`` subclasses.
    """

    async def fetch_tasks_for_scope(self, scope: str) -> list[Task]: ...

    async def insert_task(self, fields: TaskCreate) -> Task: ...

    async def update_task_fields(self, task_id: str, fields: TaskUpdate) -> None: ...

    async def update_task_parent(self, task_ids: Collection[str], parent_id: str | None) -> None: ...

    async def delete_task(self, task_id: str) -> None: ...

    async def list_projects(self) -> list[Project]: ...

    async def insert_project(self, fields: ProjectFields) -> Project: ...

    async def update_project(self, project_id: str, fields: ProjectFields) -> None: ...

    async def delete_project(self, project_id: str) -> None: ...

    async def list_statuses(self) -> list[TaskStatus]: ...

    async def insert_status(self, name: str, color: str, display_order: int | None = None) -> TaskStatus: ...

    async def update_status(self, status_id: str, **changes) -> None: ...

    async def delete_status(self, status_id: str) -> None: ...

    async def list_tags(self) -> list[Tag]: ...

    async def insert_tag(self, name: str) -> Tag: ...

    async def update_tag(self, tag_id: str, name: str) -> None: ...

    async def delete_tag(self, tag_id: str) -> None: ...

    async def aclose(self) -> None: ...


class LocalDataSource:
    """DataSource over a local SQLite ``Database``.

    Calls run inline on the event loop; SQLite statements here are short.
    """

    def __init__(self, db: Database):
        self.db = db

    async def fetch_tasks_for_scope(self, scope: str) -> list[Task]:
        if scope == ALL_SCOPE:
            return self.db.list_tasks()
        return self.db.list_tasks_for_project(scope)

    async def insert_task(self, fields: TaskCreate) -> Task:
        return self.db.add_task(fields)

    async def update_task_fields(self, task_id: str, fields: TaskUpdate) -> None:
        self.db.update_task(task_id, fields)

    async def update_task_parent(self, task_ids: Collection[str], parent_id: str | None) -> None:
        self.db.set_parent(task_ids, parent_id)

    async def delete_task(self, task_id: str) -> None:
        self.db.delete_task(task_id)

    async def list_projects(self) -> list[Project]:
        return self.db.list_projects()

    async def insert_project(self, fields: ProjectFields) -> Project:
        return self.db.add_project(fields)

    async def update_project(self, project_id: str, fields: ProjectFields) -> None:
        self.db.update_project(project_id, fields)

    async def delete_project(self, project_id: str) -> None:
        self.db.delete_project(project_id)

    async def list_statuses(self) -> list[TaskStatus]:
        return self.db.list_statuses()

    async def insert_status(self, name: str, color: str, display_order: int | None = None) -> TaskStatus:
        return self.db.add_status(name, color, display_order)

    async def update_status(self, status_id: str, **changes) -> None:
        self.db.update_status(status_id, **changes)

    async def delete_status(self, status_id: str) -> None:
        self.db.delete_status(status_id)

    async def list_tags(self) -> list[Tag]:
        return self.db.list_tags()

    async def insert_tag(self, name: str) -> Tag:
        return self.db.add_tag(name)

    async def update_tag(self, tag_id: str, name: str) -> None:
        self.db.update_tag(tag_id, name)

    async def delete_tag(self, tag_id: str) -> None:
        self.db.delete_tag(tag_id)

    async def aclose(self) -> None:
        logger.debug("Closing %s", self.db.db_path)
        self.db.close()
