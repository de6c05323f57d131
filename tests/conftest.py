"""Shared fixtures: an in-memory data source with failure injection."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from planboard.errors import NotFoundError
from planboard.models import ALL_SCOPE, Project, Tag, Task, TaskStatus
from planboard.services.notifications import NotificationLog

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_task(task_id, parent_id=None, status_id="todo", project_id="p1", **extra):
    """Build a task whose created_at follows its numeric suffix, if any."""
    digits = "".join(ch for ch in task_id if ch.isdigit())
    created = BASE_TIME + timedelta(hours=int(digits) if digits else 0)
    return Task(
        id=task_id,
        name=extra.pop("name", task_id.upper()),
        project_id=project_id,
        status_id=status_id,
        parent_id=parent_id,
        created_at=extra.pop("created_at", created),
        **extra,
    )


class FakeSource:
    """DataSource double.

    ``fail[method] = error`` makes the next call of that method raise.
    ``gates[method] = asyncio.Event()`` holds calls until the event is set.
    """

    def __init__(self, tasks=(), projects=(), statuses=(), tags=()):
        self.tasks = list(tasks)
        self.projects = list(projects)
        self.statuses = list(statuses)
        self.tags = list(tags)
        self.fail = {}
        self.gates = {}
        self.calls = []
        self.closed = False

    async def _enter(self, method, *args):
        self.calls.append((method, *args))
        gate = self.gates.get(method)
        if gate is not None:
            await gate.wait()
        error = self.fail.pop(method, None)
        if error is not None:
            raise error

    # --- tasks ---

    async def fetch_tasks_for_scope(self, scope):
        await self._enter("fetch_tasks_for_scope", scope)
        if scope == ALL_SCOPE:
            return list(self.tasks)
        return [t for t in self.tasks if t.project_id == scope]

    async def insert_task(self, fields):
        await self._enter("insert_task", fields)
        data = fields.model_dump(exclude={"tag_ids"})
        data["status_id"] = data["status_id"] or "todo"
        task = Task(id=str(uuid.uuid4()), **data)
        self.tasks.append(task)
        return task

    async def update_task_fields(self, task_id, fields):
        await self._enter("update_task_fields", task_id, fields)
        self._replace(task_id, fields.changes())

    async def update_task_parent(self, task_ids, parent_id):
        await self._enter("update_task_parent", list(task_ids), parent_id)
        for task_id in task_ids:
            self._replace(task_id, {"parent_id": parent_id})

    async def delete_task(self, task_id):
        await self._enter("delete_task", task_id)
        self._get(task_id)
        self.tasks = [t for t in self.tasks if t.id != task_id]

    def _get(self, task_id):
        for t in self.tasks:
            if t.id == task_id:
                return t
        raise NotFoundError(f"Task {task_id} not found")

    def _replace(self, task_id, changes):
        current = self._get(task_id)
        self.tasks = [current.model_copy(update=changes) if t.id == task_id else t for t in self.tasks]

    # --- projects ---

    async def list_projects(self):
        await self._enter("list_projects")
        return list(self.projects)

    async def insert_project(self, fields):
        await self._enter("insert_project", fields)
        project = Project(id=str(uuid.uuid4()), **fields.model_dump())
        self.projects.append(project)
        return project

    async def update_project(self, project_id, fields):
        await self._enter("update_project", project_id, fields)
        if not any(p.id == project_id for p in self.projects):
            raise NotFoundError(f"Project {project_id} not found")
        self.projects = [
            p.model_copy(update=fields.model_dump()) if p.id == project_id else p for p in self.projects
        ]

    async def delete_project(self, project_id):
        await self._enter("delete_project", project_id)
        if not any(p.id == project_id for p in self.projects):
            raise NotFoundError(f"Project {project_id} not found")
        self.projects = [p for p in self.projects if p.id != project_id]

    # --- statuses and tags ---

    async def list_statuses(self):
        await self._enter("list_statuses")
        return list(self.statuses)

    async def insert_status(self, name, color, display_order=None):
        await self._enter("insert_status", name, color, display_order)
        status = TaskStatus(id=str(uuid.uuid4()), name=name, color=color, display_order=display_order)
        self.statuses.append(status)
        return status

    async def update_status(self, status_id, **changes):
        await self._enter("update_status", status_id, changes)

    async def delete_status(self, status_id):
        await self._enter("delete_status", status_id)
        self.statuses = [s for s in self.statuses if s.id != status_id]

    async def list_tags(self):
        await self._enter("list_tags")
        return list(self.tags)

    async def insert_tag(self, name):
        await self._enter("insert_tag", name)
        tag = Tag(id=str(uuid.uuid4()), name=name)
        self.tags.append(tag)
        return tag

    async def update_tag(self, tag_id, name):
        await self._enter("update_tag", tag_id, name)

    async def delete_tag(self, tag_id):
        await self._enter("delete_tag", tag_id)
        self.tags = [t for t in self.tags if t.id != tag_id]

    async def aclose(self):
        self.closed = True


@pytest.fixture
def notifications():
    return NotificationLog()


@pytest.fixture
def source():
    return FakeSource(
        tasks=[
            make_task("t1"),
            make_task("t2", parent_id="t1", status_id="doing"),
            make_task("t3", parent_id="t1"),
            make_task("t4", status_id="done"),
        ],
        projects=[Project(id="p1", name="Website", budget=1000, spent=250)],
        statuses=[
            TaskStatus(id="todo", name="To do", display_order=0),
            TaskStatus(id="doing", name="Doing", display_order=1),
            TaskStatus(id="done", name="Done", display_order=2),
        ],
    )


def run(coro):
    return asyncio.run(coro)
