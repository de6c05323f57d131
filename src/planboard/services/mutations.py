"""Task mutations: the local tentative change plus the matching remote write.

``apply`` is pure and idempotent; ``send`` performs the remote call and
raises ``DataSourceError`` on failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar, Protocol

from planboard.infrastructure.sources import DataSource
from planboard.models import TASK_FIELDS, Task, TaskUpdate


class Mutation(Protocol):
    success_title: ClassVar[str]
    failure_title: ClassVar[str]

    def apply(self, tasks: Sequence[Task]) -> list[Task]: ...

    async def send(self, source: DataSource, snapshot: Sequence[Task]) -> None: ...


@dataclass(frozen=True)
class UpdateFields:
    task_id: str
    update: TaskUpdate

    success_title: ClassVar[str] = "Task updated"
    failure_title: ClassVar[str] = "Could not update task"

    def apply(self, tasks: Sequence[Task]) -> list[Task]:
        changes = self.update.changes()
        return [t.model_copy(update=changes) if t.id == self.task_id else t for t in tasks]

    async def send(self, source: DataSource, snapshot: Sequence[Task]) -> None:
        await source.update_task_fields(self.task_id, self.full_update(snapshot))

    def full_update(self, snapshot: Sequence[Task]) -> TaskUpdate:
        """The merged record's complete field set, tag ids included.

        Falls back to the bare partial update when the task is not loaded.
        """
        current = next((t for t in snapshot if t.id == self.task_id), None)
        if current is None:
            return self.update
        merged = current.model_copy(update=self.update.changes())
        tag_ids = self.update.tag_ids if self.update.has_tags else [tag.id for tag in current.tags]
        return TaskUpdate(**{name: getattr(merged, name) for name in TASK_FIELDS}, tag_ids=tag_ids or [])


@dataclass(frozen=True)
class ChangeStatus:
    task_id: str
    status_id: str

    success_title: ClassVar[str] = "Task status updated"
    failure_title: ClassVar[str] = "Could not update status"

    def apply(self, tasks: Sequence[Task]) -> list[Task]:
        return [t.model_copy(update={"status_id": self.status_id}) if t.id == self.task_id else t for t in tasks]

    async def send(self, source: DataSource, snapshot: Sequence[Task]) -> None:
        await source.update_task_fields(self.task_id, TaskUpdate(status_id=self.status_id))


@dataclass(frozen=True)
class SetParent:
    task_ids: frozenset[str]
    parent_id: str | None

    success_title: ClassVar[str] = "Hierarchy updated"
    failure_title: ClassVar[str] = "Could not set parent task"

    def apply(self, tasks: Sequence[Task]) -> list[Task]:
        return [t.model_copy(update={"parent_id": self.parent_id}) if t.id in self.task_ids else t for t in tasks]

    async def send(self, source: DataSource, snapshot: Sequence[Task]) -> None:
        await source.update_task_parent(sorted(self.task_ids), self.parent_id)


@dataclass(frozen=True)
class DeleteTask:
    task_id: str

    success_title: ClassVar[str] = "Task deleted"
    failure_title: ClassVar[str] = "Could not delete task"

    def apply(self, tasks: Sequence[Task]) -> list[Task]:
        return [t for t in tasks if t.id != self.task_id]

    async def send(self, source: DataSource, snapshot: Sequence[Task]) -> None:
        await source.delete_task(self.task_id)
