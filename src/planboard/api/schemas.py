"""Request/response models for the API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from planboard.models import ColumnType, Task, TaskNode
from planboard.services.notifications import Notification

# --- Tasks ---


class TaskViewOut(BaseModel):
    scope: str | None
    loading: bool
    tasks: list[Task]  # unfiltered flat collection
    kanban: list[Task]  # flat, filtered
    forest: list[TaskNode]  # nested, filtered with ancestors kept


class ScopeIn(BaseModel):
    scope: str | None = None


class StatusChange(BaseModel):
    status_id: str


class ParentChange(BaseModel):
    task_ids: list[str] = Field(default_factory=list)
    parent_id: str | None = None


class SelectionParent(BaseModel):
    parent_id: str | None = None


class SelectionOut(BaseModel):
    task_ids: list[str]


class MutationOut(BaseModel):
    ok: bool
    notification: Notification | None = None


# --- Settings ---


class StatusCreate(BaseModel):
    name: str
    color: str = "#64748b"
    display_order: int | None = None


class StatusUpdate(BaseModel):
    name: str | None = None
    color: str | None = None
    display_order: int | None = None


class TagIn(BaseModel):
    name: str


class ColumnIn(BaseModel):
    name: str
    type: ColumnType = "text"


class VisibleColumns(BaseModel):
    column_ids: list[str]
