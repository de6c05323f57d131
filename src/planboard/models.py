"""Pydantic models for projects, tasks and table settings."""

from __future__ import annotations

import enum
from datetime import UTC, date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ALL = "all"  # wildcard accepted by every filter field
ALL_SCOPE = "consolidated"  # fetch scope: every task visible to the current user


class Project(BaseModel):
    id: str
    name: str
    description: str | None = None
    owner_id: str | None = None
    budget: float | None = None
    spent: float | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ProjectFields(BaseModel):
    name: str
    description: str | None = None
    owner_id: str | None = None
    budget: float | None = None
    spent: float | None = None


class Priority(enum.StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Tag(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str


class TaskStatus(BaseModel):
    id: str
    name: str
    color: str = "#64748b"
    display_order: int | None = None


ColumnType = Literal["text", "number", "date", "progress"]


class Column(BaseModel):
    id: str
    name: str
    type: ColumnType = "text"


class Task(BaseModel):
    """A flat task record as delivered by the data source."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str
    description: str | None = None
    project_id: str
    project_name: str | None = None  # filled in for the consolidated view
    assignee_id: str | None = None
    assignee_name: str | None = None
    status_id: str
    status_name: str | None = None
    status_color: str | None = None
    parent_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    priority: Priority | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    wbs_code: str | None = None
    tags: list[Tag] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)  # informational, never cycle-checked
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    observation: str | None = None


class TaskNode(BaseModel):
    """A task plus its ordered children. Derived, never stored."""

    model_config = ConfigDict(frozen=True)

    task: Task
    children: list[TaskNode] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.task.id


# Fields shared by TaskCreate and TaskUpdate, also the set a full update carries.
TASK_FIELDS = (
    "name",
    "description",
    "assignee_id",
    "status_id",
    "priority",
    "progress",
    "start_date",
    "end_date",
    "parent_id",
    "dependencies",
    "custom_fields",
)


class TaskCreate(BaseModel):
    project_id: str
    name: str
    description: str | None = None
    assignee_id: str | None = None
    status_id: str | None = None
    priority: Priority | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    start_date: date | None = None
    end_date: date | None = None
    parent_id: str | None = None
    dependencies: list[str] = Field(default_factory=list)
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    tag_ids: list[str] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Partial task update.

    A field passed explicitly (even as None) is applied; a field never passed
    is left alone. ``model_fields_set`` is the source of truth for which is
    which, so build instances with keyword arguments, not by mutation.
    """

    name: str | None = None
    description: str | None = None
    assignee_id: str | None = None
    status_id: str | None = None
    priority: Priority | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    start_date: date | None = None
    end_date: date | None = None
    parent_id: str | None = None
    dependencies: list[str] | None = None
    custom_fields: dict[str, Any] | None = None
    tag_ids: list[str] | None = None

    def changes(self) -> dict[str, Any]:
        """Provided task fields, tag ids excluded."""
        return {k: getattr(self, k) for k in self.model_fields_set if k != "tag_ids"}

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set

    @property
    def has_tags(self) -> bool:
        return "tag_ids" in self.model_fields_set
