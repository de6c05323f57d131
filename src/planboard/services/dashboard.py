"""Dashboard KPIs computed from the loaded projects and tasks."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import date

from pydantic import BaseModel, Field

from planboard.models import Project, Task

RECENT_LIMIT = 5


class ProjectKpis(BaseModel):
    project_id: str
    project_name: str
    budget: float
    spent: float
    completed_tasks: int
    total_tasks: int
    completion: float  # mean progress, 0..100
    tasks_at_risk: int
    recent_tasks: list[Task] = Field(default_factory=list)


class ConsolidatedKpis(BaseModel):
    total_projects: int
    total_budget: float
    overall_progress: float  # mean of per-project progress
    total_tasks: int
    completed_tasks: int
    tasks_at_risk: int
    tasks_by_status: dict[str, int] = Field(default_factory=dict)
    recent_tasks: list[Task] = Field(default_factory=list)


def is_done(task: Task, done_status: str) -> bool:
    return task.status_id.lower() == done_status.lower()


def is_at_risk(task: Task, today: date, done_status: str) -> bool:
    """Not done and past its end date. Tasks due today are not late yet."""
    return not is_done(task, done_status) and task.end_date is not None and task.end_date < today


def average_progress(tasks: Sequence[Task]) -> float:
    if not tasks:
        return 0.0
    return sum(t.progress or 0 for t in tasks) / len(tasks)


def recent_tasks(tasks: Sequence[Task], limit: int = RECENT_LIMIT) -> list[Task]:
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)[:limit]


def project_kpis(project: Project, tasks: Sequence[Task], today: date, done_status: str = "done") -> ProjectKpis:
    project_tasks = [t for t in tasks if t.project_id == project.id]
    return ProjectKpis(
        project_id=project.id,
        project_name=project.name,
        budget=project.budget or 0,
        spent=project.spent or 0,
        completed_tasks=sum(1 for t in project_tasks if is_done(t, done_status)),
        total_tasks=len(project_tasks),
        completion=average_progress(project_tasks),
        tasks_at_risk=sum(1 for t in project_tasks if is_at_risk(t, today, done_status)),
        recent_tasks=recent_tasks(project_tasks),
    )


def consolidated_kpis(
    projects: Sequence[Project], tasks: Sequence[Task], today: date, done_status: str = "done"
) -> ConsolidatedKpis:
    per_project = [average_progress([t for t in tasks if t.project_id == p.id]) for p in projects]
    return ConsolidatedKpis(
        total_projects=len(projects),
        total_budget=sum(p.budget or 0 for p in projects),
        overall_progress=sum(per_project) / len(per_project) if per_project else 0.0,
        total_tasks=len(tasks),
        completed_tasks=sum(1 for t in tasks if is_done(t, done_status)),
        tasks_at_risk=sum(1 for t in tasks if is_at_risk(t, today, done_status)),
        tasks_by_status=dict(Counter(t.status_name or t.status_id for t in tasks)),
        recent_tasks=recent_tasks(tasks),
    )
