"""Rich console helpers: WBS tree, kanban board, KPI panels."""

from __future__ import annotations

from collections.abc import Sequence

from rich.columns import Columns
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from planboard.models import Project, Task, TaskNode, TaskStatus
from planboard.services.dashboard import ConsolidatedKpis, ProjectKpis

console = Console()


def task_label(task: Task) -> str:
    code = f"[cyan]{task.wbs_code}[/cyan] " if task.wbs_code else ""
    status = task.status_name or task.status_id
    progress = f" {task.progress}%" if task.progress is not None else ""
    assignee = f" @{task.assignee_name or task.assignee_id}" if task.assignee_id else ""
    return f"{code}[bold]{task.name}[/bold] [dim]({status}{progress}{assignee})[/dim]"


def build_tree(forest: Sequence[TaskNode], title: str = "Tasks") -> Tree:
    root = Tree(f"[bold]{title}[/bold]")
    stack = [(root, node) for node in reversed(forest)]
    while stack:
        parent, node = stack.pop()
        branch = parent.add(task_label(node.task))
        stack.extend((branch, child) for child in reversed(node.children))
    return root


def show_tree(forest: Sequence[TaskNode], title: str = "Tasks") -> None:
    if not forest:
        console.print("[dim]No tasks match.[/dim]")
        return
    console.print(build_tree(forest, title))


def show_kanban(tasks: Sequence[Task], statuses: Sequence[TaskStatus]) -> None:
    panels = []
    for status in statuses:
        column = [t for t in tasks if t.status_id == status.id]
        body = "\n".join(f"• {t.name}" for t in column) or "[dim]empty[/dim]"
        panels.append(Panel(body, title=f"{status.name} ({len(column)})", border_style=status.color, width=32))
    console.print(Columns(panels))


def show_projects(projects: Sequence[Project]) -> None:
    if not projects:
        console.print("[dim]No projects yet.[/dim]")
        return
    table = Table(title="Projects", show_lines=True)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="green")
    table.add_column("Budget", justify="right")
    table.add_column("Spent", justify="right")
    for p in projects:
        table.add_row(p.id, p.name, f"{p.budget or 0:,.2f}", f"{p.spent or 0:,.2f}")
    console.print(table)


def show_dashboard(kpis: ProjectKpis | ConsolidatedKpis) -> None:
    if isinstance(kpis, ProjectKpis):
        cards = [
            ("Budget used", f"{kpis.spent:,.2f} / {kpis.budget:,.2f}"),
            ("Completed tasks", f"{kpis.completed_tasks} / {kpis.total_tasks}"),
            ("Overall progress", f"{round(kpis.completion)}%"),
            ("Tasks at risk", str(kpis.tasks_at_risk)),
        ]
        title = kpis.project_name
    else:
        cards = [
            ("Total budget", f"{kpis.total_budget:,.2f}"),
            ("Active projects", str(kpis.total_projects)),
            ("Overall progress", f"{round(kpis.overall_progress)}%"),
            ("Tasks at risk", str(kpis.tasks_at_risk)),
        ]
        title = "Consolidated view"
    console.print(Panel(Columns([Panel(value, title=name) for name, value in cards]), title=title))
    if kpis.recent_tasks:
        table = Table(title="Recent tasks")
        table.add_column("Task", style="green")
        table.add_column("Status")
        table.add_column("Created", style="dim")
        for t in kpis.recent_tasks:
            table.add_row(t.name, t.status_name or t.status_id, t.created_at.strftime("%Y-%m-%d"))
        console.print(table)
