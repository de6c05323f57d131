"""Click entry point: serve the API or inspect tasks from the terminal."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import click
import uvicorn

from planboard.config import Settings
from planboard.hierarchy import TaskFilter
from planboard.logs import setup_logging
from planboard.models import ALL, ALL_SCOPE, ProjectFields
from planboard.services.notifications import ConsoleNotifier
from planboard.session import Session, open_session
from planboard.ui.rendering import (
    console,
    show_dashboard,
    show_kanban,
    show_projects,
    show_tree,
)


def _run(ctx: click.Context, scope: str | None, action: Callable[[Session], Awaitable[Any]]) -> Any:
    settings: Settings = ctx.obj

    async def main() -> Any:
        async with open_session(settings, scope, ConsoleNotifier(console)) as session:
            return await action(session)

    return asyncio.run(main())


def _scope(project: str | None) -> str:
    return project or ALL_SCOPE


@click.group()
@click.pass_context
def cli(ctx: click.Context):
    """planboard: projects, task hierarchy and optimistic task edits."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    setup_logging(settings.log_level, console)
    ctx.obj = settings


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", type=int, default=None, help="Defaults to $PORT or 8000.")
@click.pass_obj
def serve(settings: Settings, host: str, port: int | None):
    """Run the HTTP API."""
    uvicorn.run("planboard.api.app:app", host=host, port=port or settings.port, reload=False)


@cli.command()
@click.option("--project", help="Project id; all visible tasks when omitted.")
@click.option("--status", default=ALL, show_default=True)
@click.option("--assignee", default=ALL, show_default=True)
@click.pass_context
def tree(ctx: click.Context, project: str | None, status: str, assignee: str):
    """Show the task hierarchy (WBS), keeping ancestors of matching tasks."""

    async def action(session: Session) -> None:
        found = session.projects.get(project) if project else None
        title = found.name if found else "All tasks"
        show_tree(session.tasks.view(TaskFilter(status_id=status, assignee_id=assignee)), title)

    _run(ctx, _scope(project), action)


@cli.command()
@click.option("--project", help="Project id; all visible tasks when omitted.")
@click.option("--assignee", default=ALL, show_default=True)
@click.pass_context
def kanban(ctx: click.Context, project: str | None, assignee: str):
    """Show tasks grouped by status."""

    async def action(session: Session) -> None:
        show_kanban(session.tasks.kanban(TaskFilter(assignee_id=assignee)), session.settings.statuses)

    _run(ctx, _scope(project), action)


@cli.command()
@click.option("--project", help="Project id; consolidated KPIs when omitted.")
@click.pass_context
def dashboard(ctx: click.Context, project: str | None):
    """Show dashboard KPIs."""

    async def action(session: Session) -> None:
        kpis = session.dashboard(project)
        if kpis is None:
            raise click.ClickException(f"Project '{project}' not found")
        show_dashboard(kpis)

    _run(ctx, ALL_SCOPE, action)


@cli.command()
@click.pass_context
def projects(ctx: click.Context):
    """List projects."""

    async def action(session: Session) -> None:
        show_projects(session.projects.projects)

    _run(ctx, None, action)


@cli.command("add-project")
@click.argument("name")
@click.option("--description")
@click.option("--budget", type=float)
@click.pass_context
def add_project(ctx: click.Context, name: str, description: str | None, budget: float | None):
    """Create a project."""

    async def action(session: Session) -> None:
        outcome = await session.projects.add_project(ProjectFields(name=name, description=description, budget=budget))
        if outcome:
            console.print(f"[bold green]Created project '{name}' ({outcome.value.id})[/bold green]")

    _run(ctx, None, action)


@cli.command()
@click.argument("task_id")
@click.argument("status_id")
@click.pass_context
def move(ctx: click.Context, task_id: str, status_id: str):
    """Change a task's status."""

    async def action(session: Session) -> None:
        if not await session.tasks.update_task_status(task_id, status_id):
            raise click.exceptions.Exit(1)

    _run(ctx, ALL_SCOPE, action)


@cli.command()
@click.argument("task_ids", nargs=-1, required=True)
@click.option("--parent", "parent_id", help="New parent task id.")
@click.option("--clear", is_flag=True, help="Detach the tasks to the top level.")
@click.pass_context
def reparent(ctx: click.Context, task_ids: tuple[str, ...], parent_id: str | None, clear: bool):
    """Move TASK_IDS under --parent, or to the top level with --clear."""
    if (parent_id is not None) == clear:
        raise click.UsageError("Pass exactly one of --parent or --clear.")

    async def action(session: Session) -> None:
        for task_id in task_ids:
            if task_id not in session.selection:
                try:
                    session.selection.toggle(task_id)
                except KeyError:
                    raise click.ClickException(f"Task {task_id} not found") from None
        if not await session.tasks.reparent_selection(parent_id):
            raise click.exceptions.Exit(1)

    _run(ctx, ALL_SCOPE, action)


if __name__ == "__main__":
    cli()
