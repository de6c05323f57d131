"""Project list backed by the data source. Writes go remote first, then refetch."""

from __future__ import annotations

import logging

from planboard.errors import DataSourceError
from planboard.infrastructure.sources import DataSource
from planboard.models import Project, ProjectFields
from planboard.services.notifications import Notifier, failure, success
from planboard.services.outcome import OK, Outcome, failed, succeeded

logger = logging.getLogger(__name__)


class ProjectStore:
    def __init__(self, source: DataSource, notifier: Notifier):
        self.source = source
        self.notifier = notifier
        self.projects: list[Project] = []
        self.loading = False

    def get(self, project_id: str) -> Project | None:
        return next((p for p in self.projects if p.id == project_id), None)

    async def refetch(self) -> Outcome:
        self.loading = True
        try:
            self.projects = await self.source.list_projects()
        except DataSourceError as e:
            logger.warning("Loading projects failed: %s", e)
            await self.notifier.notify(failure("Could not load projects", str(e)))
            return failed(e)
        finally:
            self.loading = False
        return OK

    async def add_project(self, fields: ProjectFields) -> Outcome:
        try:
            project = await self.source.insert_project(fields)
        except DataSourceError as e:
            await self.notifier.notify(failure("Could not add project", str(e)))
            return failed(e)
        logger.info("Added project %s (%s)", project.name, project.id)
        await self.notifier.notify(success("Project added"))
        await self.refetch()
        return succeeded(project)

    async def update_project(self, project_id: str, fields: ProjectFields) -> Outcome:
        try:
            await self.source.update_project(project_id, fields)
        except DataSourceError as e:
            await self.notifier.notify(failure("Could not update project", str(e)))
            return failed(e)
        await self.notifier.notify(success("Project updated"))
        await self.refetch()
        return OK

    async def delete_project(self, project_id: str) -> Outcome:
        try:
            await self.source.delete_project(project_id)
        except DataSourceError as e:
            await self.notifier.notify(failure("Could not delete project", str(e)))
            return failed(e)
        logger.info("Deleted project %s", project_id)
        await self.notifier.notify(success("Project deleted"))
        await self.refetch()
        return OK
