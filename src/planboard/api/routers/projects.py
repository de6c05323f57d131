"""Project CRUD endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from planboard.api.deps import get_session, raise_for_outcome
from planboard.models import Project, ProjectFields
from planboard.session import Session

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=list[Project])
async def list_projects(refresh: bool = False, session: Session = Depends(get_session)):
    if refresh:
        raise_for_outcome(await session.projects.refetch())
    return session.projects.projects


@router.post("", response_model=Project, status_code=201)
async def create_project(body: ProjectFields, session: Session = Depends(get_session)):
    outcome = await session.projects.add_project(body)
    raise_for_outcome(outcome)
    return outcome.value


@router.put("/{project_id}", status_code=204)
async def update_project(project_id: str, body: ProjectFields, session: Session = Depends(get_session)):
    raise_for_outcome(await session.projects.update_project(project_id, body))


@router.delete("/{project_id}", status_code=204)
async def delete_project(project_id: str, session: Session = Depends(get_session)):
    raise_for_outcome(await session.projects.delete_project(project_id))
    if session.tasks.scope == project_id:
        await session.tasks.set_scope(None)
