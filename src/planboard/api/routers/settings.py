"""Statuses, tags and table column endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from planboard.api.deps import get_session, raise_for_outcome
from planboard.api.schemas import ColumnIn, StatusCreate, StatusUpdate, TagIn, VisibleColumns
from planboard.models import Column, Tag, TaskStatus
from planboard.session import Session

router = APIRouter(prefix="/settings", tags=["settings"])


# --- Statuses ---


@router.get("/statuses", response_model=list[TaskStatus])
def list_statuses(session: Session = Depends(get_session)):
    return session.settings.statuses


@router.post("/statuses", response_model=TaskStatus, status_code=201)
async def create_status(body: StatusCreate, session: Session = Depends(get_session)):
    outcome = await session.settings.add_status(body.name, body.color, body.display_order)
    raise_for_outcome(outcome)
    return outcome.value


@router.put("/statuses/{status_id}", status_code=204)
async def update_status(status_id: str, body: StatusUpdate, session: Session = Depends(get_session)):
    changes = body.model_dump(exclude_unset=True)
    raise_for_outcome(await session.settings.update_status(status_id, **changes))


@router.delete("/statuses/{status_id}", status_code=204)
async def delete_status(status_id: str, session: Session = Depends(get_session)):
    raise_for_outcome(await session.settings.delete_status(status_id))


# --- Tags ---


@router.get("/tags", response_model=list[Tag])
def list_tags(session: Session = Depends(get_session)):
    return session.settings.tags


@router.post("/tags", response_model=Tag, status_code=201)
async def create_tag(body: TagIn, session: Session = Depends(get_session)):
    outcome = await session.settings.add_tag(body.name)
    raise_for_outcome(outcome)
    return outcome.value


@router.put("/tags/{tag_id}", status_code=204)
async def update_tag(tag_id: str, body: TagIn, session: Session = Depends(get_session)):
    raise_for_outcome(await session.settings.update_tag(tag_id, body.name))


@router.delete("/tags/{tag_id}", status_code=204)
async def delete_tag(tag_id: str, session: Session = Depends(get_session)):
    raise_for_outcome(await session.settings.delete_tag(tag_id))


# --- Columns ---


@router.get("/columns", response_model=list[Column])
def list_columns(session: Session = Depends(get_session)):
    return session.settings.columns


@router.post("/columns", response_model=Column, status_code=201)
def create_column(body: ColumnIn, session: Session = Depends(get_session)):
    return session.settings.add_column(body.name, body.type)


@router.put("/columns/visible", response_model=VisibleColumns)
def set_visible_columns(body: VisibleColumns, session: Session = Depends(get_session)):
    return VisibleColumns(column_ids=session.settings.set_visible_columns(body.column_ids))


@router.put("/columns/{column_id}", response_model=Column)
def update_column(column_id: str, body: ColumnIn, session: Session = Depends(get_session)):
    column = session.settings.update_column(column_id, body.name, body.type)
    if column is None:
        raise HTTPException(status_code=404, detail=f"Column '{column_id}' not found")
    return column


@router.post("/columns/{column_id}/duplicate", response_model=Column, status_code=201)
def duplicate_column(column_id: str, session: Session = Depends(get_session)):
    column = session.settings.duplicate_column(column_id)
    if column is None:
        raise HTTPException(status_code=404, detail=f"Column '{column_id}' not found")
    return column


@router.delete("/columns/{column_id}", status_code=204)
def delete_column(column_id: str, session: Session = Depends(get_session)):
    if not session.settings.delete_column(column_id):
        raise HTTPException(status_code=404, detail=f"Column '{column_id}' not found")
