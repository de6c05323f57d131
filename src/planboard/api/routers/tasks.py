"""Task views, optimistic task edits and the selection set."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from planboard.api.deps import get_session, raise_for_outcome
from planboard.api.schemas import (
    MutationOut,
    ParentChange,
    ScopeIn,
    SelectionOut,
    SelectionParent,
    StatusChange,
    TaskViewOut,
)
from planboard.hierarchy import TaskFilter
from planboard.models import ALL, TaskCreate, TaskUpdate
from planboard.services.outcome import Outcome
from planboard.session import Session

router = APIRouter(tags=["tasks"])


def _done(session: Session, outcome: Outcome) -> MutationOut:
    raise_for_outcome(outcome)
    return MutationOut(ok=True, notification=session.notifications.latest)


@router.get("/tasks", response_model=TaskViewOut)
def get_tasks(status: str = ALL, assignee: str = ALL, session: Session = Depends(get_session)):
    store = session.tasks
    task_filter = TaskFilter(status_id=status, assignee_id=assignee)
    return TaskViewOut(
        scope=store.scope,
        loading=store.loading,
        tasks=store.tasks,
        kanban=store.kanban(task_filter),
        forest=store.view(task_filter),
    )


@router.put("/tasks/scope", response_model=MutationOut)
async def set_scope(body: ScopeIn, session: Session = Depends(get_session)):
    return _done(session, await session.tasks.set_scope(body.scope))


@router.post("/tasks/refetch", response_model=MutationOut)
async def refetch_tasks(session: Session = Depends(get_session)):
    return _done(session, await session.tasks.refetch())


@router.post("/tasks", response_model=MutationOut, status_code=201)
async def create_task(body: TaskCreate, session: Session = Depends(get_session)):
    return _done(session, await session.tasks.add_task(body))


@router.post("/tasks/parent", response_model=MutationOut)
async def set_parent(body: ParentChange, session: Session = Depends(get_session)):
    return _done(session, await session.tasks.set_parent_task(body.task_ids, body.parent_id))


@router.patch("/tasks/{task_id}", response_model=MutationOut)
async def update_task(task_id: str, body: TaskUpdate, session: Session = Depends(get_session)):
    return _done(session, await session.tasks.update_task(task_id, body))


@router.put("/tasks/{task_id}/status", response_model=MutationOut)
async def update_status(task_id: str, body: StatusChange, session: Session = Depends(get_session)):
    return _done(session, await session.tasks.update_task_status(task_id, body.status_id))


@router.delete("/tasks/{task_id}", response_model=MutationOut)
async def delete_task(task_id: str, session: Session = Depends(get_session)):
    return _done(session, await session.tasks.delete_task(task_id))


# --- Selection ---


@router.get("/selection", response_model=SelectionOut)
def get_selection(session: Session = Depends(get_session)):
    return SelectionOut(task_ids=session.selection.all())


@router.post("/selection/{task_id}/toggle", response_model=SelectionOut)
def toggle_selection(task_id: str, session: Session = Depends(get_session)):
    try:
        session.selection.toggle(task_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Task {task_id} is not loaded") from None
    return SelectionOut(task_ids=session.selection.all())


@router.delete("/selection", response_model=SelectionOut)
def clear_selection(session: Session = Depends(get_session)):
    session.selection.clear()
    return SelectionOut(task_ids=[])


@router.post("/selection/parent", response_model=MutationOut)
async def reparent_selection(body: SelectionParent, session: Session = Depends(get_session)):
    return _done(session, await session.tasks.reparent_selection(body.parent_id))
