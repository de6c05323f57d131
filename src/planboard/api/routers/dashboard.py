"""Dashboard KPIs and the notification feed."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from planboard.api.deps import get_session
from planboard.services.dashboard import ConsolidatedKpis, ProjectKpis
from planboard.services.notifications import Notification
from planboard.session import Session

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=ProjectKpis | ConsolidatedKpis)
def get_dashboard(project_id: str | None = None, session: Session = Depends(get_session)):
    kpis = session.dashboard(project_id)
    if kpis is None:
        raise HTTPException(status_code=404, detail=f"Project '{project_id}' not found")
    return kpis


@router.get("/notifications", response_model=list[Notification])
def list_notifications(session: Session = Depends(get_session)):
    return session.notifications.items
