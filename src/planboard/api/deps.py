"""FastAPI dependency injection helpers."""

from __future__ import annotations

from fastapi import HTTPException, Request

from planboard.errors import NotFoundError, ValidationError
from planboard.services.outcome import Outcome
from planboard.session import Session


def get_session(request: Request) -> Session:
    return request.app.state.session


def raise_for_outcome(outcome: Outcome) -> None:
    """Turn a failed store operation into the matching HTTP error."""
    if outcome:
        return
    detail = str(outcome.error) if outcome.error else "Operation failed"
    if isinstance(outcome.error, NotFoundError):
        raise HTTPException(status_code=404, detail=detail)
    if isinstance(outcome.error, ValidationError):
        raise HTTPException(status_code=422, detail=detail)
    raise HTTPException(status_code=503, detail=detail)
