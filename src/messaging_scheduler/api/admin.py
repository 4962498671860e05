"""Operator endpoints for inspecting sessions and the scheduler."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from messaging_scheduler.api.auth import require_auth
from messaging_scheduler.api.models import session_view_payload

if TYPE_CHECKING:
    from messaging_scheduler.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_auth)])


@router.get("/sessions")
async def list_sessions(request: Request) -> dict[str, object]:
    """Return every live session with its status."""
    container: AppContainer = request.app.state.container
    views = container.session_service.list_sessions()
    return {"sessions": [session_view_payload(view) for view in views]}


@router.get("/scheduler")
async def scheduler_status(request: Request) -> dict[str, object]:
    """Return the scheduler state and how many sessions it is tracking."""
    container: AppContainer = request.app.state.container
    pending = sum(
        1
        for session in container.registry.all_sessions()
        if session.scheduled_work is not None
    )
    return {
        "state": container.scheduler.state.value,
        "intervalSeconds": container.scheduler.interval_seconds,
        "sessionsWithScheduledWork": pending,
    }
