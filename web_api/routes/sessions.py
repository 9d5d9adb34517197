"""
Session change API routes.

Endpoints:
- POST /api/session/reschedule - Move a session to a new date/time
- POST /api/session/swap-mentor - Set or remove a covering mentor
- POST /api/cohort/session-update - Generic session change
"""

import sys
from pathlib import Path
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.errors import SessionChangeError
from core.orchestrator import (
    UNSET,
    SessionChange,
    apply_session_change,
    reschedule_session,
    swap_mentor,
)
from core.sessions import SessionSelector

router = APIRouter(prefix="/api", tags=["sessions"])


class RescheduleRequest(BaseModel):
    """Request body for rescheduling a session."""

    table_name: str
    session_id: int
    new_date: str  # YYYY-MM-DD
    new_time: str | None = None  # HH:MM, keeps the stored time if omitted
    changed_by: str | None = None


class SwapMentorRequest(BaseModel):
    """Request body for a mentor swap. swapped_mentor_id=None removes the cover."""

    table_name: str
    session_id: int
    swapped_mentor_id: int | None = None
    swapped_by: str | None = None


class SessionUpdateRequest(BaseModel):
    """
    Request body for a generic session change.

    The session is identified by session_id, or (date, time), or
    (date, mentor_id). new_* fields and the remaining optional fields are
    only changed when present in the request; an explicit null
    swapped_mentor_id removes a cover.
    """

    table_name: str
    session_id: int | None = None
    date: str | None = None
    time: str | None = None
    mentor_id: int | None = None

    new_date: str | None = None
    new_time: str | None = None
    new_mentor_id: int | None = None
    swapped_mentor_id: int | None = None
    subject_name: str | None = None
    subject_topic: str | None = None
    session_type: str | None = None

    is_new_session: bool = False
    skip_meeting_regeneration: bool = False
    meeting_duration_minutes: int | None = None
    changed_by: str | None = None


def build_session_change(body: SessionUpdateRequest) -> SessionChange:
    """Turn request fields into a SessionChange; absent fields stay UNSET."""
    sent = body.model_fields_set

    def requested(field: str):
        return getattr(body, field) if field in sent else UNSET

    return SessionChange(
        date=requested("new_date"),
        time=requested("new_time"),
        mentor_id=requested("new_mentor_id"),
        swapped_mentor_id=requested("swapped_mentor_id"),
        subject_name=requested("subject_name"),
        subject_topic=requested("subject_topic"),
        session_type=requested("session_type"),
        is_new_session=body.is_new_session,
        regenerate_meeting=not body.skip_meeting_regeneration,
        meeting_duration_minutes=body.meeting_duration_minutes,
        changed_by=body.changed_by,
    )


@router.post("/session/reschedule")
async def reschedule(body: RescheduleRequest) -> dict[str, Any]:
    """Move a session; regenerates its meeting and re-announces it if needed."""
    try:
        result = await reschedule_session(
            body.table_name,
            body.session_id,
            body.new_date,
            body.new_time,
            changed_by=body.changed_by,
        )
    except SessionChangeError as e:
        raise HTTPException(e.status_code, e.to_detail())

    return {"success": True, **result.to_dict()}


@router.post("/session/swap-mentor")
async def swap(body: SwapMentorRequest) -> dict[str, Any]:
    """Have another mentor cover a session, or end the cover."""
    try:
        result = await swap_mentor(
            body.table_name,
            body.session_id,
            body.swapped_mentor_id,
            swapped_by=body.swapped_by,
        )
    except SessionChangeError as e:
        raise HTTPException(e.status_code, e.to_detail())

    return {"success": True, **result.to_dict()}


@router.post("/cohort/session-update")
async def session_update(body: SessionUpdateRequest) -> dict[str, Any]:
    """Apply any combination of date, time, mentor, cover and detail changes."""
    try:
        selector = SessionSelector.from_params(
            session_id=body.session_id,
            date=body.date,
            time=body.time,
            mentor_id=body.mentor_id,
        )
        result = await apply_session_change(
            body.table_name, selector, build_session_change(body)
        )
    except SessionChangeError as e:
        raise HTTPException(e.status_code, e.to_detail())

    return {"success": True, **result.to_dict()}
