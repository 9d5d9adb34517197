"""
Teams meeting API routes.

Endpoints:
- POST /api/teams/create-meeting - Create a standalone Teams meeting
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import pytz
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.config import get_schedule_timezone
from core.external import log_external_error
from core.teams import create_teams_meeting, is_teams_configured
from core.timezone import localize

router = APIRouter(prefix="/api/teams", tags=["teams"])


class CreateMeetingRequest(BaseModel):
    """
    Request body for a standalone meeting.

    Naive start/end times are read in time_zone (default SCHEDULE_TIMEZONE).
    """

    model_config = ConfigDict(populate_by_name=True)

    subject: str | None = None
    start_date_time: datetime | None = Field(None, alias="startDateTime")
    end_date_time: datetime | None = Field(None, alias="endDateTime")
    time_zone: str | None = Field(None, alias="timeZone")
    attendees: list[str] = []


@router.post("/create-meeting")
async def create_meeting(body: CreateMeetingRequest) -> dict[str, Any]:
    """Create a Teams meeting plus an invite event for the attendees."""
    if not body.subject or not body.start_date_time or not body.end_date_time:
        raise HTTPException(
            400, "Missing required fields: subject, startDateTime, endDateTime"
        )
    if not is_teams_configured():
        raise HTTPException(503, "Teams is not configured")

    time_zone = body.time_zone or get_schedule_timezone()
    try:
        start = localize(body.start_date_time, time_zone)
        end = localize(body.end_date_time, time_zone)
    except pytz.UnknownTimeZoneError:
        raise HTTPException(400, f"Unknown time zone: {time_zone}")
    if end <= start:
        raise HTTPException(400, "endDateTime must be after startDateTime")

    try:
        meeting = await create_teams_meeting(
            body.subject, start, end, body.attendees, time_zone
        )
    except Exception as e:
        log_external_error(e, "create_meeting", {"subject": body.subject})
        raise HTTPException(500, f"Failed to create meeting: {e}")

    if meeting is None:
        raise HTTPException(503, "Teams is not configured")

    return {
        "success": True,
        "joinUrl": meeting.join_url,
        "meetingId": meeting.meeting_id,
        "eventId": meeting.event_id,
    }
