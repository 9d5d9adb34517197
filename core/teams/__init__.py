"""Microsoft Teams integration for session meetings."""

from .client import is_teams_configured
from .events import (
    TeamsMeeting,
    create_teams_meeting,
    create_online_meeting,
    delete_meeting_by_join_url,
    extract_meeting_thread_id,
    join_urls_match,
)

__all__ = [
    "TeamsMeeting",
    "create_teams_meeting",
    "is_teams_configured",
    "create_online_meeting",
    "delete_meeting_by_join_url",
    "extract_meeting_thread_id",
    "join_urls_match",
]
