"""Teams online meeting operations over Microsoft Graph."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import unquote

from ..config import get_schedule_timezone
from ..external import log_external_error
from .client import (
    GRAPH_API_URL,
    get_access_token,
    get_organizer_user_id,
    graph_client,
    is_teams_configured,
)

logger = logging.getLogger(__name__)

# Stable part of a Teams join URL; the rest varies with encoding and tenant params
THREAD_ID_PATTERN = re.compile(r"19:meeting_[a-zA-Z0-9_-]+@thread\.v2")

# How many of the organizer's most recent events are searched on delete
EVENT_SEARCH_LIMIT = 200


def extract_meeting_thread_id(join_url: str | None) -> str | None:
    """Pull the meeting thread id ("19:meeting_...@thread.v2") out of a join URL."""
    if not join_url:
        return None
    match = THREAD_ID_PATTERN.search(unquote(join_url))
    return match.group(0) if match else None


def join_urls_match(stored_url: str, candidate_url: str | None) -> bool:
    """Compare join URLs, tolerating different URL encodings of the same meeting."""
    if not candidate_url:
        return False
    if stored_url == candidate_url:
        return True
    stored_thread = extract_meeting_thread_id(stored_url)
    return stored_thread is not None and stored_thread == extract_meeting_thread_id(
        candidate_url
    )


def _local_datetime(value: datetime) -> str:
    """Wall-clock time for Graph event bodies, which carry the zone separately."""
    return value.strftime("%Y-%m-%dT%H:%M:%S")


@dataclass
class TeamsMeeting:
    join_url: str
    meeting_id: str
    event_id: str | None = None


async def create_teams_meeting(
    subject: str,
    start: datetime,
    end: datetime,
    attendee_emails: list[str],
    timezone: str | None = None,
) -> TeamsMeeting | None:
    """
    Create a Teams meeting and a calendar event inviting the attendees.

    Three Graph calls:
    1. create the online meeting (lobby bypass, organizer-only presenters,
       automatic recording)
    2. lock attendee mic and camera (best-effort)
    3. create the organizer's calendar event linked to the meeting, which
       sends invites (best-effort)

    Args:
        subject: Meeting title
        start: Start datetime (timezone-aware)
        end: End datetime (timezone-aware)
        attendee_emails: Invitees
        timezone: IANA zone for the calendar event (default SCHEDULE_TIMEZONE)

    Returns:
        The created meeting (event_id is None if the invite event failed),
        or None if Teams isn't configured

    Raises:
        httpx.HTTPError: if the meeting itself can't be created
    """
    if not is_teams_configured():
        logger.warning("Teams not configured, skipping meeting creation")
        return None

    timezone = timezone or get_schedule_timezone()
    user_id = get_organizer_user_id()

    async with graph_client() as client:
        token = await get_access_token(client)
        headers = {"Authorization": f"Bearer {token}"}

        response = await client.post(
            f"{GRAPH_API_URL}/users/{user_id}/onlineMeetings",
            headers=headers,
            json={
                "subject": subject,
                "startDateTime": start.isoformat(),
                "endDateTime": end.isoformat(),
                "lobbyBypassSettings": {
                    "scope": "everyone",
                    "isDialInBypassEnabled": True,
                },
                "autoAdmittedUsers": "everyone",
                "allowedPresenters": "organizer",
                "recordAutomatically": True,
                "isEntryExitAnnounced": False,
                "allowMeetingChat": "enabled",
                "allowTeamworkReactions": True,
            },
        )
        response.raise_for_status()
        meeting = response.json()
        join_url = meeting.get("joinUrl") or meeting.get("joinWebUrl")
        if not join_url:
            raise ValueError("Teams meeting created without a join URL")

        try:
            patch_response = await client.patch(
                f"{GRAPH_API_URL}/users/{user_id}/onlineMeetings/{meeting['id']}",
                headers=headers,
                json={
                    "allowAttendeeToEnableMic": False,
                    "allowAttendeeToEnableCamera": False,
                },
            )
            patch_response.raise_for_status()
        except Exception as e:
            log_external_error(
                e, "lock_meeting_media", {"meeting_id": meeting.get("id")}
            )

        event_id = None
        try:
            event_response = await client.post(
                f"{GRAPH_API_URL}/users/{user_id}/events",
                headers=headers,
                json={
                    "subject": subject,
                    "start": {"dateTime": _local_datetime(start), "timeZone": timezone},
                    "end": {"dateTime": _local_datetime(end), "timeZone": timezone},
                    "isOnlineMeeting": True,
                    "onlineMeetingProvider": "teamsForBusiness",
                    "onlineMeeting": {"joinUrl": join_url},
                    "attendees": [
                        {"emailAddress": {"address": email}, "type": "required"}
                        for email in attendee_emails
                    ],
                    "responseRequested": False,
                    "allowNewTimeProposals": False,
                },
            )
            event_response.raise_for_status()
            event_id = event_response.json().get("id")
        except Exception as e:
            log_external_error(
                e, "create_meeting_event", {"attendees": len(attendee_emails)}
            )

    logger.info(f"Created Teams meeting '{subject}' for {len(attendee_emails)} attendees")
    return TeamsMeeting(join_url=join_url, meeting_id=meeting["id"], event_id=event_id)


async def create_online_meeting(
    subject: str,
    start: datetime,
    end: datetime,
    attendee_emails: list[str],
    timezone: str | None = None,
) -> str | None:
    """Create a Teams meeting and return its join URL (None if Teams isn't configured)."""
    meeting = await create_teams_meeting(
        subject, start, end, attendee_emails, timezone
    )
    return meeting.join_url if meeting else None


async def delete_meeting_by_join_url(join_url: str) -> bool:
    """
    Delete the organizer's calendar event for a meeting.

    Searches the organizer's most recent events for one whose join URL
    matches, comparing meeting thread ids when the raw URLs differ.

    Returns:
        True if an event was found and deleted, False if none matched
        or Teams isn't configured

    Raises:
        httpx.HTTPError: if listing or deleting events fails
    """
    if not is_teams_configured():
        logger.warning("Teams not configured, skipping meeting deletion")
        return False

    user_id = get_organizer_user_id()

    async with graph_client() as client:
        token = await get_access_token(client)
        headers = {"Authorization": f"Bearer {token}"}

        response = await client.get(
            f"{GRAPH_API_URL}/users/{user_id}/events",
            headers=headers,
            params={
                "$select": "id,subject,isOnlineMeeting,onlineMeeting",
                "$top": str(EVENT_SEARCH_LIMIT),
                "$orderby": "start/dateTime desc",
            },
        )
        response.raise_for_status()

        for event in response.json().get("value", []):
            event_url = (event.get("onlineMeeting") or {}).get("joinUrl")
            if not join_urls_match(join_url, event_url):
                continue

            delete_response = await client.delete(
                f"{GRAPH_API_URL}/users/{user_id}/events/{event['id']}",
                headers=headers,
            )
            delete_response.raise_for_status()
            logger.info(f"Deleted Teams meeting event '{event.get('subject')}'")
            return True

    logger.info("No calendar event matched the stored meeting link")
    return False
