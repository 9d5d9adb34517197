"""
Meeting Lifecycle Manager.

Decides what happens to a session's Teams meeting after a change, then
carries it out: tear the old meeting down, create a new one at the
session's (possibly new) slot, and store the new join link.

Everything here is best-effort. Provider failures are logged and reported
on the MeetingOutcome, never raised.
"""

import logging
from dataclasses import dataclass

from .cohorts import parse_table_name
from .config import get_meeting_call_timeout, get_meeting_duration_minutes
from .contacts import ContactDirectory
from .enums import Criticality, MeetingAction
from .external import guarded_call
from .session_store import SessionStore
from .sessions import Contact, Session
from .teams import create_online_meeting, delete_meeting_by_join_url
from .timezone import meeting_window

logger = logging.getLogger(__name__)


class TeamsMeetingProvider:
    """Meeting provider backed by Microsoft Teams."""

    async def create_meeting(self, subject, start, end, attendee_emails):
        return await create_online_meeting(subject, start, end, attendee_emails)

    async def delete_meeting(self, join_url):
        return await delete_meeting_by_join_url(join_url)


@dataclass
class MeetingOutcome:
    action: MeetingAction = MeetingAction.none
    deleted: bool = False
    created: bool = False
    cleared: bool = False
    new_link: str | None = None

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "deleted": self.deleted,
            "created": self.created,
            "cleared": self.cleared,
            "new_link": self.new_link,
        }


def build_meeting_subject(table_name: str, subject_name: str | None) -> str:
    """Meeting title, e.g. "Cohort Basic 6.0 - Arrays"."""
    subject = subject_name or "Session"
    cohort = parse_table_name(table_name)
    if cohort is None:
        return f"Cohort - {subject}"
    return f"Cohort {cohort.label} - {subject}"


def build_attendee_emails(
    mentor: Contact | None, students: list[Contact]
) -> list[str]:
    """Effective mentor first, then students; invalid and repeated addresses dropped."""
    emails: list[str] = []
    seen: set[str] = set()
    for contact in [mentor, *students]:
        if contact is None or not contact.email or "@" not in contact.email:
            continue
        key = contact.email.strip().lower()
        if key not in seen:
            seen.add(key)
            emails.append(contact.email.strip())
    return emails


def plan_meeting_action(
    session: Session,
    previous_link: str | None,
    *,
    is_new: bool = False,
    regenerate: bool = True,
) -> MeetingAction:
    """
    Decide the meeting action for a changed session.

    Args:
        session: The session after the change
        previous_link: Meeting link stored before the change
        is_new: The session was just created
        regenerate: False to keep an existing meeting as it is
    """
    if session.is_contest:
        return MeetingAction.clear if previous_link else MeetingAction.none
    if previous_link and regenerate:
        return MeetingAction.regenerate
    if is_new and not previous_link:
        return MeetingAction.create
    return MeetingAction.none


async def reconcile_meeting(
    table_name: str,
    session: Session,
    previous_link: str | None,
    *,
    store: SessionStore,
    directory: ContactDirectory,
    provider=None,
    is_new: bool = False,
    regenerate: bool = True,
    duration_minutes: int | None = None,
) -> MeetingOutcome:
    """
    Bring a session's meeting in line with its persisted state.

    The old meeting is always deleted before a new one is created. A failed
    delete doesn't block creation; a failed create leaves the stored link
    as it was.

    Args:
        table_name: Schedule table of the session
        session: The session after its field changes were persisted
        previous_link: Meeting link stored before the change
        store: Session store, used to save the new link
        directory: Contact lookups for attendee emails
        provider: Meeting provider (default Teams)
        is_new: The session was just created
        regenerate: False to keep an existing meeting as it is
        duration_minutes: Meeting length (default MEETING_DURATION_MINUTES)
    """
    provider = provider or TeamsMeetingProvider()
    action = plan_meeting_action(
        session, previous_link, is_new=is_new, regenerate=regenerate
    )
    outcome = MeetingOutcome(action=action)
    context = {"table_name": table_name, "session_id": session.id}

    if action == MeetingAction.none:
        return outcome

    if previous_link:
        outcome.deleted = await guarded_call(
            "delete_meeting",
            lambda: provider.delete_meeting(previous_link),
            criticality=Criticality.best_effort,
            timeout=get_meeting_call_timeout(),
            fallback=False,
            context=context,
        )
        if not outcome.deleted:
            logger.warning(
                f"Old meeting for session {session.id} in {table_name} was not deleted"
            )

    if action == MeetingAction.clear:
        # The link itself is cleared together with the session fields
        outcome.cleared = True
        return outcome

    if session.date is None:
        logger.warning(f"Session {session.id} has no date, not creating a meeting")
        return outcome

    start, end = meeting_window(
        session.date,
        session.time,
        duration_minutes or get_meeting_duration_minutes(),
    )
    mentor = await directory.mentor(session.effective_mentor_id)
    students = await directory.students()
    attendees = build_attendee_emails(mentor, students)
    subject = build_meeting_subject(table_name, session.subject_name)

    new_link = await guarded_call(
        "create_meeting",
        lambda: provider.create_meeting(subject, start, end, attendees),
        criticality=Criticality.best_effort,
        timeout=get_meeting_call_timeout(),
        context=context,
    )
    if not new_link:
        logger.warning(
            f"No new meeting for session {session.id} in {table_name}, keeping stored link"
        )
        return outcome

    outcome.created = True
    saved = await guarded_call(
        "save_meeting_link",
        lambda: _save_link(store, table_name, session, new_link),
        criticality=Criticality.best_effort,
        fallback=False,
        context=context,
    )
    if saved:
        outcome.new_link = new_link
    return outcome


async def _save_link(
    store: SessionStore, table_name: str, session: Session, link: str
) -> bool:
    await store.update(table_name, session.selector(), {"meeting_link": link})
    return True
