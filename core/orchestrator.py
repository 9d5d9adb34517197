"""
Session Change Orchestrator.

One state machine for every kind of session change (reschedule, mentor
reassignment, mentor swap, details edit, new session):

    received -> classified -> conflict_checked -> persisted
             -> meeting_reconciled -> notifications_dispatched
             -> flags_reset -> done

Bad input, unknown sessions and mentor double-bookings reject the change
before anything is written. Once the session fields are persisted,
everything else is best-effort: failures are logged and show up as counts
on the result, never as an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

import sentry_sdk

from .cohorts import is_schedule_table
from .config import get_swap_meeting_duration_minutes
from .conflicts import find_mentor_conflict
from .contacts import ContactDirectory
from .enums import ChangeKind, Criticality, SessionChangeState, SessionType
from .errors import BadInputError, MentorConflictError, SessionChangeError
from .external import guarded_call
from .meetings import MeetingOutcome, reconcile_meeting
from .notifications import (
    ChangeSummary,
    DelayPolicy,
    DispatchReport,
    NotificationChannels,
    build_change_context,
    dispatch_notifications,
    resolve_recipients,
)
from .session_store import SessionStore, session_lock
from .sessions import (
    Session,
    SessionSelector,
    parse_date,
    parse_time,
    weekday_name,
)

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


# Marks a SessionChange field the caller didn't ask to change
# (None is a real value: it clears swapped_mentor_id)
UNSET: Any = _Unset()

RESCHEDULE_FIELDS = ("date", "time")


def _optional_int(value: Any, name: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadInputError(f"Invalid {name}: {value!r}")


def _session_type(value: Any) -> SessionType:
    try:
        return SessionType(str(value).strip().lower())
    except ValueError:
        raise BadInputError(f"Invalid session type: {value!r}")


@dataclass
class SessionChange:
    """A requested change to one session. Fields left UNSET stay as they are."""

    date: Any = UNSET
    time: Any = UNSET
    mentor_id: Any = UNSET
    swapped_mentor_id: Any = UNSET
    subject_name: Any = UNSET
    subject_topic: Any = UNSET
    session_type: Any = UNSET
    is_new_session: bool = False
    regenerate_meeting: bool = True
    meeting_duration_minutes: int | None = None
    changed_by: str | None = None

    def to_patch(self, session: Session) -> dict[str, Any]:
        """
        Normalize the requested values and keep the ones that differ from the session.

        A new date also sets the weekday name.

        Raises:
            BadInputError: malformed values, a cleared date or mentor, or a
                mentor asked to cover their own session
        """
        requested: dict[str, Any] = {}

        if self.date is not UNSET:
            new_date = parse_date(self.date)
            if new_date is None:
                raise BadInputError("Session date can't be cleared")
            requested["date"] = new_date
        if self.time is not UNSET:
            new_time = parse_time(self.time)
            if new_time is None:
                raise BadInputError("Session time can't be cleared")
            requested["time"] = new_time
        if self.mentor_id is not UNSET:
            mentor_id = _optional_int(self.mentor_id, "mentor id")
            if mentor_id is None:
                raise BadInputError("Session mentor can't be cleared")
            requested["mentor_id"] = mentor_id
        if self.swapped_mentor_id is not UNSET:
            requested["swapped_mentor_id"] = _optional_int(
                self.swapped_mentor_id, "swapped mentor id"
            )
        if self.subject_name is not UNSET:
            requested["subject_name"] = self.subject_name
        if self.subject_topic is not UNSET:
            requested["subject_topic"] = self.subject_topic
        if self.session_type is not UNSET:
            requested["session_type"] = _session_type(self.session_type)

        patch = {
            attr: value
            for attr, value in requested.items()
            if getattr(session, attr) != value
        }
        if "date" in patch:
            patch["day"] = weekday_name(patch["date"])

        owner = patch.get("mentor_id", session.mentor_id)
        cover = patch.get("swapped_mentor_id", session.swapped_mentor_id)
        if cover is not None and cover == owner:
            raise BadInputError("A mentor can't cover their own session")

        return patch


def classify_change(
    patch: dict[str, Any], is_new_session: bool = False
) -> tuple[ChangeKind, bool]:
    """
    Classify a change by its most significant field.

    Priority: new session, swap, reassignment, reschedule, details.

    Returns:
        (kind, rescheduled) where rescheduled says the date or time moved,
        whatever the kind
    """
    rescheduled = any(name in patch for name in RESCHEDULE_FIELDS)
    if is_new_session:
        kind = ChangeKind.new_session
    elif "swapped_mentor_id" in patch:
        kind = ChangeKind.mentor_swapped
    elif "mentor_id" in patch:
        kind = ChangeKind.mentor_reassigned
    elif rescheduled:
        kind = ChangeKind.reschedule
    else:
        kind = ChangeKind.details_updated
    return kind, rescheduled


def should_notify(kind: ChangeKind, before: Session) -> bool:
    """
    Whether a change is announced right away.

    Swaps always are. Anything else only if the session was already
    announced; otherwise the periodic announcer covers the final state.
    """
    if kind == ChangeKind.new_session:
        return False
    return kind == ChangeKind.mentor_swapped or before.already_announced


@dataclass
class SessionChangeResult:
    table_name: str
    session_id: int | None = None
    kind: ChangeKind | None = None
    rescheduled: bool = False
    changed_fields: list[str] = field(default_factory=list)
    states: list[SessionChangeState] = field(
        default_factory=lambda: [SessionChangeState.received]
    )
    meeting: MeetingOutcome = field(default_factory=MeetingOutcome)
    dispatch: DispatchReport | None = None
    flags_reset: bool = False
    session: Session | None = None

    @property
    def state(self) -> SessionChangeState:
        return self.states[-1]

    def advance(self, state: SessionChangeState) -> None:
        self.states.append(state)

    def to_dict(self) -> dict:
        return {
            "table_name": self.table_name,
            "session_id": self.session_id,
            "kind": self.kind.value if self.kind else None,
            "rescheduled": self.rescheduled,
            "changed_fields": self.changed_fields,
            "states": [state.value for state in self.states],
            "meeting": self.meeting.to_dict(),
            "notifications": self.dispatch.to_dict() if self.dispatch else None,
            "flags_reset": self.flags_reset,
            "meeting_link": self.session.meeting_link if self.session else None,
        }


async def _fetch(store: SessionStore, table_name: str, selector: SessionSelector):
    return await guarded_call(
        "find_session",
        lambda: store.find(table_name, selector),
        criticality=Criticality.mandatory,
        context={"table_name": table_name},
    )


async def _persist(
    store: SessionStore, table_name: str, session: Session, patch: dict
) -> None:
    await guarded_call(
        "update_session",
        lambda: store.update(table_name, session.selector(), patch),
        criticality=Criticality.mandatory,
        context={"table_name": table_name, "session_id": session.id},
    )


async def _reset_flags(store: SessionStore, table_name: str, session: Session) -> bool:
    async def reset():
        await store.update(
            table_name,
            session.selector(),
            {"email_sent": False, "whatsapp_sent": False},
        )
        return True

    return await guarded_call(
        "reset_notification_flags",
        reset,
        criticality=Criticality.best_effort,
        fallback=False,
        context={"table_name": table_name, "session_id": session.id},
    )


async def apply_session_change(
    table_name: str,
    selector: SessionSelector,
    change: SessionChange,
    *,
    store: SessionStore | None = None,
    provider=None,
    channels: NotificationChannels | None = None,
    delays: DelayPolicy | None = None,
) -> SessionChangeResult:
    """
    Apply a change to one session and carry out its consequences.

    Args:
        table_name: Cohort schedule table, e.g. "basic6_0_schedule"
        selector: Which session (by id, (date, time) or (date, mentor))
        change: Requested field values
        store: Session store (default PostgreSQL)
        provider: Meeting provider (default Teams)
        channels: Notification senders (default SendGrid + WhatsApp)
        delays: Pause between notifications (default from settings)

    Returns:
        What happened: classification, meeting outcome, notification
        counts, whether the notification flags were reset

    Raises:
        BadInputError: malformed table name or values
        SessionNotFoundError: selector matched zero or several sessions
        MentorConflictError: the new effective mentor is busy at that slot
    """
    store = store or SessionStore()
    result = SessionChangeResult(table_name=table_name)

    try:
        if not table_name or not is_schedule_table(table_name):
            raise BadInputError(f"Not a schedule table: {table_name!r}")

        located = await _fetch(store, table_name, selector)
        async with session_lock(table_name, located.id):
            # Re-read under the lock so concurrent changes see each other
            before = await _fetch(store, table_name, located.selector())
            await _run(
                result, table_name, before, change, store, provider, channels, delays
            )
    except SessionChangeError as e:
        logger.info(f"Session change rejected ({e.state.value}) in {table_name}: {e}")
        raise

    return result


async def _run(
    result: SessionChangeResult,
    table_name: str,
    before: Session,
    change: SessionChange,
    store: SessionStore,
    provider,
    channels: NotificationChannels | None,
    delays: DelayPolicy | None,
) -> None:
    result.session_id = before.id

    patch = change.to_patch(before)
    kind, rescheduled = classify_change(patch, change.is_new_session)
    result.kind = kind
    result.rescheduled = rescheduled
    result.changed_fields = sorted(patch)
    result.advance(SessionChangeState.classified)

    after = replace(before, **patch)

    if after.effective_mentor_id != before.effective_mentor_id:
        conflict = await find_mentor_conflict(
            store,
            after.effective_mentor_id,
            after.date,
            after.time,
            exclude=(table_name, before.id),
        )
        if conflict:
            raise MentorConflictError(conflict)
        result.advance(SessionChangeState.conflict_checked)

    persisted = dict(patch)
    if after.is_contest and before.meeting_link:
        persisted["meeting_link"] = None
        after = replace(after, meeting_link=None)

    if persisted:
        await _persist(store, table_name, before, persisted)
        logger.info(
            f"Session {before.id} in {table_name} updated ({kind.value}): "
            f"{', '.join(sorted(persisted))}"
        )
        result.advance(SessionChangeState.persisted)

    if not persisted and not change.is_new_session:
        result.session = after
        result.advance(SessionChangeState.done)
        return

    directory = ContactDirectory(store, table_name)
    try:
        result.meeting = await reconcile_meeting(
            table_name,
            after,
            before.meeting_link,
            store=store,
            directory=directory,
            provider=provider,
            is_new=change.is_new_session,
            regenerate=change.regenerate_meeting,
            duration_minutes=change.meeting_duration_minutes,
        )
    except Exception as e:
        logger.error(f"Reconciling the meeting for session {before.id} failed: {e}")
        sentry_sdk.capture_exception(e)
        result.meeting = MeetingOutcome()
    if result.meeting.new_link:
        after = replace(after, meeting_link=result.meeting.new_link)
    result.session = after
    result.advance(SessionChangeState.meeting_reconciled)

    if not patch:
        result.advance(SessionChangeState.done)
        return

    try:
        if should_notify(kind, before):
            summary = ChangeSummary(
                table_name=table_name,
                kind=kind,
                before=before,
                after=after,
                rescheduled=rescheduled,
                changed_by=change.changed_by,
            )
            recipients = await resolve_recipients(summary, directory)
            context = await build_change_context(summary, directory)
            result.dispatch = await dispatch_notifications(
                recipients, context, channels=channels, delays=delays
            )
            result.advance(SessionChangeState.notifications_dispatched)
        else:
            logger.info(
                f"Session {before.id} not announced yet, leaving notifications "
                "to the periodic announcer"
            )
    except Exception as e:
        logger.error(f"Notifying about session {before.id} failed: {e}")
        sentry_sdk.capture_exception(e)
    finally:
        if before.already_announced:
            result.flags_reset = await _reset_flags(store, table_name, before)
            if result.flags_reset:
                result.session = replace(
                    result.session, email_sent=False, whatsapp_sent=False
                )
                result.advance(SessionChangeState.flags_reset)

    result.advance(SessionChangeState.done)


async def reschedule_session(
    table_name: str,
    session_id: int,
    new_date: date | str,
    new_time: Any = None,
    *,
    changed_by: str | None = None,
    **collaborators,
) -> SessionChangeResult:
    """
    Move a session to a new date (and optionally a new time).

    The weekday name follows the date; the stored time is kept when no
    new time is given.
    """
    if not new_date:
        raise BadInputError("New date is required")
    change = SessionChange(
        date=new_date,
        time=new_time if new_time not in (None, "") else UNSET,
        changed_by=changed_by,
    )
    return await apply_session_change(
        table_name, SessionSelector.by_id(session_id), change, **collaborators
    )


async def swap_mentor(
    table_name: str,
    session_id: int,
    swapped_mentor_id: int | None,
    *,
    swapped_by: str | None = None,
    meeting_duration_minutes: int | None = None,
    **collaborators,
) -> SessionChangeResult:
    """
    Have another mentor cover a session, or end the cover with None.

    The session keeps its owner. Regenerated meetings use the swap meeting
    length unless one is given.
    """
    change = SessionChange(
        swapped_mentor_id=swapped_mentor_id,
        meeting_duration_minutes=(
            meeting_duration_minutes or get_swap_meeting_duration_minutes()
        ),
        changed_by=swapped_by,
    )
    return await apply_session_change(
        table_name, SessionSelector.by_id(session_id), change, **collaborators
    )
