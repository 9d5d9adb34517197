"""
Conflict Detector: finds mentor double-bookings across all cohort schedules.

A mentor is busy in a session at a slot when they own it and nobody covers
it, or when they are the one covering it. A mentor swapped away from their
own session is free at that slot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time

from .cohorts import cohort_label_for_table
from .enums import Criticality
from .external import guarded_call
from .session_store import SessionStore
from .sessions import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MentorConflict:
    mentor_id: int
    table_name: str
    cohort_label: str
    subject_name: str | None
    session_id: int


def mentor_is_busy(session: Session, mentor_id: int) -> bool:
    """Whether a session commits the mentor to its slot."""
    if session.swapped_mentor_id is None:
        return session.mentor_id == mentor_id
    return session.swapped_mentor_id == mentor_id


async def find_mentor_conflict(
    store: SessionStore,
    mentor_id: int | None,
    day: date | None,
    start: time | None,
    exclude: tuple[str, int] | None = None,
) -> MentorConflict | None:
    """
    Find the first session that already commits a mentor to (date, time).

    Tables are scanned in name order and the scan stops at the first hit.
    A table that can't be read is logged and skipped.

    Args:
        store: Session store
        mentor_id: Candidate mentor
        day: Slot date
        start: Slot time
        exclude: (table_name, session_id) of the session being changed

    Returns:
        The conflict, or None if the mentor is free (or there's no slot to check)
    """
    if mentor_id is None or day is None or start is None:
        return None

    table_names = await guarded_call(
        "list_schedule_tables",
        store.list_schedule_tables,
        criticality=Criticality.best_effort,
        fallback=[],
    )

    for table_name in table_names:
        sessions = await guarded_call(
            "scan_schedule_table",
            lambda: store.sessions_at(table_name, day, start),
            criticality=Criticality.best_effort,
            fallback=None,
            context={"table_name": table_name},
        )
        if sessions is None:
            logger.warning(f"Skipped {table_name} while checking mentor conflicts")
            continue

        for session in sessions:
            if exclude and (table_name, session.id) == exclude:
                continue
            if mentor_is_busy(session, mentor_id):
                conflict = MentorConflict(
                    mentor_id=mentor_id,
                    table_name=table_name,
                    cohort_label=cohort_label_for_table(table_name),
                    subject_name=session.subject_name,
                    session_id=session.id,
                )
                logger.info(
                    f"Mentor {mentor_id} is busy at {day} {start} in {table_name}"
                )
                return conflict

    return None
