"""
Errors that surface to callers of a session change.

Only these reject a request. Everything downstream of a persisted session
change (meetings, notifications, flag reset) is best-effort and is reported
as counts instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .enums import SessionChangeState

if TYPE_CHECKING:
    from core.conflicts import MentorConflict


class SessionChangeError(Exception):
    """Base class for rejected session changes."""

    status_code = 500
    state: SessionChangeState | None = None

    def to_detail(self) -> dict:
        return {"error": str(self)}


class BadInputError(SessionChangeError):
    """Required identifiers or fields are missing or malformed."""

    status_code = 400
    state = SessionChangeState.rejected_bad_input


class SessionNotFoundError(SessionChangeError):
    """The selector matched no session, or more than one."""

    status_code = 404
    state = SessionChangeState.rejected_not_found


class MentorConflictError(SessionChangeError):
    """The mentor is already committed to another session at the same slot."""

    status_code = 409
    state = SessionChangeState.rejected_conflict

    def __init__(self, conflict: MentorConflict):
        self.conflict = conflict
        super().__init__(
            f"Mentor {conflict.mentor_id} already has {conflict.subject_name or 'a session'} "
            f"for {conflict.cohort_label} at this time"
        )

    def to_detail(self) -> dict:
        return {
            "error": str(self),
            "conflict": {
                "table_name": self.conflict.table_name,
                "cohort": self.conflict.cohort_label,
                "subject_name": self.conflict.subject_name,
                "session_id": self.conflict.session_id,
            },
        }
