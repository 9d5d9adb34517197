"""Enum definitions shared across the session reconciliation core."""

import enum


class SessionType(str, enum.Enum):
    normal = "normal"
    contest = "contest"

    @classmethod
    def parse(cls, value: str | None) -> "SessionType":
        """Parse a stored session type. Anything that isn't a contest is a normal class."""
        if value and value.strip().lower() == cls.contest.value:
            return cls.contest
        return cls.normal


class ChangeKind(str, enum.Enum):
    """Classification of a session change, in priority order."""

    new_session = "new_session"
    mentor_swapped = "mentor_swapped"
    mentor_reassigned = "mentor_reassigned"
    reschedule = "reschedule"
    details_updated = "details_updated"


class Audience(str, enum.Enum):
    student = "student"
    mentor = "mentor"
    admin = "admin"


class MessageVariant(str, enum.Enum):
    """Message keys in messages.yaml."""

    rescheduled = "rescheduled"
    details_updated = "details_updated"
    mentor_removed = "mentor_removed"
    mentor_assigned = "mentor_assigned"
    coverage_started = "coverage_started"  # original mentor: someone covers you
    coverage_ended = "coverage_ended"  # original mentor: back on duty
    coverage_assigned = "coverage_assigned"
    coverage_removed = "coverage_removed"
    mentor_changed = "mentor_changed"  # students: new covering mentor
    admin_alert = "admin_alert"


class Criticality(str, enum.Enum):
    """How a failing external call affects the surrounding operation."""

    mandatory = "mandatory"
    best_effort = "best_effort"


class SessionChangeState(str, enum.Enum):
    received = "received"
    classified = "classified"
    conflict_checked = "conflict_checked"
    persisted = "persisted"
    meeting_reconciled = "meeting_reconciled"
    notifications_dispatched = "notifications_dispatched"
    flags_reset = "flags_reset"
    done = "done"
    rejected_bad_input = "rejected_bad_input"
    rejected_not_found = "rejected_not_found"
    rejected_conflict = "rejected_conflict"


class MeetingAction(str, enum.Enum):
    """What happens to a session's meeting after a change."""

    none = "none"
    clear = "clear"  # delete, never recreate (contest sessions)
    regenerate = "regenerate"  # delete old, create new
    create = "create"
