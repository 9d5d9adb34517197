"""Query layer for database operations using SQLAlchemy Core."""

from .people import get_administrators, get_cohort_students, get_mentor
from .sessions import (
    find_session_rows,
    find_sessions_at,
    list_schedule_tables,
    update_session_row,
)

__all__ = [
    # Sessions
    "find_session_rows",
    "find_sessions_at",
    "update_session_row",
    "list_schedule_tables",
    # People
    "get_mentor",
    "get_cohort_students",
    "get_administrators",
]
