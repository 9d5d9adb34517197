"""
Session Store Adapter.

Uniform reads and updates of session records in cohort schedule tables,
plus the roster lookups used to notify people about them. The orchestrator
only talks to the store through this class, so tests can swap in a fake.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from datetime import date, time
from typing import Any, AsyncIterator

from .cohorts import Cohort, is_schedule_table
from .database import get_connection, get_transaction
from .errors import BadInputError, SessionNotFoundError
from .queries import (
    find_session_rows,
    find_sessions_at,
    get_administrators,
    get_cohort_students,
    get_mentor,
    list_schedule_tables,
    update_session_row,
)
from .sessions import Contact, Session, SessionSelector, to_columns

logger = logging.getLogger(__name__)


def _check_table_name(table_name: str) -> None:
    if not table_name or not is_schedule_table(table_name):
        raise BadInputError(f"Not a schedule table: {table_name!r}")


class SessionStore:
    """Schedule tables and rosters in the PostgreSQL database."""

    async def find(self, table_name: str, selector: SessionSelector) -> Session:
        """
        Get exactly one session.

        Raises:
            BadInputError: table name isn't a schedule table
            SessionNotFoundError: zero rows, or more than one, match the selector
        """
        _check_table_name(table_name)
        async with get_connection() as conn:
            rows = await find_session_rows(conn, table_name, selector.criteria())

        if not rows:
            raise SessionNotFoundError(f"Session not found in {table_name}")
        if len(rows) > 1:
            raise SessionNotFoundError(
                f"Session selector is ambiguous in {table_name}"
            )
        return Session.from_row(rows[0])

    async def update(
        self,
        table_name: str,
        selector: SessionSelector,
        patch: dict[str, Any],
    ) -> None:
        """
        Apply a Session attribute patch to exactly one row.

        The update is rolled back unless it touched exactly one row.

        Raises:
            SessionNotFoundError: zero rows, or more than one, would be updated
        """
        _check_table_name(table_name)
        if not patch:
            return
        values = to_columns(patch)
        async with get_transaction() as conn:
            count = await update_session_row(
                conn, table_name, selector.criteria(), values
            )
            if count != 1:
                raise SessionNotFoundError(
                    f"Expected to update one session in {table_name}, matched {count}"
                )

    async def list_schedule_tables(self) -> list[str]:
        async with get_connection() as conn:
            return await list_schedule_tables(conn)

    async def sessions_at(
        self, table_name: str, day: date, start: time
    ) -> list[Session]:
        async with get_connection() as conn:
            rows = await find_sessions_at(conn, table_name, day, start)
        return [Session.from_row(row) for row in rows]

    async def get_mentor(self, mentor_id: int) -> Contact | None:
        async with get_connection() as conn:
            return await get_mentor(conn, mentor_id)

    async def get_cohort_students(self, cohort: Cohort) -> list[Contact]:
        async with get_connection() as conn:
            return await get_cohort_students(conn, cohort.type, cohort.number)

    async def get_administrators(self) -> list[Contact]:
        async with get_connection() as conn:
            return await get_administrators(conn)


# Per-session locks, dropped once nobody holds or waits on them
_session_locks: "weakref.WeakValueDictionary[tuple[str, int], asyncio.Lock]" = (
    weakref.WeakValueDictionary()
)


@asynccontextmanager
async def session_lock(table_name: str, session_id: int) -> AsyncIterator[None]:
    """
    Serialize changes to one session within this process.

    Usage:
        async with session_lock("basic6_0_schedule", 12):
            ...
    """
    key = (table_name, session_id)
    lock = _session_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _session_locks[key] = lock
    async with lock:
        yield
