"""Database queries for cohort schedule tables."""

from datetime import date, time
from typing import Any

from sqlalchemy import and_, inspect, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..cohorts import is_schedule_table
from ..tables import schedule_table


def _filters(table, criteria: dict[str, Any]):
    return and_(*(table.c[column] == value for column, value in criteria.items()))


async def find_session_rows(
    conn: AsyncConnection,
    table_name: str,
    criteria: dict[str, Any],
) -> list[dict]:
    """
    Get the sessions matching column filters.

    At most two rows are fetched; callers only need to tell
    "none", "exactly one" and "ambiguous" apart.
    """
    table = schedule_table(table_name)
    result = await conn.execute(
        select(table).where(_filters(table, criteria)).order_by(table.c.id).limit(2)
    )
    return [dict(row._mapping) for row in result]


async def find_sessions_at(
    conn: AsyncConnection,
    table_name: str,
    day: date,
    start: time,
) -> list[dict]:
    """Get every session in a schedule table held at (date, time)."""
    table = schedule_table(table_name)
    result = await conn.execute(
        select(table)
        .where(table.c.date == day)
        .where(table.c.time == start)
        .order_by(table.c.id)
    )
    return [dict(row._mapping) for row in result]


async def update_session_row(
    conn: AsyncConnection,
    table_name: str,
    criteria: dict[str, Any],
    values: dict[str, Any],
) -> int:
    """
    Update the sessions matching column filters.

    Returns:
        Number of rows updated
    """
    table = schedule_table(table_name)
    result = await conn.execute(
        update(table).where(_filters(table, criteria)).values(**values)
    )
    return result.rowcount


async def list_schedule_tables(conn: AsyncConnection) -> list[str]:
    """Get the names of all cohort schedule tables, sorted by name."""
    names = await conn.run_sync(
        lambda sync_conn: inspect(sync_conn).get_table_names()
    )
    return sorted(name for name in names if is_schedule_table(name))
