"""Database queries for the people notified about session changes."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..sessions import Contact
from ..tables import administrators, mentors, students


async def get_mentor(conn: AsyncConnection, mentor_id: int) -> Contact | None:
    """Get a mentor's contact details, or None if the mentor doesn't exist."""
    result = await conn.execute(
        select(mentors).where(mentors.c.mentor_id == mentor_id)
    )
    row = result.mappings().first()
    if not row:
        return None
    return Contact(
        name=row["Name"] or f"Mentor {mentor_id}",
        email=row["Email address"],
        phone=row["Mobile number"],
        mentor_id=row["mentor_id"],
    )


async def get_cohort_students(
    conn: AsyncConnection,
    cohort_type: str,
    cohort_number: str,
) -> list[Contact]:
    """Get all students enrolled in a cohort, e.g. ("Basic", "6.0")."""
    result = await conn.execute(
        select(students)
        .where(students.c["Cohort Type"] == cohort_type)
        .where(students.c["Cohort Number"] == cohort_number)
        .order_by(students.c["Full Name"])
    )
    return [
        Contact(
            name=row["Full Name"] or "Student",
            email=row["Email"],
            phone=row["Phone Number"],
        )
        for row in result.mappings()
    ]


async def get_administrators(conn: AsyncConnection) -> list[Contact]:
    """Get every administrator (super mentor)."""
    result = await conn.execute(
        select(administrators).order_by(administrators.c.supermentor_id)
    )
    return [
        Contact(
            name=row["name"] or "Admin",
            email=row["email"],
            phone=row["phone_num"],
        )
        for row in result.mappings()
    ]
