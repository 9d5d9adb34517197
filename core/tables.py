"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    Integer,
    MetaData,
    Table,
    Text,
    Time,
)

# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. MENTORS
# =====================================================
# Column names predate this service and contain spaces.
mentors = Table(
    "Mentor Details",
    metadata,
    Column("mentor_id", Integer, primary_key=True),
    Column("Name", Text),
    Column("Email address", Text),
    Column("Mobile number", Text),
)


# =====================================================
# 2. STUDENTS (onboarding roster)
# =====================================================
students = Table(
    "onboarding",
    metadata,
    Column("EnrollmentID", Text, primary_key=True),
    Column("Full Name", Text),
    Column("Email", Text),
    Column("Phone Number", Text),
    Column("Cohort Type", Text),
    Column("Cohort Number", Text),
)


# =====================================================
# 3. ADMINISTRATORS (super mentors)
# =====================================================
administrators = Table(
    "supermentor_details",
    metadata,
    Column("supermentor_id", Integer, primary_key=True),
    Column("name", Text),
    Column("email", Text),
    Column("phone_num", Text),
)


# =====================================================
# 4. SCHEDULE TABLES (one per cohort)
# =====================================================
# Every cohort owns a table named like "basic6_0_schedule" with the same
# shape. Table objects are built lazily and cached per name.
SCHEDULE_TABLE_SUFFIX = "_schedule"

_schedule_tables: dict[str, Table] = {}


def schedule_table(table_name: str) -> Table:
    """Get the Table for a cohort schedule, creating the definition on first use."""
    table = _schedule_tables.get(table_name)
    if table is not None:
        return table

    table = Table(
        table_name,
        metadata,
        Column("id", BigInteger, primary_key=True),
        Column("date", Date),
        Column("time", Time),
        Column("day", Text),
        Column("subject_name", Text),
        Column("subject_topic", Text),
        Column("session_type", Text),
        Column("mentor_id", Integer),
        Column("swapped_mentor_id", Integer),
        Column("teams_meeting_link", Text),
        Column("email_sent", Boolean, server_default="false"),
        Column("whatsapp_sent", Boolean, server_default="false"),
        Column("session_material", Text),
        Column("initial_session_material", Text),
        extend_existing=True,
    )
    _schedule_tables[table_name] = table
    return table
