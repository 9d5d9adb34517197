"""
Cohort identity, encoded in schedule table names.

Each cohort's sessions live in a table named "<type><major>_<minor>_schedule",
e.g. "basic6_0_schedule" is cohort type "Basic", number "6.0".
"""

import re
from dataclasses import dataclass

from .tables import SCHEDULE_TABLE_SUFFIX

TABLE_NAME_PATTERN = re.compile(r"^([a-zA-Z]+)(\d+)_(\d+)_schedule$")
COHORT_NUMBER_PATTERN = re.compile(r"^(\d+)\.(\d+)$")


@dataclass(frozen=True)
class Cohort:
    """A numbered batch of students sharing one schedule table."""

    type: str  # "Basic"
    number: str  # "6.0"

    @property
    def label(self) -> str:
        return f"{self.type} {self.number}"

    @property
    def table_name(self) -> str:
        return build_table_name(self.type, self.number)


def parse_table_name(table_name: str) -> Cohort | None:
    """
    Parse a schedule table name into its cohort.

    Returns None for names that don't follow the convention; callers treat
    that as "cohort unresolvable" and skip student-facing work.
    """
    match = TABLE_NAME_PATTERN.match(table_name or "")
    if not match:
        return None
    type_raw, major, minor = match.groups()
    return Cohort(type=type_raw.capitalize(), number=f"{major}.{minor}")


def build_table_name(cohort_type: str, cohort_number: str) -> str:
    """Reconstruct the schedule table name for a cohort ("Basic", "6.0" -> basic6_0_schedule)."""
    match = COHORT_NUMBER_PATTERN.match(cohort_number.strip())
    if not cohort_type.isalpha() or not match:
        raise ValueError(f"Not a valid cohort: {cohort_type!r} {cohort_number!r}")
    major, minor = match.groups()
    return f"{cohort_type.lower()}{major}_{minor}{SCHEDULE_TABLE_SUFFIX}"


def is_schedule_table(table_name: str) -> bool:
    return table_name.endswith(SCHEDULE_TABLE_SUFFIX)


def cohort_label_for_table(table_name: str) -> str:
    """Human-readable cohort label, falling back to the bare table name."""
    cohort = parse_table_name(table_name)
    if cohort:
        return cohort.label
    return table_name.removesuffix(SCHEDULE_TABLE_SUFFIX)
