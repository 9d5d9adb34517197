"""
Session entity and the ways a session can be addressed.

A session is one scheduled class in a cohort's schedule table. Rows come out
of the store as dicts keyed by column name; Session gives them typed
attributes and owns the effective-mentor rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from datetime import date, datetime, time
from typing import Any

from .enums import SessionType
from .errors import BadInputError

DAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

# Session attribute -> schedule table column
SESSION_COLUMNS = {
    "id": "id",
    "date": "date",
    "time": "time",
    "day": "day",
    "subject_name": "subject_name",
    "subject_topic": "subject_topic",
    "session_type": "session_type",
    "mentor_id": "mentor_id",
    "swapped_mentor_id": "swapped_mentor_id",
    "meeting_link": "teams_meeting_link",
    "email_sent": "email_sent",
    "whatsapp_sent": "whatsapp_sent",
    "session_material": "session_material",
    "initial_session_material": "initial_session_material",
}


def parse_date(value: Any) -> date | None:
    """Accept a date, datetime, or ISO string ("2024-01-10" or "2024-01-10T00:00:00")."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).split("T")[0])
    except ValueError:
        raise BadInputError(f"Invalid date: {value!r}")


_TIME_RE = re.compile(r"(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::\d{2})?")


def parse_time(value: Any) -> time | None:
    """Accept a time or an "HH:MM" / "HH:MM:SS" string. Seconds are dropped."""
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    match = _TIME_RE.fullmatch(str(value).strip())
    if not match:
        raise BadInputError(f"Invalid time: {value!r}")
    try:
        return time(int(match["hour"]), int(match["minute"]))
    except ValueError:
        raise BadInputError(f"Invalid time: {value!r}")


def weekday_name(day: date) -> str:
    return DAY_NAMES[day.weekday()]


@dataclass(frozen=True)
class SessionSelector:
    """
    Identifies one session inside a schedule table.

    Exactly one of three forms is used: by id, by (date, time),
    or by (date, mentor_id).
    """

    id: int | None = None
    date: date | None = None
    time: time | None = None
    mentor_id: int | None = None

    @classmethod
    def by_id(cls, session_id: int) -> "SessionSelector":
        return cls(id=session_id)

    @classmethod
    def by_slot(cls, day: date, start: time) -> "SessionSelector":
        return cls(date=day, time=start)

    @classmethod
    def by_mentor_day(cls, day: date, mentor_id: int) -> "SessionSelector":
        return cls(date=day, mentor_id=mentor_id)

    @classmethod
    def from_params(
        cls,
        session_id: Any = None,
        date: Any = None,
        time: Any = None,
        mentor_id: Any = None,
    ) -> "SessionSelector":
        """
        Build a selector from loosely-typed request parameters.

        Priority: id, then (date, time), then (date, mentor_id).

        Raises:
            BadInputError: if none of the three forms is complete
        """
        try:
            if session_id not in (None, ""):
                return cls.by_id(int(session_id))
            parsed_date = parse_date(date)
            if parsed_date and time not in (None, ""):
                return cls.by_slot(parsed_date, parse_time(time))
            if parsed_date and mentor_id not in (None, ""):
                return cls.by_mentor_day(parsed_date, int(mentor_id))
        except (TypeError, ValueError) as e:
            raise BadInputError(f"Invalid session identifier: {e}")
        raise BadInputError(
            "Session identifier required (id, or date+time, or date+mentorId)"
        )

    def criteria(self) -> dict[str, Any]:
        """Column -> value filters for this selector."""
        if self.id is not None:
            return {"id": self.id}
        if self.date is not None and self.time is not None:
            return {"date": self.date, "time": self.time}
        if self.date is not None and self.mentor_id is not None:
            return {"date": self.date, "mentor_id": self.mentor_id}
        raise BadInputError("Incomplete session selector")


@dataclass(frozen=True)
class Contact:
    """A person who can be notified. mentor_id is set only for mentors."""

    name: str
    email: str | None = None
    phone: str | None = None
    mentor_id: int | None = None

    @property
    def identity(self) -> str:
        if self.mentor_id is not None:
            return f"mentor:{self.mentor_id}"
        return f"contact:{(self.email or '').lower()}:{self.phone or ''}"


@dataclass(frozen=True)
class Session:
    id: int
    date: date | None = None
    time: time | None = None
    day: str | None = None
    subject_name: str | None = None
    subject_topic: str | None = None
    session_type: SessionType = SessionType.normal
    mentor_id: int | None = None
    swapped_mentor_id: int | None = None
    meeting_link: str | None = None
    email_sent: bool = False
    whatsapp_sent: bool = False
    session_material: str | None = None
    initial_session_material: str | None = None

    @classmethod
    def from_row(cls, row: dict) -> "Session":
        values = {attr: row.get(column) for attr, column in SESSION_COLUMNS.items()}
        values["date"] = parse_date(values["date"])
        values["time"] = parse_time(values["time"])
        values["session_type"] = SessionType.parse(values["session_type"])
        values["email_sent"] = values["email_sent"] is True
        values["whatsapp_sent"] = values["whatsapp_sent"] is True
        return cls(**values)

    @property
    def effective_mentor_id(self) -> int | None:
        """The covering mentor if a swap is active, otherwise the owner."""
        if self.swapped_mentor_id is not None:
            return self.swapped_mentor_id
        return self.mentor_id

    @property
    def already_announced(self) -> bool:
        """Whether the periodic announcer has sent notifications for the current state."""
        return self.email_sent or self.whatsapp_sent

    @property
    def is_contest(self) -> bool:
        return self.session_type == SessionType.contest

    def selector(self) -> SessionSelector:
        return SessionSelector.by_id(self.id)


def to_columns(patch: dict[str, Any]) -> dict[str, Any]:
    """
    Translate a Session attribute patch into schedule table column values.

    Raises:
        KeyError: for attributes that aren't Session fields
    """
    valid = {f.name for f in fields(Session)}
    columns = {}
    for attr, value in patch.items():
        if attr not in valid:
            raise KeyError(attr)
        if isinstance(value, SessionType):
            value = value.value
        columns[SESSION_COLUMNS[attr]] = value
    return columns
