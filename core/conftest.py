"""Fixtures shared by core tests: in-memory store, meeting provider and channels."""

from dataclasses import replace
from datetime import date, time

import pytest

from core.cohorts import Cohort
from core.errors import SessionNotFoundError
from core.sessions import Contact, Session, SessionSelector


class FakeSessionStore:
    """In-memory stand-in for SessionStore."""

    def __init__(self):
        self.tables: dict[str, dict[int, Session]] = {}
        self.mentors: dict[int, Contact] = {}
        self.students: dict[str, list[Contact]] = {}
        self.administrators: list[Contact] = []
        self.updates: list[tuple[str, int, dict]] = []
        self.broken_tables: set[str] = set()

    def add_session(self, table_name: str, session: Session) -> Session:
        self.tables.setdefault(table_name, {})[session.id] = session
        return session

    def get(self, table_name: str, session_id: int) -> Session:
        return self.tables[table_name][session_id]

    def _matching(self, table_name: str, selector: SessionSelector) -> list[Session]:
        criteria = selector.criteria()
        return [
            session
            for session in self.tables.get(table_name, {}).values()
            if all(getattr(session, key) == value for key, value in criteria.items())
        ]

    async def find(self, table_name, selector):
        matches = self._matching(table_name, selector)
        if len(matches) != 1:
            raise SessionNotFoundError(f"Session not found in {table_name}")
        return matches[0]

    async def update(self, table_name, selector, patch):
        matches = self._matching(table_name, selector)
        if len(matches) != 1:
            raise SessionNotFoundError(f"Expected one session in {table_name}")
        session = matches[0]
        self.tables[table_name][session.id] = replace(session, **patch)
        self.updates.append((table_name, session.id, dict(patch)))

    async def list_schedule_tables(self):
        return sorted(self.tables)

    async def sessions_at(self, table_name, day, start):
        if table_name in self.broken_tables:
            raise ConnectionError(f"{table_name} unavailable")
        return [
            session
            for session in self.tables[table_name].values()
            if session.date == day and session.time == start
        ]

    async def get_mentor(self, mentor_id):
        return self.mentors.get(mentor_id)

    async def get_cohort_students(self, cohort: Cohort):
        return self.students.get(cohort.label, [])

    async def get_administrators(self):
        return self.administrators


class FakeMeetingProvider:
    """Records meeting calls; creates links meeting-1, meeting-2, ..."""

    def __init__(self):
        self.created: list[dict] = []
        self.deleted: list[str] = []
        self.fail_create = False
        self.fail_delete = False

    async def create_meeting(self, subject, start, end, attendee_emails):
        if self.fail_create:
            raise RuntimeError("Graph unavailable")
        link = f"https://teams.example.com/meeting-{len(self.created) + 1}"
        self.created.append(
            {
                "subject": subject,
                "start": start,
                "end": end,
                "attendees": list(attendee_emails),
                "link": link,
            }
        )
        return link

    async def delete_meeting(self, join_url):
        if self.fail_delete:
            raise RuntimeError("Graph unavailable")
        self.deleted.append(join_url)
        return True


class FakeChannels:
    """Records sends; addresses in fail_for get a failed send."""

    def __init__(self):
        self.emails: list[tuple[str, str, str]] = []
        self.messages: list[tuple[str, str, list[str]]] = []
        self.fail_for: set[str] = set()
        self.broken = False

    async def send_email(self, to_email, subject, body):
        if self.broken:
            raise RuntimeError("SendGrid down")
        if to_email in self.fail_for:
            return False
        self.emails.append((to_email, subject, body))
        return True

    async def send_message(self, to_phone, template_name, params):
        if self.broken:
            raise RuntimeError("WhatsApp down")
        if to_phone in self.fail_for:
            return False
        self.messages.append((to_phone, template_name, params))
        return True

    @property
    def email_recipients(self) -> list[str]:
        return [to for to, _, _ in self.emails]


def _make_session(**overrides) -> Session:
    values = {
        "id": 1,
        "date": date(2024, 1, 10),
        "time": time(10, 0),
        "day": "Wednesday",
        "subject_name": "Arrays",
        "subject_topic": "Two pointers",
        "mentor_id": 7,
    }
    values.update(overrides)
    return Session(**values)


@pytest.fixture
def make_session():
    """Factory for sessions: Basic 6.0 "Arrays" on 2024-01-10 10:00 with mentor 7."""
    return _make_session


@pytest.fixture
def store():
    """Store with cohort Basic 6.0, mentors 7/42/43, two students and one admin."""
    fake = FakeSessionStore()
    fake.tables["basic6_0_schedule"] = {}
    fake.mentors = {
        7: Contact("Asha", "asha@example.com", "9876500007", mentor_id=7),
        42: Contact("Ravi", "ravi@example.com", "9876500042", mentor_id=42),
        43: Contact("Meera", "meera@example.com", None, mentor_id=43),
    }
    fake.students = {
        "Basic 6.0": [
            Contact("Student One", "one@example.com", "9876511111"),
            Contact("Student Two", "two@example.com", None),
        ]
    }
    fake.administrators = [Contact("Admin", "admin@example.com", "09876599999")]
    return fake


@pytest.fixture
def provider():
    return FakeMeetingProvider()


@pytest.fixture
def channels():
    return FakeChannels()
