"""Tests for recipient resolution and change context."""

from datetime import date, time
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.contacts import ContactDirectory
from core.enums import Audience, ChangeKind, MessageVariant
from core.notifications.recipients import (
    NO_MEETING_LINK,
    ChangeSummary,
    Recipient,
    build_change_context,
    resolve_recipients,
)
from core.sessions import Contact

TABLE = "basic6_0_schedule"


def _targets(recipients):
    return [(r.audience, r.contact.name, r.variant) for r in recipients]


@pytest.fixture
def directory(store):
    return ContactDirectory(store, TABLE)


class TestRecipient:
    def test_email_and_phone_are_normalized(self):
        recipient = Recipient(
            Audience.student,
            Contact("One", " one@example.com ", "098765 11111"),
            MessageVariant.rescheduled,
        )
        assert recipient.email == "one@example.com"
        assert recipient.phone == "919876511111"

    def test_unusable_details_are_none(self):
        recipient = Recipient(
            Audience.student, Contact("One", "nope", "12"), MessageVariant.rescheduled
        )
        assert recipient.email is None
        assert recipient.phone is None


class TestResolveRecipients:
    @pytest.mark.asyncio
    async def test_reschedule_reaches_everyone(self, directory, make_session):
        before = make_session(email_sent=True)
        after = make_session(date=date(2024, 1, 12))
        summary = ChangeSummary(TABLE, ChangeKind.reschedule, before, after, True)

        recipients = await resolve_recipients(summary, directory)

        assert _targets(recipients) == [
            (Audience.student, "Student One", MessageVariant.rescheduled),
            (Audience.student, "Student Two", MessageVariant.rescheduled),
            (Audience.mentor, "Asha", MessageVariant.rescheduled),
            (Audience.admin, "Admin", MessageVariant.admin_alert),
        ]

    @pytest.mark.asyncio
    async def test_new_session_has_no_recipients(self, directory, make_session):
        session = make_session()
        summary = ChangeSummary(TABLE, ChangeKind.new_session, session, session)

        assert await resolve_recipients(summary, directory) == []

    @pytest.mark.asyncio
    async def test_reassignment_without_reschedule_skips_students(
        self, directory, make_session
    ):
        summary = ChangeSummary(
            TABLE,
            ChangeKind.mentor_reassigned,
            make_session(),
            make_session(mentor_id=42),
        )

        recipients = await resolve_recipients(summary, directory)

        assert _targets(recipients) == [
            (Audience.mentor, "Asha", MessageVariant.mentor_removed),
            (Audience.mentor, "Ravi", MessageVariant.mentor_assigned),
            (Audience.admin, "Admin", MessageVariant.admin_alert),
        ]

    @pytest.mark.asyncio
    async def test_swap_with_reschedule_does_not_double_notify_cover(
        self, directory, make_session
    ):
        summary = ChangeSummary(
            TABLE,
            ChangeKind.mentor_swapped,
            make_session(swapped_mentor_id=42),
            make_session(swapped_mentor_id=42, mentor_id=43, time=time(11, 0)),
            rescheduled=True,
        )

        recipients = await resolve_recipients(summary, directory)

        mentor_targets = [
            (name, variant)
            for audience, name, variant in _targets(recipients)
            if audience == Audience.mentor
        ]
        assert mentor_targets == [
            ("Meera", MessageVariant.coverage_started),
            ("Ravi", MessageVariant.coverage_assigned),
        ]

    @pytest.mark.asyncio
    async def test_same_person_same_message_once(self, store, make_session):
        admin = store.administrators[0]
        store.administrators = [admin, Contact(admin.name, admin.email, admin.phone)]
        directory = ContactDirectory(store, TABLE)
        summary = ChangeSummary(
            TABLE,
            ChangeKind.details_updated,
            make_session(email_sent=True),
            make_session(subject_name="Graphs"),
        )

        recipients = await resolve_recipients(summary, directory)

        assert [r.audience for r in recipients].count(Audience.admin) == 1

    @pytest.mark.asyncio
    async def test_mentor_who_is_also_admin_gets_both_messages(
        self, store, make_session
    ):
        store.administrators = [store.mentors[7]]
        directory = ContactDirectory(store, TABLE)
        summary = ChangeSummary(
            TABLE,
            ChangeKind.details_updated,
            make_session(email_sent=True),
            make_session(subject_name="Graphs"),
        )

        recipients = await resolve_recipients(summary, directory)

        assert [r.variant for r in recipients if r.contact.name == "Asha"] == [
            MessageVariant.details_updated,
            MessageVariant.admin_alert,
        ]

    @pytest.mark.asyncio
    async def test_unparseable_table_skips_students(self, store, make_session):
        directory = ContactDirectory(store, "legacy_schedule")
        summary = ChangeSummary(
            "legacy_schedule",
            ChangeKind.reschedule,
            make_session(),
            make_session(date=date(2024, 1, 12)),
            True,
        )

        recipients = await resolve_recipients(summary, directory)

        assert all(r.audience != Audience.student for r in recipients)

    @pytest.mark.asyncio
    async def test_roster_failure_is_not_fatal(self, make_session):
        store = MagicMock()
        store.get_mentor = AsyncMock(return_value=Contact("Asha", "asha@example.com"))
        store.get_cohort_students = AsyncMock(side_effect=ConnectionError("db down"))
        store.get_administrators = AsyncMock(return_value=[])
        summary = ChangeSummary(
            TABLE,
            ChangeKind.reschedule,
            make_session(),
            make_session(date=date(2024, 1, 12)),
            True,
        )

        recipients = await resolve_recipients(summary, ContactDirectory(store, TABLE))

        assert _targets(recipients) == [
            (Audience.mentor, "Asha", MessageVariant.rescheduled)
        ]


class TestBuildChangeContext:
    @pytest.mark.asyncio
    async def test_reschedule_context(self, directory, make_session):
        summary = ChangeSummary(
            TABLE,
            ChangeKind.reschedule,
            make_session(),
            make_session(date=date(2024, 1, 12), time=time(14, 0)),
            True,
        )

        context = await build_change_context(summary, directory)

        assert context["cohort"] == "Basic 6.0"
        assert context["old_date"] == "Wednesday, 10 January 2024"
        assert context["session_time"] == "2:00 PM"
        assert context["meeting_link"] == NO_MEETING_LINK
        assert context["changed_by"] == "Admin"
        assert context["covering_mentor_name"] == "None"
        assert context["change_description"].startswith("Session rescheduled. Moved from")

    @pytest.mark.asyncio
    async def test_swap_context_names_people(self, directory, make_session):
        summary = ChangeSummary(
            TABLE,
            ChangeKind.mentor_swapped,
            make_session(),
            make_session(swapped_mentor_id=42, meeting_link="https://teams.example.com/m"),
            changed_by="Ops",
        )

        context = await build_change_context(summary, directory)

        assert context["mentor_name"] == "Ravi"
        assert context["owner_name"] == "Asha"
        assert context["previous_mentor_name"] == "Asha"
        assert context["change_description"] == "Ravi is covering for Asha."
        assert context["meeting_link"] == "https://teams.example.com/m"
        assert context["changed_by"] == "Ops"

    @pytest.mark.asyncio
    async def test_unknown_mentor_is_tbd(self, directory, make_session):
        summary = ChangeSummary(
            TABLE,
            ChangeKind.details_updated,
            make_session(mentor_id=999),
            make_session(mentor_id=999, subject_name=None, subject_topic=None),
        )

        context = await build_change_context(summary, directory)

        assert context["mentor_name"] == "TBD"
        assert context["subject_name"] == "Session"
        assert context["subject_topic"] == "N/A"
