"""Tests for notification dispatcher."""

import pytest
from unittest.mock import AsyncMock, patch

from core.enums import Audience, MessageVariant
from core.notifications.dispatcher import DelayPolicy, dispatch_notifications
from core.notifications.recipients import Recipient
from core.sessions import Contact

CONTEXT = {
    "cohort": "Basic 6.0",
    "subject_name": "Arrays",
    "subject_topic": "Two pointers",
    "session_date": "Friday, 12 January 2024",
    "session_time": "2:00 PM",
    "old_date": "Wednesday, 10 January 2024",
    "old_time": "10:00 AM",
    "meeting_link": "https://teams.example.com/meeting-1",
    "mentor_name": "Asha",
    "previous_mentor_name": "Asha",
    "owner_name": "Asha",
    "previous_owner_name": "Asha",
    "covering_mentor_name": "None",
    "previous_covering_mentor_name": "None",
    "change_description": "Session rescheduled.",
    "changed_by": "Admin",
}


def _recipient(audience, name, email=None, phone=None, variant=MessageVariant.rescheduled):
    return Recipient(audience, Contact(name, email, phone), variant)


class TestDispatchNotifications:
    @pytest.mark.asyncio
    async def test_sends_email_and_message_per_recipient(self, channels):
        recipients = [
            _recipient(Audience.student, "One", "one@example.com", "9876511111"),
            _recipient(Audience.mentor, "Asha", "asha@example.com", None),
        ]

        report = await dispatch_notifications(
            recipients, CONTEXT, channels=channels, delays=DelayPolicy.none()
        )

        assert channels.email_recipients == ["one@example.com", "asha@example.com"]
        assert [to for to, _, _ in channels.messages] == ["919876511111"]
        assert report.emails_sent == 2
        assert report.messages_sent == 1
        assert report.failures == 0

    @pytest.mark.asyncio
    async def test_personalizes_each_message(self, channels):
        recipients = [_recipient(Audience.student, "One", "one@example.com")]

        await dispatch_notifications(
            recipients, CONTEXT, channels=channels, delays=DelayPolicy.none()
        )

        _, subject, body = channels.emails[0]
        assert subject == "Session rescheduled: Basic 6.0 - Arrays"
        assert body.startswith("Hi One,")

    @pytest.mark.asyncio
    async def test_failures_are_counted_and_batch_continues(self, channels):
        channels.fail_for = {"one@example.com"}
        recipients = [
            _recipient(Audience.student, "One", "one@example.com"),
            _recipient(Audience.student, "Two", "two@example.com"),
        ]

        report = await dispatch_notifications(
            recipients, CONTEXT, channels=channels, delays=DelayPolicy.none()
        )

        assert channels.email_recipients == ["two@example.com"]
        student = report.counts[Audience.student]
        assert student.recipients == 2
        assert student.emails_sent == 1
        assert student.email_failures == 1

    @pytest.mark.asyncio
    async def test_raising_channel_does_not_stop_batch(self, channels):
        channels.broken = True
        recipients = [
            _recipient(Audience.admin, "Admin", "admin@example.com", "09876599999"),
            _recipient(Audience.admin, "Ops", "ops@example.com"),
        ]

        report = await dispatch_notifications(
            recipients, CONTEXT, channels=channels, delays=DelayPolicy.none()
        )

        assert report.failures == 3
        assert report.to_dict()["by_audience"]["admin"]["email_failures"] == 2

    @pytest.mark.asyncio
    async def test_recipient_without_contact_details_is_skipped(self, channels):
        recipients = [_recipient(Audience.student, "Ghost", "not-an-email", "123")]

        report = await dispatch_notifications(
            recipients, CONTEXT, channels=channels, delays=DelayPolicy.none()
        )

        assert channels.emails == [] and channels.messages == []
        assert report.failures == 0

    @pytest.mark.asyncio
    async def test_pauses_after_each_send(self, channels):
        recipients = [
            _recipient(Audience.student, "One", "one@example.com", "9876511111"),
            _recipient(Audience.mentor, "Asha", "asha@example.com"),
            _recipient(Audience.student, "Ghost"),
        ]
        delays = DelayPolicy(student_ms=100, mentor_ms=600, admin_ms=600)

        with patch(
            "core.notifications.dispatcher.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            await dispatch_notifications(
                recipients, CONTEXT, channels=channels, delays=delays
            )

        assert [call.args[0] for call in mock_sleep.await_args_list] == [0.1, 0.1, 0.6]


class TestDelayPolicy:
    def test_reads_settings(self):
        with patch.dict(
            "os.environ",
            {"NOTIFY_DELAY_STUDENT_MS": "50", "NOTIFY_DELAY_MENTOR_MS": "0"},
        ):
            policy = DelayPolicy.from_config()

        assert policy.seconds_for(Audience.student) == 0.05
        assert policy.seconds_for(Audience.mentor) == 0
        assert policy.seconds_for(Audience.admin) == 0.6
