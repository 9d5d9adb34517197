"""
Notification dispatcher - sends each resolved recipient an email and a
WhatsApp message, one recipient at a time.

Sends are sequential with a pause after each recipient so providers don't
throttle bulk sends. A failed send is logged and counted; it never stops
the batch.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from core.config import get_notification_delays_ms
from core.enums import Audience, Criticality
from core.external import guarded_call

from .channels.email import EmailMessage, send_email
from .channels.whatsapp import send_whatsapp_template
from .recipients import Recipient
from .templates import get_email, get_whatsapp_message

logger = logging.getLogger(__name__)


@dataclass
class DelayPolicy:
    """Pause after each recipient, per audience, in milliseconds."""

    student_ms: int = 100
    mentor_ms: int = 600
    admin_ms: int = 600

    @classmethod
    def from_config(cls) -> "DelayPolicy":
        delays = get_notification_delays_ms()
        return cls(
            student_ms=delays["student"],
            mentor_ms=delays["mentor"],
            admin_ms=delays["admin"],
        )

    @classmethod
    def none(cls) -> "DelayPolicy":
        return cls(student_ms=0, mentor_ms=0, admin_ms=0)

    def seconds_for(self, audience: Audience) -> float:
        delay_ms = {
            Audience.student: self.student_ms,
            Audience.mentor: self.mentor_ms,
            Audience.admin: self.admin_ms,
        }[audience]
        return delay_ms / 1000


@dataclass
class AudienceCounts:
    recipients: int = 0
    emails_sent: int = 0
    messages_sent: int = 0
    email_failures: int = 0
    message_failures: int = 0

    def to_dict(self) -> dict:
        return {
            "recipients": self.recipients,
            "emails_sent": self.emails_sent,
            "messages_sent": self.messages_sent,
            "email_failures": self.email_failures,
            "message_failures": self.message_failures,
        }


@dataclass
class DispatchReport:
    counts: dict[Audience, AudienceCounts] = field(
        default_factory=lambda: {audience: AudienceCounts() for audience in Audience}
    )

    @property
    def emails_sent(self) -> int:
        return sum(c.emails_sent for c in self.counts.values())

    @property
    def messages_sent(self) -> int:
        return sum(c.messages_sent for c in self.counts.values())

    @property
    def failures(self) -> int:
        return sum(c.email_failures + c.message_failures for c in self.counts.values())

    def to_dict(self) -> dict:
        return {
            "emails_sent": self.emails_sent,
            "messages_sent": self.messages_sent,
            "failures": self.failures,
            "by_audience": {
                audience.value: counts.to_dict()
                for audience, counts in self.counts.items()
            },
        }


class NotificationChannels:
    """Email (SendGrid) and WhatsApp (Cloud API) senders."""

    async def send_email(self, to_email: str, subject: str, body: str) -> bool:
        message = EmailMessage(to_email=to_email, subject=subject, body=body)
        return await asyncio.to_thread(send_email, message)

    async def send_message(
        self, to_phone: str, template_name: str, params: list[str]
    ) -> bool:
        return await send_whatsapp_template(to_phone, template_name, params)


async def _pause(seconds: float) -> None:
    if seconds:
        await asyncio.sleep(seconds)


async def dispatch_notifications(
    recipients: list[Recipient],
    context: dict,
    *,
    channels: NotificationChannels | None = None,
    delays: DelayPolicy | None = None,
) -> DispatchReport:
    """
    Send every recipient their message over each channel they can receive.

    Args:
        recipients: Ordered targets from resolve_recipients
        context: Shared template variables (see build_change_context)
        channels: Senders (default SendGrid + WhatsApp)
        delays: Pause policy (default from NOTIFY_DELAY_* settings)

    Returns:
        Per-audience counts of sends and failures
    """
    channels = channels or NotificationChannels()
    delays = delays or DelayPolicy.from_config()
    report = DispatchReport()

    for recipient in recipients:
        counts = report.counts[recipient.audience]
        counts.recipients += 1
        message_context = {**context, "name": recipient.contact.name}
        log_context = {
            "variant": recipient.variant.value,
            "audience": recipient.audience.value,
        }
        attempted = False
        delay = delays.seconds_for(recipient.audience)

        email = recipient.email
        if email:
            attempted = True
            subject, body = get_email(recipient.variant, message_context)
            sent = await guarded_call(
                "send_email",
                lambda: channels.send_email(email, subject, body),
                criticality=Criticality.best_effort,
                fallback=False,
                context=log_context,
            )
            if sent:
                counts.emails_sent += 1
            else:
                counts.email_failures += 1
                logger.warning(f"Email ({recipient.variant.value}) to {email} failed")
            await _pause(delay)

        phone = recipient.phone
        if phone:
            attempted = True
            template_name, params = get_whatsapp_message(
                recipient.variant, message_context
            )
            sent = await guarded_call(
                "send_whatsapp",
                lambda: channels.send_message(phone, template_name, params),
                criticality=Criticality.best_effort,
                fallback=False,
                context=log_context,
            )
            if sent:
                counts.messages_sent += 1
            else:
                counts.message_failures += 1
                logger.warning(
                    f"WhatsApp ({recipient.variant.value}) to {phone} failed"
                )
            await _pause(delay)

        if not attempted:
            logger.info(
                f"No email or phone for {recipient.audience.value} "
                f"{recipient.contact.name}, skipped"
            )

    logger.info(
        f"Dispatched {len(recipients)} notifications: "
        f"{report.emails_sent} emails, {report.messages_sent} WhatsApp, "
        f"{report.failures} failures"
    )
    return report
