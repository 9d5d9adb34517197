"""
Recipient Resolver: who hears about a session change, and with which message.

Resolution depends on the change classification:

- reschedule / details_updated: cohort students, the effective mentor,
  administrators
- mentor_reassigned: old owner (removed), new owner (assigned),
  administrators; students only when the change also moved the slot
- mentor_swapped: the owner (covered / restored), the new covering mentor,
  the previous covering mentor (unless it's the same person),
  administrators; students only if the session was already announced

Recipients come out ordered students, mentors, administrators, and nobody
gets the same message variant twice.
"""

from dataclasses import dataclass

from core.cohorts import cohort_label_for_table
from core.contacts import ContactDirectory
from core.enums import Audience, ChangeKind, MessageVariant
from core.sessions import Contact, Session
from core.timezone import format_session_date, format_session_time

from .channels.email import is_valid_email
from .channels.whatsapp import format_phone

NO_MEETING_LINK = "Will be shared soon"


@dataclass(frozen=True)
class Recipient:
    audience: Audience
    contact: Contact
    variant: MessageVariant

    @property
    def email(self) -> str | None:
        """Address to email, or None if the contact has no usable one."""
        if is_valid_email(self.contact.email):
            return self.contact.email.strip()
        return None

    @property
    def phone(self) -> str | None:
        """Normalized WhatsApp number, or None if the contact has no usable one."""
        return format_phone(self.contact.phone)


@dataclass
class ChangeSummary:
    """What changed about a session, as needed to pick and word notifications."""

    table_name: str
    kind: ChangeKind
    before: Session
    after: Session
    rescheduled: bool = False
    changed_by: str | None = None

    @property
    def cohort_label(self) -> str:
        return cohort_label_for_table(self.table_name)


def _mentor_variants(summary: ChangeSummary) -> list[tuple[int | None, MessageVariant]]:
    before, after = summary.before, summary.after

    if summary.kind == ChangeKind.mentor_reassigned:
        return [
            (before.mentor_id, MessageVariant.mentor_removed),
            (after.mentor_id, MessageVariant.mentor_assigned),
        ]

    if summary.kind == ChangeKind.mentor_swapped:
        targets = []
        if after.swapped_mentor_id is not None:
            targets.append((after.mentor_id, MessageVariant.coverage_started))
            targets.append((after.swapped_mentor_id, MessageVariant.coverage_assigned))
        else:
            targets.append((after.mentor_id, MessageVariant.coverage_ended))
        previous_cover = before.swapped_mentor_id
        if previous_cover is not None and previous_cover != after.swapped_mentor_id:
            targets.append((previous_cover, MessageVariant.coverage_removed))
        return targets

    variant = (
        MessageVariant.rescheduled
        if summary.kind == ChangeKind.reschedule
        else MessageVariant.details_updated
    )
    return [(after.effective_mentor_id, variant)]


def _student_variant(summary: ChangeSummary) -> MessageVariant | None:
    if summary.kind == ChangeKind.reschedule:
        return MessageVariant.rescheduled
    if summary.kind == ChangeKind.details_updated:
        return MessageVariant.details_updated
    if summary.kind == ChangeKind.mentor_reassigned:
        return MessageVariant.rescheduled if summary.rescheduled else None
    if summary.kind == ChangeKind.mentor_swapped:
        return (
            MessageVariant.mentor_changed
            if summary.before.already_announced
            else None
        )
    return None


async def resolve_recipients(
    summary: ChangeSummary,
    directory: ContactDirectory,
) -> list[Recipient]:
    """
    Compute the ordered, de-duplicated notification targets for a change.

    Students are skipped when the cohort can't be parsed from the table name.
    """
    if summary.kind == ChangeKind.new_session:
        return []

    recipients: list[Recipient] = []
    seen: set[tuple[str, MessageVariant]] = set()

    def add(audience: Audience, contact: Contact | None, variant: MessageVariant):
        if contact is None:
            return
        key = (contact.identity, variant)
        if key in seen:
            return
        seen.add(key)
        recipients.append(Recipient(audience, contact, variant))

    student_variant = _student_variant(summary)
    if student_variant is not None:
        for student in await directory.students():
            add(Audience.student, student, student_variant)

    notified_mentors: set[int] = set()
    for mentor_id, variant in _mentor_variants(summary):
        if mentor_id is None:
            continue
        add(Audience.mentor, await directory.mentor(mentor_id), variant)
        notified_mentors.add(mentor_id)

    # A slot change bundled into a mentor change still reaches whoever
    # takes the session, unless they were already told above
    effective = summary.after.effective_mentor_id
    if (
        summary.rescheduled
        and summary.kind in (ChangeKind.mentor_reassigned, ChangeKind.mentor_swapped)
        and effective is not None
        and effective not in notified_mentors
    ):
        add(Audience.mentor, await directory.mentor(effective), MessageVariant.rescheduled)

    for admin in await directory.administrators():
        add(Audience.admin, admin, MessageVariant.admin_alert)

    return recipients


def _name(contact: Contact | None, fallback: str = "TBD") -> str:
    return contact.name if contact else fallback


def _describe_change(summary: ChangeSummary, names: dict) -> str:
    before, after = summary.before, summary.after
    if summary.kind == ChangeKind.mentor_reassigned:
        description = (
            f"Mentor changed from {names['previous_owner_name']} "
            f"to {names['owner_name']}."
        )
    elif summary.kind == ChangeKind.mentor_swapped:
        if after.swapped_mentor_id is not None:
            description = (
                f"{names['covering_mentor_name']} is covering for {names['owner_name']}."
            )
        else:
            description = f"Cover removed, {names['owner_name']} takes the session."
    elif summary.kind == ChangeKind.reschedule:
        description = "Session rescheduled."
    else:
        description = "Session details updated."

    if summary.rescheduled or summary.kind == ChangeKind.reschedule:
        description += (
            f" Moved from {format_session_date(before.date)} {format_session_time(before.time)}"
            f" to {format_session_date(after.date)} {format_session_time(after.time)}."
        )
    return description


async def build_change_context(
    summary: ChangeSummary,
    directory: ContactDirectory,
) -> dict:
    """Template variables shared by every message about this change (all but {name})."""
    before, after = summary.before, summary.after

    names = {
        "mentor_name": _name(await directory.mentor(after.effective_mentor_id)),
        "previous_mentor_name": _name(
            await directory.mentor(before.effective_mentor_id)
        ),
        "owner_name": _name(await directory.mentor(after.mentor_id)),
        "previous_owner_name": _name(await directory.mentor(before.mentor_id)),
        "covering_mentor_name": _name(
            await directory.mentor(after.swapped_mentor_id), "None"
        ),
        "previous_covering_mentor_name": _name(
            await directory.mentor(before.swapped_mentor_id), "None"
        ),
    }

    return {
        "cohort": summary.cohort_label,
        "subject_name": after.subject_name or "Session",
        "subject_topic": after.subject_topic or "N/A",
        "session_date": format_session_date(after.date),
        "session_time": format_session_time(after.time),
        "old_date": format_session_date(before.date),
        "old_time": format_session_time(before.time),
        "meeting_link": after.meeting_link or NO_MEETING_LINK,
        "change_description": _describe_change(summary, names),
        "changed_by": summary.changed_by or "Admin",
        **names,
    }
