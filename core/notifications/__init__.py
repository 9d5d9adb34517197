"""
Notifications about session changes, over email and WhatsApp.

Public API:
    resolve_recipients(summary, directory) - Who hears about a change
    build_change_context(summary, directory) - Shared template variables
    dispatch_notifications(recipients, context) - Send, rate-limited
"""

from .dispatcher import (
    AudienceCounts,
    DelayPolicy,
    DispatchReport,
    NotificationChannels,
    dispatch_notifications,
)
from .recipients import (
    ChangeSummary,
    Recipient,
    build_change_context,
    resolve_recipients,
)

__all__ = [
    # Resolution
    "ChangeSummary",
    "Recipient",
    "resolve_recipients",
    "build_change_context",
    # Dispatch
    "AudienceCounts",
    "DelayPolicy",
    "DispatchReport",
    "NotificationChannels",
    "dispatch_notifications",
]
