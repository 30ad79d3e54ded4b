"""Event primitives for post-commit side effects."""

from .notification_events import NotificationKind, PendingNotification, WorkflowOutcome

__all__ = [
    "NotificationKind",
    "PendingNotification",
    "WorkflowOutcome",
]
