# backend/tutorlink/services/notification_dispatcher.py
"""
Post-commit notification delivery.

Best effort: every failure is logged, counted and swallowed so that a
committed workflow is never reported as failed because a notification could
not be delivered.
"""

import logging
from typing import Iterable

from ..events.notification_events import PendingNotification
from ..monitoring.prometheus_metrics import prometheus_metrics
from .gateways import NotificationSink

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, sink: NotificationSink):
        self.sink = sink

    def dispatch(self, notifications: Iterable[PendingNotification]) -> int:
        """Deliver each notification; returns how many were persisted."""
        delivered = 0
        for notification in notifications:
            if self._deliver(notification):
                delivered += 1
        return delivered

    def _deliver(self, notification: PendingNotification) -> bool:
        kind = notification.kind.value
        try:
            notification_id = self.sink.notify(
                notification.user_id,
                kind,
                notification.message,
                notification.related_entity_id,
            )
        except Exception as exc:
            logger.error(
                "Failed to create notification",
                extra={"notification": notification.to_dict(), "error": str(exc)},
            )
            prometheus_metrics.record_notification_outcome(kind, "failed")
            return False

        try:
            self.sink.push_realtime(notification.user_id, notification_id)
        except Exception as exc:
            logger.error(
                "Failed to push realtime notification",
                extra={
                    "notification_id": notification_id,
                    "user_id": notification.user_id,
                    "error": str(exc),
                },
            )
            prometheus_metrics.record_notification_outcome(kind, "push_failed")
            return True

        prometheus_metrics.record_notification_outcome(kind, "delivered")
        return True
