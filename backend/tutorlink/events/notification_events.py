# backend/tutorlink/events/notification_events.py
"""
Notification descriptors collected inside transactional workflows.

Workflows never notify from inside a transaction. They return a list of
``PendingNotification`` alongside their result and the caller hands that list to
the ``NotificationDispatcher`` once the unit has committed.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Generic, List, TypeVar

T = TypeVar("T")


class NotificationKind(str, Enum):
    CLASS_REQUEST_RECEIVED = "class_request_received"
    CLASS_REQUEST_ACCEPTED = "class_request_accepted"
    CLASS_REQUEST_REJECTED = "class_request_rejected"
    CLASS_CREATED_FROM_REQUEST = "class_created_from_request"
    TUTOR_APPLICATION_RECEIVED = "tutor_application_received"
    TUTOR_APPLICATION_ACCEPTED = "tutor_application_accepted"
    TUTOR_APPLICATION_REJECTED = "tutor_application_rejected"
    ESCROW_PAID = "escrow_paid"
    CLASS_ENROLLMENT_SUCCESS = "class_enrollment_success"


@dataclass(frozen=True)
class PendingNotification:
    """One notification to deliver after commit."""

    user_id: str
    kind: NotificationKind
    message: str
    related_entity_id: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass
class WorkflowOutcome(Generic[T]):
    """Result of a transactional unit plus the notifications it earned."""

    result: T
    notifications: List[PendingNotification]
