# backend/tutorlink/core/exceptions.py
"""
Domain-specific exceptions for the TutorLink matching and enrollment workflows.

Every workflow failure surfaces as one of these. Validation and authorization
failures are raised before any write; failures inside a transactional unit are
raised after rollback, unchanged. ``status_code`` is a hint for whichever
transport sits above the services.
"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable payload for the calling layer."""
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Raised when input is malformed (e.g. end time not after start time)."""

    status_code = 400


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = 404


class UnauthorizedException(DomainException):
    """Raised on a role or ownership mismatch."""

    status_code = 403


class InvalidStateException(DomainException):
    """Raised when an operation is illegal for the entity's current status."""

    status_code = 409


class CapacityException(InvalidStateException):
    """Raised when a class has no free seat left."""

    def __init__(self, class_id: str, student_limit: int):
        super().__init__(
            message="Class is full",
            code="CLASS_FULL",
            details={"class_id": class_id, "student_limit": student_limit},
        )


class DuplicateException(DomainException):
    """Raised on a uniqueness violation (repeat application, repeat enrollment)."""

    status_code = 409


class ScheduleConflictException(DomainException):
    """Raised when an equivalent class of the same tutor already covers the slot."""

    status_code = 409

    def __init__(
        self,
        conflicting_class_id: str,
        *,
        day_of_week: Optional[int] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ):
        super().__init__(
            message=(
                "An equivalent class with an overlapping schedule already exists "
                f"({conflicting_class_id})"
            ),
            code="SCHEDULE_CONFLICT",
            details={
                "conflicting_class_id": conflicting_class_id,
                "day_of_week": day_of_week,
                "start_time": start_time,
                "end_time": end_time,
            },
        )

    @property
    def conflicting_class_id(self) -> str:
        return str(self.details["conflicting_class_id"])


class InsufficientFundsException(DomainException):
    """Raised when a wallet debit would drive the balance negative."""

    status_code = 422

    def __init__(self, required: Any, balance: Any):
        super().__init__(
            message="Insufficient wallet balance",
            code="INSUFFICIENT_FUNDS",
            details={"required": str(required), "balance": str(balance)},
        )


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    status_code = 500


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as query failures or constraint violations.
    """
