# backend/tutorlink/models/class_request.py
"""
Class request model.

A class request is a demand posting by a student (or a parent acting for a
linked child). ``tutor_id`` set means a direct request to one tutor; null
means a marketplace request open to applications.

State machine:
    pending -> active | matched | rejected | cancelled | expired
Terminal states: matched, rejected, cancelled, expired.
"""

from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .base_enum import create_safe_enum


class ClassRequestStatus(str, Enum):
    """Class request lifecycle statuses."""

    PENDING = "pending"
    ACTIVE = "active"
    MATCHED = "matched"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_REQUEST_STATUSES


_TERMINAL_REQUEST_STATUSES = frozenset(
    {
        ClassRequestStatus.MATCHED,
        ClassRequestStatus.REJECTED,
        ClassRequestStatus.CANCELLED,
        ClassRequestStatus.EXPIRED,
    }
)


class ClassMode(str, Enum):
    """Where lessons take place."""

    ONLINE = "online"
    OFFLINE = "offline"


class ClassRequest(Base):
    """Demand posting from a student profile."""

    __tablename__ = "class_requests"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    student_id = Column(String(26), ForeignKey("student_profiles.id"), nullable=False, index=True)
    tutor_id = Column(String(26), ForeignKey("tutor_profiles.id"), nullable=True, index=True)

    subject = Column(String(255), nullable=False)
    education_level = Column(String(255), nullable=False)
    mode = Column(create_safe_enum(ClassMode, "class_mode"), nullable=False)
    budget = Column(Numeric(12, 2), nullable=False)
    location = Column(String(500), nullable=True)
    description = Column(Text, nullable=False, default="")
    special_requirements = Column(Text, nullable=True)
    class_start_date = Column(DateTime(timezone=True), nullable=True)
    online_link = Column(String(500), nullable=True)

    status = Column(
        create_safe_enum(ClassRequestStatus, "class_request_status"),
        nullable=False,
        default=ClassRequestStatus.PENDING,
        index=True,
    )
    expiry_date = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("budget >= 0", name="check_class_request_budget_non_negative"),
        Index("ix_class_requests_status_expiry", "status", "expiry_date"),
    )

    @property
    def is_marketplace(self) -> bool:
        return self.tutor_id is None

    def __repr__(self) -> str:
        return f"<ClassRequest {self.id} {self.subject} status={self.status}>"


class ClassRequestSchedule(Base):
    """One preferred weekly interval of a class request."""

    __tablename__ = "class_request_schedules"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    class_request_id = Column(
        String(26),
        ForeignKey("class_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # 0=Sunday ... 6=Saturday
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="check_request_schedule_day"),
    )
