# backend/tutorlink/models/tutoring_class.py
"""
Tutoring class model and its weekly schedule rules.

A class is either tutor-authored from a recurring template (pending, no
students) or created from a matched request (pending, one seat taken).

State machine:
    pending -> active -> ongoing -> completed
    cancelled is reachable from any non-terminal state once a withdrawal
    drops occupancy to zero.
"""

from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
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
from .class_request import ClassMode


class ClassStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Classes that still occupy a tutor's timetable
LIVE_CLASS_STATUSES = (ClassStatus.PENDING, ClassStatus.ACTIVE, ClassStatus.ONGOING)
# Classes a student may still enrol in
ENROLLABLE_CLASS_STATUSES = (ClassStatus.PENDING, ClassStatus.ACTIVE)


class TutoringClass(Base):
    __tablename__ = "classes"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    tutor_id = Column(String(26), ForeignKey("tutor_profiles.id"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    subject = Column(String(255), nullable=False)
    education_level = Column(String(255), nullable=False)
    mode = Column(create_safe_enum(ClassMode, "class_mode"), nullable=False)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(
        create_safe_enum(ClassStatus, "class_status"),
        nullable=False,
        default=ClassStatus.PENDING,
        index=True,
    )
    student_limit = Column(Integer, nullable=False, default=1)
    current_student_count = Column(Integer, nullable=False, default=0)
    location = Column(String(500), nullable=True)
    online_study_link = Column(String(500), nullable=True)
    class_start_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("student_limit >= 1", name="check_class_student_limit_positive"),
        CheckConstraint(
            "current_student_count >= 0", name="check_class_student_count_non_negative"
        ),
        CheckConstraint("price >= 0", name="check_class_price_non_negative"),
    )

    @property
    def has_free_seat(self) -> bool:
        return (self.current_student_count or 0) < (self.student_limit or 0)

    def __repr__(self) -> str:
        return f"<TutoringClass {self.id} {self.subject} status={self.status}>"


class ClassSchedule(Base):
    """One weekly recurrence rule of a class."""

    __tablename__ = "class_schedules"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    class_id = Column(
        String(26), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # 0=Sunday ... 6=Saturday
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="check_class_schedule_day"),
    )
