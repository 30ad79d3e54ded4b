# backend/tutorlink/models/enrollment.py
"""
Enrollment (class assign) model.

Exactly one row per (class_id, student_id). The unique constraint is what turns
a concurrent second enrollment attempt into a duplicate error instead of a
double insert.
"""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .base_enum import create_safe_enum


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class ClassAssign(Base):
    __tablename__ = "class_assigns"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False, index=True)
    student_id = Column(String(26), ForeignKey("student_profiles.id"), nullable=False, index=True)
    approval_status = Column(
        create_safe_enum(ApprovalStatus, "approval_status"),
        nullable=False,
        default=ApprovalStatus.APPROVED,
    )
    payment_status = Column(
        create_safe_enum(PaymentStatus, "payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    enrolled_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (UniqueConstraint("class_id", "student_id", name="uq_class_assign_student"),)

    def __repr__(self) -> str:
        return f"<ClassAssign class={self.class_id} student={self.student_id}>"
