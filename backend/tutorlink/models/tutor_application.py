# backend/tutorlink/models/tutor_application.py
"""
Tutor application model.

A tutor's offer to fulfil a marketplace class request. At most one application
per (tutor, request) pair; at most one application per request reaches
``accepted``.
"""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .base_enum import create_safe_enum


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class TutorApplication(Base):
    __tablename__ = "tutor_applications"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    tutor_id = Column(String(26), ForeignKey("tutor_profiles.id"), nullable=False, index=True)
    class_request_id = Column(
        String(26), ForeignKey("class_requests.id"), nullable=False, index=True
    )
    status = Column(
        create_safe_enum(ApplicationStatus, "tutor_application_status"),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    meeting_link = Column(String(500), nullable=True)
    cover_letter = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("tutor_id", "class_request_id", name="uq_tutor_application_per_request"),
    )

    def __repr__(self) -> str:
        return f"<TutorApplication {self.id} request={self.class_request_id} status={self.status}>"
