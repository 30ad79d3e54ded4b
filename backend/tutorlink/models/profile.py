# backend/tutorlink/models/profile.py
"""
Profile models referenced by the matching workflows.

User accounts live in the identity layer; these tables only map a user id to
the student or tutor profile that owns requests, applications and classes,
plus the verified parent-to-child links that let a parent act for a student.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.sql import func
import ulid

from ..database import Base


class StudentProfile(Base):
    """Student profile owned by one user account."""

    __tablename__ = "student_profiles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<StudentProfile {self.id} user={self.user_id}>"


class TutorProfile(Base):
    """Tutor profile owned by one user account."""

    __tablename__ = "tutor_profiles"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<TutorProfile {self.id} user={self.user_id}>"


class ParentStudentLink(Base):
    """A parent account linked to a child's student profile."""

    __tablename__ = "parent_student_links"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    parent_user_id = Column(String(26), nullable=False, index=True)
    student_profile_id = Column(
        String(26), ForeignKey("student_profiles.id", ondelete="CASCADE"), nullable=False
    )
    is_verified = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("parent_user_id", "student_profile_id", name="uq_parent_student_link"),
    )
