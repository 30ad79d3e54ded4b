# backend/tutorlink/models/lesson.py
"""
Materialised lesson occurrences.

A ``Lesson`` belongs to a class; a ``ScheduleEntry`` is the dated slot on the
tutor's calendar for that lesson. Entries reference lessons, so purges delete
entries before lessons.
"""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .base_enum import create_safe_enum


class ScheduleEntryType(str, Enum):
    LESSON = "lesson"
    BLOCKED = "blocked"


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    class_id = Column(String(26), ForeignKey("classes.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ScheduleEntry(Base):
    __tablename__ = "schedule_entries"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    tutor_id = Column(String(26), ForeignKey("tutor_profiles.id"), nullable=False, index=True)
    lesson_id = Column(String(26), ForeignKey("lessons.id"), nullable=True, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    entry_type = Column(
        create_safe_enum(ScheduleEntryType, "schedule_entry_type"),
        nullable=False,
        default=ScheduleEntryType.LESSON,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
