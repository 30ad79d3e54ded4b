# backend/tutorlink/repositories/class_repository.py
"""
Class Repository for the TutorLink platform.

Data access for classes and their weekly schedule rules, including the
candidate lookup used by duplicate-class detection.
"""

from collections import defaultdict
import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..models.tutoring_class import (
    ENROLLABLE_CLASS_STATUSES,
    LIVE_CLASS_STATUSES,
    ClassSchedule,
    TutoringClass,
)
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ClassRepository(BaseRepository[TutoringClass]):
    def __init__(self, db: Session):
        super().__init__(db, TutoringClass)

    def get_by_id(self, id: str) -> Optional[TutoringClass]:
        return (
            self.db.query(TutoringClass)
            .filter(TutoringClass.id == id, TutoringClass.deleted_at.is_(None))
            .first()
        )

    def find_live_equivalents(
        self, tutor_id: str, subject: str, education_level: str, mode: str
    ) -> List[TutoringClass]:
        """
        Tutor's classes with the same subject/level/mode that still occupy
        the timetable (pending, active or ongoing) and are not soft-deleted.
        """
        return (
            self.db.query(TutoringClass)
            .filter(
                TutoringClass.tutor_id == tutor_id,
                TutoringClass.subject == subject,
                TutoringClass.education_level == education_level,
                TutoringClass.mode == mode,
                TutoringClass.deleted_at.is_(None),
                TutoringClass.status.in_(LIVE_CLASS_STATUSES),
            )
            .all()
        )

    def get_many(self, class_ids: Sequence[str]) -> List[TutoringClass]:
        if not class_ids:
            return []
        return self.db.query(TutoringClass).filter(TutoringClass.id.in_(list(class_ids))).all()

    def list_for_tutor(self, tutor_id: str) -> List[TutoringClass]:
        return (
            self.db.query(TutoringClass)
            .filter(TutoringClass.tutor_id == tutor_id, TutoringClass.deleted_at.is_(None))
            .order_by(TutoringClass.created_at.desc(), TutoringClass.id.desc())
            .all()
        )

    def list_available(
        self,
        *,
        subject: Optional[str] = None,
        education_level: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> List[TutoringClass]:
        """Enrollable classes that still have a free seat, newest first."""
        query = self.db.query(TutoringClass).filter(
            TutoringClass.deleted_at.is_(None),
            TutoringClass.status.in_(ENROLLABLE_CLASS_STATUSES),
            TutoringClass.current_student_count < TutoringClass.student_limit,
        )
        if subject:
            query = query.filter(TutoringClass.subject == subject)
        if education_level:
            query = query.filter(TutoringClass.education_level == education_level)
        if mode:
            query = query.filter(TutoringClass.mode == mode)
        return query.order_by(TutoringClass.created_at.desc(), TutoringClass.id.desc()).all()


class ClassScheduleRepository(BaseRepository[ClassSchedule]):
    def __init__(self, db: Session):
        super().__init__(db, ClassSchedule)

    def list_for_class(self, class_id: str) -> List[ClassSchedule]:
        return (
            self.db.query(ClassSchedule)
            .filter(ClassSchedule.class_id == class_id)
            .order_by(ClassSchedule.day_of_week, ClassSchedule.start_time)
            .all()
        )

    def group_by_class(self, class_ids: Sequence[str]) -> Dict[str, List[ClassSchedule]]:
        """Schedule rules for several classes in one query, keyed by class id."""
        grouped: Dict[str, List[ClassSchedule]] = defaultdict(list)
        if not class_ids:
            return grouped
        rows = (
            self.db.query(ClassSchedule)
            .filter(ClassSchedule.class_id.in_(list(class_ids)))
            .order_by(ClassSchedule.day_of_week, ClassSchedule.start_time)
            .all()
        )
        for row in rows:
            grouped[row.class_id].append(row)
        return grouped
