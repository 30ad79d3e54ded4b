# backend/tutorlink/repositories/class_assign_repository.py
"""ClassAssign (enrollment) Repository for the TutorLink platform."""

import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..models.enrollment import ClassAssign
from ..models.tutoring_class import ClassStatus, TutoringClass
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ClassAssignRepository(BaseRepository[ClassAssign]):
    def __init__(self, db: Session):
        super().__init__(db, ClassAssign)

    def find_enrollment(
        self, class_id: str, student_id: str, *, for_update: bool = False
    ) -> Optional[ClassAssign]:
        query = self.db.query(ClassAssign).filter(
            ClassAssign.class_id == class_id, ClassAssign.student_id == student_id
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def list_for_students(self, student_ids: Sequence[str]) -> List[ClassAssign]:
        if not student_ids:
            return []
        return (
            self.db.query(ClassAssign)
            .filter(ClassAssign.student_id.in_(list(student_ids)))
            .order_by(ClassAssign.enrolled_at.desc())
            .all()
        )

    def list_for_class(self, class_id: str) -> List[ClassAssign]:
        return (
            self.db.query(ClassAssign)
            .filter(ClassAssign.class_id == class_id)
            .order_by(ClassAssign.enrolled_at.asc())
            .all()
        )

    def count_for_class(self, class_id: str) -> int:
        return self.db.query(ClassAssign).filter(ClassAssign.class_id == class_id).count()

    def list_for_tutor(self, tutor_id: str) -> List[ClassAssign]:
        """Enrollments in the tutor's classes that have not been cancelled."""
        return (
            self.db.query(ClassAssign)
            .join(TutoringClass, TutoringClass.id == ClassAssign.class_id)
            .filter(
                TutoringClass.tutor_id == tutor_id,
                TutoringClass.status != ClassStatus.CANCELLED,
                TutoringClass.deleted_at.is_(None),
            )
            .all()
        )
