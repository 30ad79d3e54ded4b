# backend/tutorlink/repositories/profile_repository.py
"""
Profile repositories: user id to student/tutor profile, and parent links.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.profile import ParentStudentLink, StudentProfile, TutorProfile
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class StudentProfileRepository(BaseRepository[StudentProfile]):
    def __init__(self, db: Session):
        super().__init__(db, StudentProfile)

    def get_by_user_id(self, user_id: str) -> Optional[StudentProfile]:
        return self.db.query(StudentProfile).filter(StudentProfile.user_id == user_id).first()

    def get_many(self, profile_ids: List[str]) -> List[StudentProfile]:
        if not profile_ids:
            return []
        return self.db.query(StudentProfile).filter(StudentProfile.id.in_(profile_ids)).all()


class TutorProfileRepository(BaseRepository[TutorProfile]):
    def __init__(self, db: Session):
        super().__init__(db, TutorProfile)

    def get_by_user_id(self, user_id: str) -> Optional[TutorProfile]:
        return self.db.query(TutorProfile).filter(TutorProfile.user_id == user_id).first()

    def get_many(self, profile_ids: List[str]) -> List[TutorProfile]:
        if not profile_ids:
            return []
        return self.db.query(TutorProfile).filter(TutorProfile.id.in_(profile_ids)).all()


class ParentStudentLinkRepository(BaseRepository[ParentStudentLink]):
    def __init__(self, db: Session):
        super().__init__(db, ParentStudentLink)

    def verified_link_exists(self, parent_user_id: str, student_profile_id: str) -> bool:
        return (
            self.db.query(ParentStudentLink.id)
            .filter(
                ParentStudentLink.parent_user_id == parent_user_id,
                ParentStudentLink.student_profile_id == student_profile_id,
                ParentStudentLink.is_verified.is_(True),
            )
            .first()
            is not None
        )

    def verified_child_ids(self, parent_user_id: str) -> List[str]:
        rows = (
            self.db.query(ParentStudentLink.student_profile_id)
            .filter(
                ParentStudentLink.parent_user_id == parent_user_id,
                ParentStudentLink.is_verified.is_(True),
            )
            .all()
        )
        return [row[0] for row in rows]
