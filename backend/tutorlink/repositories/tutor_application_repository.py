# backend/tutorlink/repositories/tutor_application_repository.py
"""TutorApplication Repository for the TutorLink platform."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.tutor_application import TutorApplication
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TutorApplicationRepository(BaseRepository[TutorApplication]):
    def __init__(self, db: Session):
        super().__init__(db, TutorApplication)

    def find_for_tutor_and_request(
        self, tutor_id: str, class_request_id: str
    ) -> Optional[TutorApplication]:
        return (
            self.db.query(TutorApplication)
            .filter(
                TutorApplication.tutor_id == tutor_id,
                TutorApplication.class_request_id == class_request_id,
            )
            .first()
        )

    def list_for_tutor(self, tutor_id: str) -> List[TutorApplication]:
        return (
            self.db.query(TutorApplication)
            .filter(TutorApplication.tutor_id == tutor_id)
            .order_by(TutorApplication.created_at.desc())
            .all()
        )

    def list_for_request(self, class_request_id: str) -> List[TutorApplication]:
        return (
            self.db.query(TutorApplication)
            .filter(TutorApplication.class_request_id == class_request_id)
            .order_by(TutorApplication.created_at.asc())
            .all()
        )
