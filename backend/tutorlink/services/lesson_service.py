# backend/tutorlink/services/lesson_service.py
"""
Lesson Service for the TutorLink platform

Read side of the lesson occurrences materialised from a class's weekly rules.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..core.timezone_utils import ensure_utc
from ..models.lesson import Lesson
from ..models.tutoring_class import TutoringClass
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class LessonDetail:
    lesson: Lesson
    tutoring_class: TutoringClass
    start_time: Optional[datetime]
    end_time: Optional[datetime]


class LessonService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.entry_repository = RepositoryFactory.create_schedule_entry_repository(db)

    def _get_class_or_404(self, class_id: str) -> TutoringClass:
        tutoring_class = self.class_repository.get_by_id(class_id)
        if tutoring_class is None:
            raise NotFoundException("Class not found", details={"class_id": class_id})
        return tutoring_class

    @BaseService.measure_operation("list_lessons_for_class")
    def list_lessons_for_class(self, class_id: str) -> List[LessonDetail]:
        """Lessons of the class in calendar order; lessons without an entry come last."""
        tutoring_class = self._get_class_or_404(class_id)
        entries = {}
        for entry in self.entry_repository.list_for_class(class_id):
            entries.setdefault(entry.lesson_id, entry)

        details = []
        for lesson in self.lesson_repository.list_for_class(class_id):
            entry = entries.get(lesson.id)
            details.append(
                LessonDetail(
                    lesson=lesson,
                    tutoring_class=tutoring_class,
                    start_time=ensure_utc(entry.start_time) if entry else None,
                    end_time=ensure_utc(entry.end_time) if entry else None,
                )
            )
        details.sort(key=lambda d: (d.start_time is None, d.start_time or datetime.min, d.lesson.id))
        return details

    def get_lesson_detail(self, lesson_id: str) -> LessonDetail:
        lesson = self.lesson_repository.get_by_id(lesson_id)
        if lesson is None:
            raise NotFoundException("Lesson not found", details={"lesson_id": lesson_id})
        entry = self.entry_repository.find_for_lesson(lesson_id)
        return LessonDetail(
            lesson=lesson,
            tutoring_class=self._get_class_or_404(lesson.class_id),
            start_time=ensure_utc(entry.start_time) if entry else None,
            end_time=ensure_utc(entry.end_time) if entry else None,
        )
