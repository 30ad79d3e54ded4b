# backend/tutorlink/repositories/lesson_repository.py
"""
Lesson and ScheduleEntry repositories.

Future-occurrence purges delete calendar entries before the lessons they
reference.
"""

from datetime import datetime
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..models.lesson import Lesson, ScheduleEntry
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class LessonRepository(BaseRepository[Lesson]):
    def __init__(self, db: Session):
        super().__init__(db, Lesson)

    def list_for_class(self, class_id: str) -> List[Lesson]:
        return self.db.query(Lesson).filter(Lesson.class_id == class_id).all()

    def delete_many(self, lesson_ids: Sequence[str]) -> int:
        if not lesson_ids:
            return 0
        deleted = (
            self.db.query(Lesson)
            .filter(Lesson.id.in_(list(lesson_ids)))
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return int(deleted or 0)


class ScheduleEntryRepository(BaseRepository[ScheduleEntry]):
    def __init__(self, db: Session):
        super().__init__(db, ScheduleEntry)

    def find_future_for_class(self, class_id: str, now: datetime) -> List[ScheduleEntry]:
        """Entries of the class's lessons that start strictly after ``now``."""
        return (
            self.db.query(ScheduleEntry)
            .join(Lesson, Lesson.id == ScheduleEntry.lesson_id)
            .filter(Lesson.class_id == class_id, ScheduleEntry.start_time > now)
            .all()
        )

    def list_for_class(self, class_id: str) -> List[ScheduleEntry]:
        return (
            self.db.query(ScheduleEntry)
            .join(Lesson, Lesson.id == ScheduleEntry.lesson_id)
            .filter(Lesson.class_id == class_id)
            .order_by(ScheduleEntry.start_time.asc())
            .all()
        )

    def find_for_lesson(self, lesson_id: str) -> Optional[ScheduleEntry]:
        return (
            self.db.query(ScheduleEntry)
            .filter(ScheduleEntry.lesson_id == lesson_id)
            .order_by(ScheduleEntry.start_time.asc())
            .first()
        )

    def delete_many(self, entry_ids: Sequence[str]) -> int:
        if not entry_ids:
            return 0
        deleted = (
            self.db.query(ScheduleEntry)
            .filter(ScheduleEntry.id.in_(list(entry_ids)))
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return int(deleted or 0)
