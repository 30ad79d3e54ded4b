# backend/tutorlink/services/schedule_generation_service.py
"""
Materialises dated lesson occurrences from weekly schedule rules.

For each of the next ``schedule_generation_weeks`` weeks starting at the start
date, every rule yields one Lesson and one ScheduleEntry on the tutor's
calendar. Occurrences that would start before the start date are skipped.
Times are interpreted as UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta
import logging
from typing import List, Optional, Sequence, cast

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.timezone_utils import ensure_utc, sunday_based_weekday
from ..models.lesson import Lesson, ScheduleEntry, ScheduleEntryType
from ..repositories.factory import RepositoryFactory
from ..schemas.schedule import ScheduleInterval
from .base import BaseService

logger = logging.getLogger(__name__)


class ScheduleGenerationService(BaseService):
    def __init__(self, db: Session, weeks: Optional[int] = None):
        super().__init__(db)
        self.weeks = weeks or settings.schedule_generation_weeks
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.entry_repository = RepositoryFactory.create_schedule_entry_repository(db)

    @BaseService.measure_operation("generate_from_weekly_rules")
    def generate_from_weekly_rules(
        self,
        class_id: str,
        tutor_id: str,
        start_date: datetime,
        intervals: Sequence[ScheduleInterval],
    ) -> int:
        start = cast(datetime, ensure_utc(start_date))
        first_day = start.date()

        occurrences: List[tuple[datetime, datetime]] = []
        for offset in range(self.weeks * 7):
            day = first_day + timedelta(days=offset)
            weekday = sunday_based_weekday(day)
            for interval in intervals:
                if interval.day_of_week != weekday:
                    continue
                begins = datetime.combine(day, interval.start_time, tzinfo=start.tzinfo)
                if begins < start:
                    continue
                ends = datetime.combine(day, interval.end_time, tzinfo=start.tzinfo)
                occurrences.append((begins, ends))

        occurrences.sort()
        lessons = [
            Lesson(class_id=class_id, title=f"Lesson {index}")
            for index, _ in enumerate(occurrences, start=1)
        ]
        self.lesson_repository.add_all(lessons)
        self.entry_repository.add_all(
            [
                ScheduleEntry(
                    tutor_id=tutor_id,
                    lesson_id=lesson.id,
                    start_time=begins,
                    end_time=ends,
                    entry_type=ScheduleEntryType.LESSON,
                )
                for lesson, (begins, ends) in zip(lessons, occurrences)
            ]
        )

        self.logger.info(
            "Generated lesson occurrences",
            extra={"class_id": class_id, "occurrences": len(occurrences), "weeks": self.weeks},
        )
        return len(occurrences)
