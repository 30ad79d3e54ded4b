"""LessonService: reading back generated lesson occurrences."""

from datetime import datetime, timezone

import pytest

from tests.factories.builders import create_open_class
from tutorlink.core.exceptions import NotFoundException
from tutorlink.models.lesson import Lesson
from tutorlink.schemas.schedule import ScheduleInterval
from tutorlink.services.lesson_service import LessonService
from tutorlink.services.schedule_generation_service import ScheduleGenerationService

# 2030-01-06 is a Sunday
CLASS_START = datetime(2030, 1, 6, tzinfo=timezone.utc)


@pytest.fixture
def tutoring_class(db, test_tutor):
    tutoring_class = create_open_class(db, test_tutor.id)
    generator = ScheduleGenerationService(db, weeks=2)
    with generator.transaction():
        generator.generate_from_weekly_rules(
            tutoring_class.id,
            test_tutor.id,
            CLASS_START,
            [
                ScheduleInterval(day_of_week=3, start_time="17:00", end_time="18:00"),
                ScheduleInterval(day_of_week=1, start_time="09:00", end_time="10:00"),
            ],
        )
    return tutoring_class


def test_lessons_listed_in_calendar_order(db, tutoring_class):
    lessons = LessonService(db).list_lessons_for_class(tutoring_class.id)

    assert [d.start_time.day for d in lessons] == [7, 9, 14, 16]
    assert [d.lesson.title for d in lessons] == ["Lesson 1", "Lesson 2", "Lesson 3", "Lesson 4"]
    assert all(d.tutoring_class.id == tutoring_class.id for d in lessons)


def test_lesson_detail(db, tutoring_class):
    lesson = db.query(Lesson).filter(Lesson.title == "Lesson 2").one()

    detail = LessonService(db).get_lesson_detail(lesson.id)

    assert detail.tutoring_class.subject == tutoring_class.subject
    assert detail.start_time == datetime(2030, 1, 9, 17, 0, tzinfo=timezone.utc)
    assert detail.end_time == datetime(2030, 1, 9, 18, 0, tzinfo=timezone.utc)


def test_unknown_lesson_and_class(db):
    service = LessonService(db)

    with pytest.raises(NotFoundException):
        service.get_lesson_detail("01HMISSING0000000000000000")
    with pytest.raises(NotFoundException):
        service.list_lessons_for_class("01HMISSING0000000000000000")
