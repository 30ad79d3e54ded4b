"""RecurringClassService and ScheduleGenerationService."""

from datetime import datetime, time, timezone

import pytest

from tests.factories.builders import create_open_class
from tutorlink.core.exceptions import (
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from tutorlink.core.timezone_utils import ensure_utc
from tutorlink.models.lesson import Lesson, ScheduleEntry
from tutorlink.models.tutoring_class import ClassSchedule, ClassStatus, TutoringClass
from tutorlink.schemas.recurring_class import RecurringClassCreate
from tutorlink.schemas.schedule import ScheduleInterval
from tutorlink.services.recurring_class_service import RecurringClassService
from tutorlink.services.schedule_generation_service import ScheduleGenerationService


def _draft(**overrides) -> RecurringClassCreate:
    data = {
        "title": "IELTS speaking club",
        "subject": "English",
        "education_level": "Adult",
        "mode": "offline",
        "price": "300000",
        "student_limit": 6,
        "location": "District 1 library",
        "schedules": [
            {"day_of_week": 2, "start_time": "18:00", "end_time": "19:30"},
            {"day_of_week": 4, "start_time": "18:00", "end_time": "19:30"},
        ],
    }
    data.update(overrides)
    return RecurringClassCreate(**data)


class TestRecurringClassService:
    def test_creates_empty_pending_class_with_rules(self, db, test_tutor):
        created = RecurringClassService(db).create_recurring_class(test_tutor.user_id, _draft())

        assert created.status == ClassStatus.PENDING
        assert created.current_student_count == 0
        assert created.student_limit == 6
        rules = db.query(ClassSchedule).filter(ClassSchedule.class_id == created.id).all()
        assert sorted(r.day_of_week for r in rules) == [2, 4]

    def test_requires_tutor_profile(self, db, test_student):
        with pytest.raises(UnauthorizedException):
            RecurringClassService(db).create_recurring_class(test_student.user_id, _draft())

    def test_rejects_inverted_rule(self, db, test_tutor):
        draft = _draft(schedules=[{"day_of_week": 2, "start_time": "19:30", "end_time": "18:00"}])

        with pytest.raises(ValidationException):
            RecurringClassService(db).create_recurring_class(test_tutor.user_id, draft)
        assert db.query(TutoringClass).count() == 0

    def test_at_least_one_rule_required(self):
        with pytest.raises(ValueError):
            _draft(schedules=[])


class TestClassReads:
    def test_get_class(self, db, test_tutor):
        created = RecurringClassService(db).create_recurring_class(test_tutor.user_id, _draft())

        assert RecurringClassService(db).get_class(created.id).id == created.id
        with pytest.raises(NotFoundException):
            RecurringClassService(db).get_class("01HMISSING0000000000000000")

    def test_tutor_sees_only_own_classes(self, db, test_tutor, test_tutor_2):
        service = RecurringClassService(db)
        mine = service.create_recurring_class(test_tutor.user_id, _draft())
        service.create_recurring_class(test_tutor_2.user_id, _draft())

        assert [c.id for c in service.list_tutor_classes(test_tutor.user_id)] == [mine.id]

    def test_available_classes_are_open_with_a_free_seat(self, db, test_tutor):
        open_pending = create_open_class(db, test_tutor.id, subject="Physics")
        open_active = create_open_class(
            db,
            test_tutor.id,
            subject="Physics",
            status=ClassStatus.ACTIVE,
            student_limit=3,
            current_student_count=2,
        )
        create_open_class(db, test_tutor.id, subject="Physics", current_student_count=1)
        create_open_class(db, test_tutor.id, subject="Physics", status=ClassStatus.ONGOING)
        create_open_class(db, test_tutor.id, subject="Physics", status=ClassStatus.CANCELLED)
        create_open_class(db, test_tutor.id, subject="Chemistry")

        available = RecurringClassService(db).list_available_classes(subject="Physics")

        assert {c.id for c in available} == {open_pending.id, open_active.id}


class TestScheduleGenerationService:
    def _class(self, db, tutor_id) -> TutoringClass:
        return RecurringClassService(db).create_recurring_class(tutor_id, _draft())

    def test_generates_weekly_occurrences_in_order(self, db, test_tutor):
        tutoring_class = self._class(db, test_tutor.user_id)
        # Sunday 2030-01-06
        start = datetime(2030, 1, 6, tzinfo=timezone.utc)
        intervals = [
            ScheduleInterval(day_of_week=4, start_time="18:00", end_time="19:30"),
            ScheduleInterval(day_of_week=2, start_time="18:00", end_time="19:30"),
        ]
        generator = ScheduleGenerationService(db, weeks=2)

        with generator.transaction():
            created = generator.generate_from_weekly_rules(
                tutoring_class.id, test_tutor.id, start, intervals
            )

        assert created == 4
        entries = db.query(ScheduleEntry).order_by(ScheduleEntry.start_time).all()
        assert [ensure_utc(e.start_time).day for e in entries] == [8, 10, 15, 17]
        assert ensure_utc(entries[0].end_time).time() == time(19, 30)
        titles = {
            lesson.id: lesson.title
            for lesson in db.query(Lesson).filter(Lesson.class_id == tutoring_class.id)
        }
        assert titles[entries[0].lesson_id] == "Lesson 1"
        assert titles[entries[-1].lesson_id] == "Lesson 4"

    def test_skips_slot_already_started_on_first_day(self, db, test_tutor):
        tutoring_class = self._class(db, test_tutor.user_id)
        # Tuesday 2030-01-08, after the 18:00 slot started
        start = datetime(2030, 1, 8, 18, 30, tzinfo=timezone.utc)
        generator = ScheduleGenerationService(db, weeks=1)

        with generator.transaction():
            created = generator.generate_from_weekly_rules(
                tutoring_class.id,
                test_tutor.id,
                start,
                [ScheduleInterval(day_of_week=2, start_time="18:00", end_time="19:30")],
            )

        assert created == 0

    def test_naive_start_is_treated_as_utc(self, db, test_tutor):
        tutoring_class = self._class(db, test_tutor.user_id)
        generator = ScheduleGenerationService(db, weeks=1)

        with generator.transaction():
            created = generator.generate_from_weekly_rules(
                tutoring_class.id,
                test_tutor.id,
                datetime(2030, 1, 6),
                [ScheduleInterval(day_of_week=0, start_time="08:00", end_time="09:00")],
            )

        assert created == 1
