"""WithdrawalService: refunds, seat release and class cancellation."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from tests.factories.builders import create_enrollment_with_escrow, create_open_class
from tutorlink.core.exceptions import InvalidStateException, NotFoundException
from tutorlink.models.enrollment import ClassAssign
from tutorlink.models.escrow import Escrow, EscrowStatus
from tutorlink.models.lesson import Lesson, ScheduleEntry
from tutorlink.models.tutoring_class import ClassStatus, TutoringClass
from tutorlink.repositories.factory import RepositoryFactory
from tutorlink.schemas.schedule import ScheduleInterval
from tutorlink.services.schedule_generation_service import ScheduleGenerationService
from tutorlink.services.wallet_service import WalletService
from tutorlink.services.withdrawal_service import WithdrawalService, remaining_fraction

# 2030-01-06 is a Sunday
CLASS_START = datetime(2030, 1, 6, tzinfo=timezone.utc)


@pytest.fixture
def service(db) -> WithdrawalService:
    return WithdrawalService(db)


def _generate_future_lessons(db, tutoring_class) -> int:
    created = ScheduleGenerationService(db, weeks=4).generate_from_weekly_rules(
        tutoring_class.id,
        tutoring_class.tutor_id,
        CLASS_START,
        [ScheduleInterval(day_of_week=1, start_time="09:00", end_time="10:00")],
    )
    db.commit()
    return created


def _add_past_lesson(db, tutoring_class) -> ScheduleEntry:
    lesson = Lesson(class_id=tutoring_class.id, title="Lesson 0")
    db.add(lesson)
    db.flush()
    started = datetime.now(timezone.utc) - timedelta(days=7)
    entry = ScheduleEntry(
        tutor_id=tutoring_class.tutor_id,
        lesson_id=lesson.id,
        start_time=started,
        end_time=started + timedelta(hours=1),
    )
    db.add(entry)
    db.commit()
    return entry


class TestWithdrawFromClass:
    def test_last_student_withdrawing_held_escrow_cancels_class(
        self, service, db, test_student, test_tutor
    ):
        tutoring_class = create_open_class(db, test_tutor.id, price="500000")
        _, escrow = create_enrollment_with_escrow(
            db, tutoring_class, test_student.id, test_student.user_id, gross="500000"
        )
        assert _generate_future_lessons(db, tutoring_class) == 4
        past_entry = _add_past_lesson(db, tutoring_class)

        result = service.withdraw_from_class(test_student.user_id, "student", tutoring_class.id)

        assert result.refunded_total == Decimal("500000.00")
        assert result.class_cancelled is True
        assert result.occurrences_removed == 4

        assert WalletService(db).get_balance(test_student.user_id) == Decimal("500000.00")
        refreshed_escrow = db.get(Escrow, escrow.id)
        assert refreshed_escrow.status == EscrowStatus.REFUNDED
        assert refreshed_escrow.refunded_amount == Decimal("500000.00")

        assert db.query(ClassAssign).count() == 0
        refreshed_class = db.get(TutoringClass, tutoring_class.id)
        assert refreshed_class.current_student_count == 0
        assert refreshed_class.status == ClassStatus.CANCELLED

        remaining_entries = db.query(ScheduleEntry).all()
        assert [e.id for e in remaining_entries] == [past_entry.id]
        assert db.query(Lesson).count() == 1

    def test_partially_released_escrow_refunds_remaining_share(
        self, service, db, test_student, test_student_2, test_tutor
    ):
        tutoring_class = create_open_class(db, test_tutor.id, student_limit=2)
        _, escrow = create_enrollment_with_escrow(
            db,
            tutoring_class,
            test_student.id,
            test_student.user_id,
            gross="500000",
            released="200000",
            escrow_status=EscrowStatus.PARTIALLY_RELEASED,
        )
        create_enrollment_with_escrow(
            db, tutoring_class, test_student_2.id, test_student_2.user_id
        )
        _generate_future_lessons(db, tutoring_class)

        result = service.withdraw_from_class(test_student.user_id, "student", tutoring_class.id)

        # 500000 x (1 - 200000/500000)
        assert result.refunded_total == Decimal("300000.00")
        assert result.class_cancelled is False
        assert db.get(Escrow, escrow.id).status == EscrowStatus.REFUNDED

        refreshed_class = db.get(TutoringClass, tutoring_class.id)
        assert refreshed_class.current_student_count == 1
        assert refreshed_class.status == ClassStatus.PENDING
        assert db.query(ScheduleEntry).count() == 4

    def test_released_escrow_is_left_alone(self, service, db, test_student, test_tutor):
        tutoring_class = create_open_class(db, test_tutor.id)
        _, escrow = create_enrollment_with_escrow(
            db,
            tutoring_class,
            test_student.id,
            test_student.user_id,
            gross="500000",
            released="500000",
            escrow_status=EscrowStatus.RELEASED,
        )

        result = service.withdraw_from_class(test_student.user_id, "student", tutoring_class.id)

        assert result.refunded_total == Decimal("0")
        assert db.get(Escrow, escrow.id).status == EscrowStatus.RELEASED
        assert WalletService(db).get_balance(test_student.user_id) == Decimal("0.00")

    def test_parent_withdraws_child(
        self, service, db, test_student, test_parent_user_id, test_tutor
    ):
        tutoring_class = create_open_class(db, test_tutor.id)
        create_enrollment_with_escrow(db, tutoring_class, test_student.id, test_parent_user_id)

        service.withdraw_from_class(
            test_parent_user_id, "parent", tutoring_class.id, student_id=test_student.id
        )

        assert WalletService(db).get_balance(test_parent_user_id) == Decimal("500000.00")

    def test_not_enrolled(self, service, db, test_student, test_tutor):
        tutoring_class = create_open_class(db, test_tutor.id)
        with pytest.raises(NotFoundException):
            service.withdraw_from_class(test_student.user_id, "student", tutoring_class.id)

    @pytest.mark.parametrize("status", [ClassStatus.COMPLETED, ClassStatus.CANCELLED])
    def test_closed_class_is_refused(self, service, db, test_student, test_tutor, status):
        tutoring_class = create_open_class(db, test_tutor.id, status=status)
        create_enrollment_with_escrow(db, tutoring_class, test_student.id, test_student.user_id)

        with pytest.raises(InvalidStateException):
            service.withdraw_from_class(test_student.user_id, "student", tutoring_class.id)

        assert db.query(ClassAssign).count() == 1
        assert db.query(Escrow).one().status == EscrowStatus.HELD

    def test_refund_failure_rolls_back_everything(self, db, test_student, test_tutor):
        tutoring_class = create_open_class(db, test_tutor.id)
        _, escrow = create_enrollment_with_escrow(
            db, tutoring_class, test_student.id, test_student.user_id
        )
        gateway = MagicMock()
        gateway.list_refundable_for_assign.return_value = [escrow]
        gateway.refund.side_effect = RuntimeError("escrow provider timeout")
        service = WithdrawalService(db, escrow=gateway)

        with pytest.raises(RuntimeError):
            service.withdraw_from_class(test_student.user_id, "student", tutoring_class.id)

        assert db.query(ClassAssign).count() == 1
        refreshed_class = db.get(TutoringClass, tutoring_class.id)
        assert refreshed_class.current_student_count == 1
        assert refreshed_class.status == ClassStatus.PENDING

    def test_enrollment_already_removed_after_class_lock(
        self, service, db, test_student, test_student_2, test_tutor
    ):
        tutoring_class = create_open_class(db, test_tutor.id, student_limit=2)
        enrollment, _ = create_enrollment_with_escrow(
            db, tutoring_class, test_student.id, test_student.user_id
        )
        create_enrollment_with_escrow(db, tutoring_class, test_student_2.id, test_student_2.user_id)
        # Enrollment as read by an overlapping request before the first withdrawal committed
        stale = SimpleNamespace(
            id=enrollment.id,
            class_id=tutoring_class.id,
            student_id=test_student.id,
            payment_status=enrollment.payment_status,
        )

        service.withdraw_from_class(test_student.user_id, "student", tutoring_class.id)

        overlapping = WithdrawalService(db)
        with patch.object(
            overlapping.class_assign_repository, "find_enrollment", return_value=stale
        ):
            with pytest.raises(NotFoundException):
                overlapping.withdraw_from_class(
                    test_student.user_id, "student", tutoring_class.id
                )

        refreshed_class = db.get(TutoringClass, tutoring_class.id)
        assignments = RepositoryFactory.create_class_assign_repository(db)
        assert refreshed_class.current_student_count == 1
        assert assignments.count_for_class(tutoring_class.id) == 1
        assert refreshed_class.status == ClassStatus.PENDING

    def test_occupancy_matches_enrollment_rows(
        self, service, db, test_student, test_student_2, test_tutor
    ):
        tutoring_class = create_open_class(db, test_tutor.id, student_limit=2)
        create_enrollment_with_escrow(db, tutoring_class, test_student.id, test_student.user_id)
        create_enrollment_with_escrow(db, tutoring_class, test_student_2.id, test_student_2.user_id)
        assignments = RepositoryFactory.create_class_assign_repository(db)

        result = service.withdraw_from_class(test_student.user_id, "student", tutoring_class.id)

        refreshed_class = db.get(TutoringClass, tutoring_class.id)
        assert result.class_cancelled is False
        assert refreshed_class.current_student_count == 1
        assert assignments.count_for_class(tutoring_class.id) == 1


def test_remaining_fraction():
    escrow = Escrow(gross_amount=Decimal("500000"), released_amount=Decimal("125000"))
    assert remaining_fraction(escrow) == Decimal("0.75")
    assert remaining_fraction(Escrow(gross_amount=Decimal("0"), released_amount=Decimal("0"))) == 0
