"""Domain exception payloads."""

from decimal import Decimal

from tutorlink.core.exceptions import (
    CapacityException,
    InsufficientFundsException,
    InvalidStateException,
    NotFoundException,
    ScheduleConflictException,
)


def test_default_code_is_class_name():
    exc = NotFoundException("Class not found", details={"class_id": "c1"})

    assert exc.status_code == 404
    assert exc.to_dict() == {
        "message": "Class not found",
        "code": "NotFoundException",
        "details": {"class_id": "c1"},
    }


def test_capacity_is_an_invalid_state():
    exc = CapacityException("c1", 2)

    assert isinstance(exc, InvalidStateException)
    assert exc.code == "CLASS_FULL"
    assert exc.details == {"class_id": "c1", "student_limit": 2}


def test_schedule_conflict_exposes_class_id():
    exc = ScheduleConflictException("c9", day_of_week=1, start_time="09:00", end_time="10:00")

    assert exc.conflicting_class_id == "c9"
    assert "c9" in exc.message
    assert exc.details["day_of_week"] == 1


def test_insufficient_funds_stringifies_amounts():
    exc = InsufficientFundsException(Decimal("500000.00"), Decimal("12.50"))

    assert exc.details == {"required": "500000.00", "balance": "12.50"}
