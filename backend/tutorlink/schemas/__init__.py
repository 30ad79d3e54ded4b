"""Pydantic DTOs accepted by the workflow services."""

from .class_request import ClassRequestCreate, ClassRequestUpdate
from .recurring_class import RecurringClassCreate
from .schedule import ScheduleInterval, ensure_well_ordered, intervals_from_rows
from .tutor_application import TutorApplicationCreate

__all__ = [
    "ClassRequestCreate",
    "ClassRequestUpdate",
    "RecurringClassCreate",
    "ScheduleInterval",
    "TutorApplicationCreate",
    "ensure_well_ordered",
    "intervals_from_rows",
]
