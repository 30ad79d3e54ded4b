# backend/tutorlink/schemas/class_request.py
"""Input DTOs for class request creation and editing."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from ..models.class_request import ClassMode
from ._strict_base import StrictRequestModel
from .schedule import ScheduleInterval


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    cleaned = v.strip()
    return cleaned or None


class ClassRequestCreate(StrictRequestModel):
    """
    Draft of a new class request.

    ``student_id`` names the child's student profile when a parent creates the
    request; students leave it empty and act for their own profile.
    ``tutor_id`` set makes the request direct; empty posts it to the marketplace.
    """

    student_id: Optional[str] = None
    tutor_id: Optional[str] = None
    subject: str = Field(..., min_length=1, max_length=255)
    education_level: str = Field(..., min_length=1, max_length=255)
    mode: ClassMode
    budget: Decimal = Field(..., ge=0)
    location: Optional[str] = None
    description: str = ""
    special_requirements: Optional[str] = None
    class_start_date: Optional[datetime] = None
    online_link: Optional[str] = None
    schedules: List[ScheduleInterval] = Field(default_factory=list)

    @field_validator("student_id", "tutor_id", "location", "special_requirements", "online_link")
    @classmethod
    def clean_optional_text(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class ClassRequestUpdate(StrictRequestModel):
    """
    Partial edit of a pending request.

    Absent or blank fields keep their stored value. ``schedules``, when given,
    replaces the whole interval set.
    """

    subject: Optional[str] = None
    education_level: Optional[str] = None
    mode: Optional[ClassMode] = None
    budget: Optional[Decimal] = Field(default=None, ge=0)
    location: Optional[str] = None
    description: Optional[str] = None
    special_requirements: Optional[str] = None
    class_start_date: Optional[datetime] = None
    online_link: Optional[str] = None
    schedules: Optional[List[ScheduleInterval]] = None

    @field_validator(
        "subject",
        "education_level",
        "location",
        "description",
        "special_requirements",
        "online_link",
    )
    @classmethod
    def clean_optional_text(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    def changed_fields(self) -> dict:
        """Scalar fields carrying a value, schedules excluded."""
        data = self.model_dump(exclude={"schedules"}, exclude_none=True)
        return data
