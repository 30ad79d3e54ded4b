# backend/tutorlink/schemas/recurring_class.py
"""Input DTO for a tutor-authored recurring class template."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from ..models.class_request import ClassMode
from ._strict_base import StrictRequestModel
from .schedule import ScheduleInterval


class RecurringClassCreate(StrictRequestModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    subject: str = Field(..., min_length=1, max_length=255)
    education_level: str = Field(..., min_length=1, max_length=255)
    mode: ClassMode
    price: Decimal = Field(..., ge=0)
    student_limit: int = Field(default=1, ge=1)
    location: Optional[str] = None
    online_study_link: Optional[str] = None
    class_start_date: Optional[datetime] = None
    schedules: List[ScheduleInterval] = Field(..., min_length=1)
