# backend/tutorlink/schemas/schedule.py
"""
Weekly schedule interval shared by requests, classes and conflict detection.

``day_of_week`` follows 0=Sunday ... 6=Saturday.
"""

from datetime import time
from typing import Any, List, Sequence

from pydantic import Field, field_validator

from ..core.exceptions import ValidationException
from ._strict_base import StrictRequestModel


def _parse_time(value: Any) -> Any:
    if isinstance(value, str):
        candidate = value.strip()
        try:
            parts = [int(part) for part in candidate.split(":")]
        except ValueError:
            raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
        if len(parts) == 2:
            return time(parts[0], parts[1])
        if len(parts) == 3:
            return time(parts[0], parts[1], parts[2])
        raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
    return value


class ScheduleInterval(StrictRequestModel):
    """
    One weekly slot: a weekday plus a half-open [start, end) time range.

    Time ordering is validated by the services, which raise ValidationException.
    """

    day_of_week: int = Field(..., ge=0, le=6)
    start_time: time
    end_time: time

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        """Accept HH:MM / HH:MM:SS strings."""
        return _parse_time(v)

    def overlaps(self, other: "ScheduleInterval") -> bool:
        """Same weekday and overlapping ranges; touching endpoints do not overlap."""
        return (
            self.day_of_week == other.day_of_week
            and self.start_time < other.end_time
            and other.start_time < self.end_time
        )

    @property
    def is_well_ordered(self) -> bool:
        return self.end_time > self.start_time

    def label(self) -> str:
        return (
            f"day {self.day_of_week} "
            f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"
        )


def intervals_from_rows(rows: List[Any]) -> List[ScheduleInterval]:
    """Build intervals from ORM rows carrying day_of_week/start_time/end_time."""
    return [
        ScheduleInterval(
            day_of_week=row.day_of_week,
            start_time=row.start_time,
            end_time=row.end_time,
        )
        for row in rows
    ]


def ensure_well_ordered(intervals: Sequence[ScheduleInterval]) -> None:
    """Raise ValidationException for the first interval that does not end after it starts."""
    for interval in intervals:
        if not interval.is_well_ordered:
            raise ValidationException(
                "Schedule end time must be after start time",
                details={"slot": interval.label()},
            )
