# backend/tutorlink/schemas/tutor_application.py
"""Input DTO for a tutor's application to a marketplace request."""

from typing import Optional

from pydantic import Field, field_validator

from ._strict_base import StrictRequestModel


class TutorApplicationCreate(StrictRequestModel):
    class_request_id: str = Field(..., min_length=1)
    meeting_link: Optional[str] = None
    cover_letter: Optional[str] = Field(default=None, max_length=4000)

    @field_validator("meeting_link", "cover_letter")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None
