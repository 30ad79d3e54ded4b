# backend/tutorlink/core/enums.py
"""
Core enums for the TutorLink platform.

Role names arrive from the authentication layer as plain strings; every
service converts them with ``RoleName.parse`` before branching on them.
"""

from enum import Enum
from typing import Optional, Union


class RoleName(str, Enum):
    """
    Standard role names.

    Only Student and Parent act on behalf of a student profile; Tutor acts on
    its own tutor profile; Admin is limited to status overrides.
    """

    ADMIN = "admin"
    TUTOR = "tutor"
    STUDENT = "student"
    PARENT = "parent"

    @classmethod
    def parse(cls, value: Union[str, "RoleName", None]) -> Optional["RoleName"]:
        """Case-insensitive lookup; unknown roles map to None."""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None
