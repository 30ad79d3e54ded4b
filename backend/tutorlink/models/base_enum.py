# backend/tutorlink/models/base_enum.py
"""
Safe enum helpers for SQLAlchemy.

This module provides utilities for creating SQLAlchemy Enum columns that
correctly use enum VALUES (not NAMES) when persisting to the database.

Status values are stored lowercase so that raw SQL, fixtures and ORM
queries all agree on the same literal.

Usage:
    from tutorlink.models.base_enum import create_safe_enum

    class MyModel(Base):
        status = Column(
            create_safe_enum(MyStatus, "my_status_enum"),
            nullable=False,
            default=MyStatus.ACTIVE,
        )

Note:
    All Python enums for database storage should inherit from (str, Enum)
    and define values explicitly:

    class MyStatus(str, Enum):
        ACTIVE = "active"      # Value in DB will be 'active'
        INACTIVE = "inactive"  # Value in DB will be 'inactive'
"""

from enum import Enum
from typing import Sequence, Type

from sqlalchemy import Enum as SAEnum


def create_safe_enum(
    enum_class: Type[Enum],
    name: str,
    *,
    native_enum: bool = False,
    length: int = 32,
    validate_strings: bool = True,
) -> SAEnum:
    """
    Create a SQLAlchemy Enum that correctly uses enum values (not names).

    This helper ensures consistency between:
    - ORM operations (Python enum instances)
    - Raw SQL operations (string values in database)
    - Bulk seeding operations (SQL INSERT statements)

    Args:
        enum_class: The Python Enum class to use
        name: Database type name (used when native_enum is enabled)
        native_enum: Whether to use a native enum type (default False: the
                     column is a VARCHAR so new statuses need no type migration)
        length: VARCHAR length for the non-native representation
        validate_strings: Whether to validate string values (default True)

    Returns:
        SQLAlchemy Enum column type configured for safe value-based storage

    Example:
        >>> class Status(str, Enum):
        ...     ACTIVE = "active"
        ...     DELETED = "deleted"
        >>> status_column = create_safe_enum(Status, "status_enum")
        >>> # In database: stores "active", "deleted"
        >>> # ORM queries: Status.ACTIVE matches "active" in DB
    """
    return SAEnum(
        enum_class,
        name=name,
        native_enum=native_enum,
        length=length,
        validate_strings=validate_strings,
        values_callable=_get_enum_values,
    )


def _get_enum_values(enum_class: Type[Enum]) -> Sequence[str]:
    """
    Extract values from an enum class for SAEnum storage.

    This function is the core of the safe enum pattern. SQLAlchemy's default
    behavior uses enum NAMES (e.g., 'PUBLISHED') but we want VALUES
    (e.g., 'published') to match what bulk SQL operations use.

    Args:
        enum_class: The Python Enum class

    Returns:
        List of enum values (not names)
    """
    return [member.value for member in enum_class]
