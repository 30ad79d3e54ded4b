# backend/tests/conftest.py
"""
Pytest configuration for the TutorLink backend.

Testing mode and an in-memory SQLite database are configured BEFORE any
tutorlink import so that the module-level engine binds to the test database.
Every test gets freshly created tables.
"""

import os
import sys

# CRITICAL: Set testing mode BEFORE any tutorlink imports!
os.environ["is_testing"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("TEST_DATABASE_URL", None)
os.environ.pop("REDIS_URL", None)

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, backend_dir)

import pytest
from sqlalchemy.orm import Session

from tests.factories.fakes import RecordingNotificationSink
from tutorlink.core.config import settings
from tutorlink.core.ulid_helper import generate_ulid
from tutorlink.database import Base, SessionLocal, engine
import tutorlink.models  # noqa: F401  (registers every table on Base.metadata)
from tutorlink.models.profile import ParentStudentLink, StudentProfile, TutorProfile
from tutorlink.services.notification_dispatcher import NotificationDispatcher

settings.is_testing = True


@pytest.fixture(scope="function")
def db():
    """Create the schema and a fresh session for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def notification_sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def dispatcher(notification_sink: RecordingNotificationSink) -> NotificationDispatcher:
    return NotificationDispatcher(notification_sink)


@pytest.fixture
def test_student(db: Session) -> StudentProfile:
    """Create a student profile for a fresh user account."""
    profile = StudentProfile(user_id=generate_ulid(), full_name="Test Student")
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def test_student_2(db: Session) -> StudentProfile:
    profile = StudentProfile(user_id=generate_ulid(), full_name="Second Student")
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def test_tutor(db: Session) -> TutorProfile:
    """Create a tutor profile for a fresh user account."""
    profile = TutorProfile(user_id=generate_ulid(), full_name="Test Tutor")
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def test_tutor_2(db: Session) -> TutorProfile:
    profile = TutorProfile(user_id=generate_ulid(), full_name="Second Tutor")
    db.add(profile)
    db.commit()
    return profile


@pytest.fixture
def test_parent_user_id(db: Session, test_student: StudentProfile) -> str:
    """A parent account holding a verified link to ``test_student``."""
    parent_user_id = generate_ulid()
    db.add(ParentStudentLink(parent_user_id=parent_user_id, student_profile_id=test_student.id))
    db.commit()
    return parent_user_id
