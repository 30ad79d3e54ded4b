# backend/tutorlink/repositories/factory.py
"""
Repository Factory for the TutorLink platform.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .class_assign_repository import ClassAssignRepository
    from .class_repository import ClassRepository, ClassScheduleRepository
    from .class_request_repository import ClassRequestRepository, ClassRequestScheduleRepository
    from .escrow_repository import EscrowRepository
    from .lesson_repository import LessonRepository, ScheduleEntryRepository
    from .notification_repository import NotificationRepository
    from .profile_repository import (
        ParentStudentLinkRepository,
        StudentProfileRepository,
        TutorProfileRepository,
    )
    from .tutor_application_repository import TutorApplicationRepository
    from .wallet_repository import WalletRepository, WalletTransactionRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_student_profile_repository(db: Session) -> "StudentProfileRepository":
        from .profile_repository import StudentProfileRepository

        return StudentProfileRepository(db)

    @staticmethod
    def create_tutor_profile_repository(db: Session) -> "TutorProfileRepository":
        from .profile_repository import TutorProfileRepository

        return TutorProfileRepository(db)

    @staticmethod
    def create_parent_student_link_repository(db: Session) -> "ParentStudentLinkRepository":
        from .profile_repository import ParentStudentLinkRepository

        return ParentStudentLinkRepository(db)

    @staticmethod
    def create_class_request_repository(db: Session) -> "ClassRequestRepository":
        """Create repository for class request operations."""
        from .class_request_repository import ClassRequestRepository

        return ClassRequestRepository(db)

    @staticmethod
    def create_class_request_schedule_repository(
        db: Session,
    ) -> "ClassRequestScheduleRepository":
        from .class_request_repository import ClassRequestScheduleRepository

        return ClassRequestScheduleRepository(db)

    @staticmethod
    def create_tutor_application_repository(db: Session) -> "TutorApplicationRepository":
        """Create repository for tutor application operations."""
        from .tutor_application_repository import TutorApplicationRepository

        return TutorApplicationRepository(db)

    @staticmethod
    def create_class_repository(db: Session) -> "ClassRepository":
        """Create repository for class operations."""
        from .class_repository import ClassRepository

        return ClassRepository(db)

    @staticmethod
    def create_class_schedule_repository(db: Session) -> "ClassScheduleRepository":
        from .class_repository import ClassScheduleRepository

        return ClassScheduleRepository(db)

    @staticmethod
    def create_class_assign_repository(db: Session) -> "ClassAssignRepository":
        """Create repository for enrollment operations."""
        from .class_assign_repository import ClassAssignRepository

        return ClassAssignRepository(db)

    @staticmethod
    def create_lesson_repository(db: Session) -> "LessonRepository":
        from .lesson_repository import LessonRepository

        return LessonRepository(db)

    @staticmethod
    def create_schedule_entry_repository(db: Session) -> "ScheduleEntryRepository":
        from .lesson_repository import ScheduleEntryRepository

        return ScheduleEntryRepository(db)

    @staticmethod
    def create_wallet_repository(db: Session) -> "WalletRepository":
        """Create repository for wallet balances."""
        from .wallet_repository import WalletRepository

        return WalletRepository(db)

    @staticmethod
    def create_wallet_transaction_repository(db: Session) -> "WalletTransactionRepository":
        from .wallet_repository import WalletTransactionRepository

        return WalletTransactionRepository(db)

    @staticmethod
    def create_escrow_repository(db: Session) -> "EscrowRepository":
        """Create repository for escrow operations."""
        from .escrow_repository import EscrowRepository

        return EscrowRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)
