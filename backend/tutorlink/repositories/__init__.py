"""
Repository Pattern Implementation for the TutorLink platform

This package provides the repository layer for data access,
separating business logic from database queries.

Key Components:
- BaseRepository: Foundation for all repositories with generic CRUD operations
- IRepository: Interface defining required methods for all repositories
- RepositoryFactory: Factory for creating repository instances
- One repository per aggregate (requests, applications, classes, enrollments,
  lessons, wallets, escrows, notifications, profiles)

Usage:
    from tutorlink.repositories import RepositoryFactory

    # In a service:
    repository = RepositoryFactory.create_class_request_repository(db)
    requests = repository.list_direct_pending_for_tutor(tutor_id)
"""

from .base_repository import BaseRepository, IntegrityViolation, IRepository
from .class_assign_repository import ClassAssignRepository
from .class_repository import ClassRepository, ClassScheduleRepository
from .class_request_repository import ClassRequestRepository, ClassRequestScheduleRepository
from .escrow_repository import EscrowRepository
from .factory import RepositoryFactory
from .lesson_repository import LessonRepository, ScheduleEntryRepository
from .notification_repository import NotificationRepository
from .profile_repository import (
    ParentStudentLinkRepository,
    StudentProfileRepository,
    TutorProfileRepository,
)
from .tutor_application_repository import TutorApplicationRepository
from .wallet_repository import WalletRepository, WalletTransactionRepository

__all__ = [
    "BaseRepository",
    "ClassAssignRepository",
    "ClassRepository",
    "ClassRequestRepository",
    "ClassRequestScheduleRepository",
    "ClassScheduleRepository",
    "EscrowRepository",
    "IRepository",
    "IntegrityViolation",
    "LessonRepository",
    "NotificationRepository",
    "ParentStudentLinkRepository",
    "RepositoryFactory",
    "ScheduleEntryRepository",
    "StudentProfileRepository",
    "TutorApplicationRepository",
    "TutorProfileRepository",
    "WalletRepository",
    "WalletTransactionRepository",
]
