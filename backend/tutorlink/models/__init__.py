"""
Database models for the TutorLink platform.

The models are organized by aggregate:
- Profiles and parent/child links
- Class requests and tutor applications
- Classes, schedule rules and enrollments
- Materialised lessons and calendar entries
- Wallets, ledger rows and escrows
- Notifications
"""

from .class_request import ClassMode, ClassRequest, ClassRequestSchedule, ClassRequestStatus
from .enrollment import ApprovalStatus, ClassAssign, PaymentStatus
from .escrow import Escrow, EscrowStatus
from .lesson import Lesson, ScheduleEntry, ScheduleEntryType
from .notification import Notification
from .profile import ParentStudentLink, StudentProfile, TutorProfile
from .tutor_application import ApplicationStatus, TutorApplication
from .tutoring_class import ClassSchedule, ClassStatus, TutoringClass
from .wallet import TransactionStatus, TransactionType, Wallet, WalletTransaction

__all__ = [
    "ApplicationStatus",
    "ApprovalStatus",
    "ClassAssign",
    "ClassMode",
    "ClassRequest",
    "ClassRequestSchedule",
    "ClassRequestStatus",
    "ClassSchedule",
    "ClassStatus",
    "Escrow",
    "EscrowStatus",
    "Lesson",
    "Notification",
    "ParentStudentLink",
    "PaymentStatus",
    "ScheduleEntry",
    "ScheduleEntryType",
    "StudentProfile",
    "TransactionStatus",
    "TransactionType",
    "TutorApplication",
    "TutorProfile",
    "TutoringClass",
    "Wallet",
    "WalletTransaction",
]
