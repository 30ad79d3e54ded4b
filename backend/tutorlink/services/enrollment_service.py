# backend/tutorlink/services/enrollment_service.py
"""
Enrollment Service for the TutorLink platform

Turns a match or a purchase into a binding enrollment.

Two entry paths:

1. Match-to-class (``create_class_from_match``): a direct request accepted by
   its tutor, or an application accepted by the request owner. Creates a 1-1
   class with the seat already taken, the enrollment (payment pending), the
   class schedule rules, moves the request to ``matched`` (and the application
   to ``accepted``), then materialises lesson occurrences. It runs inside the
   caller's transaction; the caller commits and notifies.

2. Marketplace purchase (``assign_recurring_class``): a student, or a parent for
   a linked child, buys a seat in an existing open class. Wallet debit, escrow
   hold, enrollment and occupancy change commit together or not at all.

Both paths run the schedule conflict check or all validations before the first
write, so a refused request leaves no trace.
"""

from dataclasses import dataclass
import logging
from typing import List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import (
    CapacityException,
    DuplicateException,
    InvalidStateException,
    NotFoundException,
    UnauthorizedException,
)
from ..core.timezone_utils import utc_now
from ..events.notification_events import NotificationKind, PendingNotification, WorkflowOutcome
from ..models.class_request import ClassRequest, ClassRequestStatus
from ..models.enrollment import ApprovalStatus, ClassAssign, PaymentStatus
from ..models.escrow import Escrow
from ..models.profile import StudentProfile, TutorProfile
from ..models.tutor_application import ApplicationStatus, TutorApplication
from ..models.tutoring_class import (
    ENROLLABLE_CLASS_STATUSES,
    ClassSchedule,
    ClassStatus,
    TutoringClass,
)
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.base_repository import IntegrityViolation
from ..repositories.factory import RepositoryFactory
from ..schemas.schedule import ScheduleInterval, intervals_from_rows
from .base import BaseService
from .conflict_checker import ConflictChecker
from .escrow_service import EscrowService
from .gateways import EscrowGateway, IdentityResolver, ScheduleGenerator, WalletGateway
from .identity_service import (
    IdentityService,
    require_tutor_profile_id,
    resolve_student_scope,
    resolve_target_student_id,
)
from .notification_dispatcher import NotificationDispatcher
from .notification_service import NotificationService
from .schedule_generation_service import ScheduleGenerationService
from .wallet_service import WalletService

logger = logging.getLogger(__name__)


@dataclass
class EnrolledClass:
    enrollment: ClassAssign
    tutoring_class: TutoringClass


@dataclass
class EnrollmentDetail:
    enrollment: ClassAssign
    tutoring_class: TutoringClass
    escrows: List[Escrow]


def build_class_title(request: ClassRequest) -> str:
    return f"{request.subject} class (from request {request.id})"


def build_class_description(request: ClassRequest) -> str:
    description = request.description or ""
    if request.special_requirements:
        description = f"{description}\n\nSpecial requirements: {request.special_requirements}"
    return description


class EnrollmentService(BaseService):
    """
    The atomic unit behind every enrollment.

    Collaborators default to the database-backed implementations and can be
    replaced individually.
    """

    def __init__(
        self,
        db: Session,
        identity: Optional[IdentityResolver] = None,
        wallet: Optional[WalletGateway] = None,
        escrow: Optional[EscrowGateway] = None,
        schedule_generator: Optional[ScheduleGenerator] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        super().__init__(db)
        wallet_service = WalletService(db)
        self.identity = identity or IdentityService(db)
        self.wallet = wallet or wallet_service
        self.escrow = escrow or EscrowService(db, wallet_service)
        self.schedule_generator = schedule_generator or ScheduleGenerationService(db)
        self.conflict_checker = conflict_checker or ConflictChecker(db)
        self.dispatcher = dispatcher or NotificationDispatcher(NotificationService(db))

        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.class_schedule_repository = RepositoryFactory.create_class_schedule_repository(db)
        self.class_assign_repository = RepositoryFactory.create_class_assign_repository(db)
        self.escrow_repository = RepositoryFactory.create_escrow_repository(db)
        self.request_schedule_repository = (
            RepositoryFactory.create_class_request_schedule_repository(db)
        )
        self.student_profile_repository = RepositoryFactory.create_student_profile_repository(db)
        self.tutor_profile_repository = RepositoryFactory.create_tutor_profile_repository(db)

    # ------------------------------------------------------------------
    # Match-to-class (runs inside the caller's transaction)
    # ------------------------------------------------------------------

    def create_class_from_match(
        self,
        request: ClassRequest,
        tutor_id: str,
        meeting_link: Optional[str] = None,
        application: Optional[TutorApplication] = None,
    ) -> TutoringClass:
        """
        Materialise a confirmed match.

        Must be called inside an open transaction with ``request`` (and
        ``application``) loaded under lock and already validated as pending.
        Raises ScheduleConflictException before any write when the tutor already
        runs an equivalent class on an overlapping slot.
        """
        intervals = intervals_from_rows(
            self.request_schedule_repository.list_for_request(request.id)
        )

        self.conflict_checker.ensure_no_conflict(
            tutor_id,
            request.subject,
            request.education_level,
            request.mode,
            request.budget,
            intervals,
        )

        new_class = self.class_repository.create(
            tutor_id=tutor_id,
            title=build_class_title(request),
            description=build_class_description(request),
            subject=request.subject,
            education_level=request.education_level,
            mode=request.mode,
            price=request.budget,
            status=ClassStatus.PENDING,
            student_limit=1,
            current_student_count=1,
            location=request.location,
            online_study_link=meeting_link or request.online_link,
            class_start_date=request.class_start_date,
        )

        self._create_enrollment(
            class_id=new_class.id,
            student_id=request.student_id,
            payment_status=PaymentStatus.PENDING,
        )

        self._copy_schedule_rules(new_class.id, intervals)

        request.status = ClassRequestStatus.MATCHED
        if application is not None:
            application.status = ApplicationStatus.ACCEPTED
        self.class_repository.flush()

        start_date = request.class_start_date or utc_now()
        created = self.schedule_generator.generate_from_weekly_rules(
            new_class.id, tutor_id, start_date, intervals
        )

        prometheus_metrics.inc_enrollment("match")
        self.logger.info(
            "Class created from match",
            extra={
                "class_id": new_class.id,
                "class_request_id": request.id,
                "application_id": application.id if application else None,
                "occurrences": created,
            },
        )
        return new_class

    def _copy_schedule_rules(
        self, class_id: str, intervals: Sequence[ScheduleInterval]
    ) -> List[ClassSchedule]:
        return self.class_schedule_repository.add_all(
            [
                ClassSchedule(
                    class_id=class_id,
                    day_of_week=interval.day_of_week,
                    start_time=interval.start_time,
                    end_time=interval.end_time,
                )
                for interval in intervals
            ]
        )

    def _create_enrollment(
        self, *, class_id: str, student_id: str, payment_status: PaymentStatus
    ) -> ClassAssign:
        try:
            return self.class_assign_repository.create(
                class_id=class_id,
                student_id=student_id,
                approval_status=ApprovalStatus.APPROVED,
                payment_status=payment_status,
                enrolled_at=utc_now(),
            )
        except IntegrityViolation as exc:
            raise DuplicateException(
                "This student is already enrolled in this class",
                details={"class_id": class_id, "student_id": student_id},
            ) from exc

    # ------------------------------------------------------------------
    # Marketplace purchase
    # ------------------------------------------------------------------

    @BaseService.measure_operation("assign_recurring_class")
    def assign_recurring_class(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        class_id: str,
        student_id: Optional[str] = None,
    ) -> ClassAssign:
        """
        Enrol a student in an open class, paid from the actor's wallet.

        The actor is always the payer; a parent pays for the named child.
        """
        target_student_id = resolve_target_student_id(
            self.identity, actor_user_id, role, student_id
        )
        tutoring_class = self.class_repository.get_by_id(class_id)
        if tutoring_class is None:
            raise NotFoundException("Class not found", details={"class_id": class_id})
        self._ensure_enrollable(tutoring_class)
        if self.class_assign_repository.find_enrollment(class_id, target_student_id):
            raise DuplicateException(
                "This student is already enrolled in this class",
                details={"class_id": class_id, "student_id": target_student_id},
            )

        def _enroll() -> WorkflowOutcome[ClassAssign]:
            locked = self.class_repository.get_for_update(class_id)
            if locked is None:
                raise NotFoundException("Class not found", details={"class_id": class_id})
            self._ensure_enrollable(locked)

            price = locked.price or 0
            self.wallet.debit(actor_user_id, price, note=f"Tuition for class {locked.title}")
            enrollment = self._create_enrollment(
                class_id=class_id,
                student_id=target_student_id,
                payment_status=PaymentStatus.PAID,
            )
            self.escrow.hold(enrollment.id, actor_user_id, price)
            locked.current_student_count = (locked.current_student_count or 0) + 1
            self.class_repository.flush()

            notifications = [
                PendingNotification(
                    user_id=actor_user_id,
                    kind=NotificationKind.ESCROW_PAID,
                    message=f"Payment of {price} for class {locked.title} succeeded.",
                    related_entity_id=locked.id,
                )
            ]
            if RoleName.parse(role) == RoleName.PARENT:
                student_user_id = self.identity.student_user_id(target_student_id)
                if student_user_id:
                    notifications.append(
                        PendingNotification(
                            user_id=student_user_id,
                            kind=NotificationKind.CLASS_ENROLLMENT_SUCCESS,
                            message=f"Your parent enrolled you in class {locked.title}.",
                            related_entity_id=locked.id,
                        )
                    )
            return WorkflowOutcome(result=enrollment, notifications=notifications)

        outcome = self.atomic("assign_recurring_class", _enroll)
        prometheus_metrics.inc_enrollment("purchase")
        self.log_operation(
            "assign_recurring_class",
            class_id=class_id,
            student_id=target_student_id,
            payer_user_id=actor_user_id,
        )
        self.dispatcher.dispatch(outcome.notifications)
        return outcome.result

    def _ensure_enrollable(self, tutoring_class: TutoringClass) -> None:
        if tutoring_class.status not in ENROLLABLE_CLASS_STATUSES:
            raise InvalidStateException(
                f"Cannot enrol in a class with status '{tutoring_class.status.value}'",
                details={"class_id": tutoring_class.id, "status": tutoring_class.status.value},
            )
        if not tutoring_class.has_free_seat:
            raise CapacityException(tutoring_class.id, tutoring_class.student_limit)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @BaseService.measure_operation("list_my_enrolled_classes")
    def list_my_enrolled_classes(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        student_id: Optional[str] = None,
    ) -> List[EnrolledClass]:
        student_ids = resolve_student_scope(self.identity, actor_user_id, role, student_id)
        enrollments = self.class_assign_repository.list_for_students(student_ids)
        classes = {
            c.id: c
            for c in self.class_repository.get_many([e.class_id for e in enrollments])
        }
        return [
            EnrolledClass(enrollment=e, tutoring_class=classes[e.class_id])
            for e in enrollments
            if e.class_id in classes
        ]

    def check_enrollment(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        class_id: str,
        student_id: Optional[str] = None,
    ) -> bool:
        target_student_id = resolve_target_student_id(
            self.identity, actor_user_id, role, student_id
        )
        return self.class_assign_repository.find_enrollment(class_id, target_student_id) is not None

    def get_enrollment_detail(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        class_id: str,
        student_id: Optional[str] = None,
    ) -> EnrollmentDetail:
        """The actor's (or linked child's) enrollment in a class with its escrow history."""
        target_student_id = resolve_target_student_id(
            self.identity, actor_user_id, role, student_id
        )
        enrollment = self.class_assign_repository.find_enrollment(class_id, target_student_id)
        tutoring_class = self.class_repository.get_by_id(class_id)
        if enrollment is None or tutoring_class is None:
            raise NotFoundException(
                "Enrollment not found",
                details={"class_id": class_id, "student_id": target_student_id},
            )
        return EnrollmentDetail(
            enrollment=enrollment,
            tutoring_class=tutoring_class,
            escrows=self.escrow_repository.list_for_assign(enrollment.id),
        )

    @BaseService.measure_operation("list_students_in_class")
    def list_students_in_class(self, tutor_user_id: str, class_id: str) -> List[StudentProfile]:
        tutor_id = require_tutor_profile_id(self.identity, tutor_user_id)
        tutoring_class = self.class_repository.get_by_id(class_id)
        if tutoring_class is None:
            raise NotFoundException("Class not found", details={"class_id": class_id})
        if tutoring_class.tutor_id != tutor_id:
            raise UnauthorizedException("You do not teach this class")

        enrollments = self.class_assign_repository.list_for_class(class_id)
        return self.student_profile_repository.get_many([e.student_id for e in enrollments])

    @BaseService.measure_operation("list_my_tutors")
    def list_my_tutors(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        student_id: Optional[str] = None,
    ) -> List[TutorProfile]:
        enrolled = self.list_my_enrolled_classes(actor_user_id, role, student_id)
        tutor_ids = sorted({item.tutoring_class.tutor_id for item in enrolled})
        return self.tutor_profile_repository.get_many(tutor_ids)

    @BaseService.measure_operation("list_my_students")
    def list_my_students(self, tutor_user_id: str) -> List[StudentProfile]:
        tutor_id = require_tutor_profile_id(self.identity, tutor_user_id)
        enrollments = self.class_assign_repository.list_for_tutor(tutor_id)
        student_ids = sorted({e.student_id for e in enrollments})
        return self.student_profile_repository.get_many(student_ids)
