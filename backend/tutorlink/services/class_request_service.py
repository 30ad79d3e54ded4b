# backend/tutorlink/services/class_request_service.py
"""
Class Request Service for the TutorLink platform

Owns the class request lifecycle: creation by a student or a parent acting for
a linked child, edits while pending, cancellation, tutor responses to direct
requests, marketplace browsing and the periodic expiry sweep.
"""

from datetime import datetime, timedelta
import logging
from typing import List, Optional, Sequence, Tuple, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import RoleName
from ..core.exceptions import InvalidStateException, NotFoundException, ValidationException
from ..core.timezone_utils import utc_now
from ..events.notification_events import NotificationKind, PendingNotification, WorkflowOutcome
from ..models.class_request import ClassRequest, ClassRequestSchedule, ClassRequestStatus
from ..models.tutoring_class import TutoringClass
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.class_request import ClassRequestCreate, ClassRequestUpdate
from ..schemas.schedule import ScheduleInterval, ensure_well_ordered, intervals_from_rows
from .base import BaseService
from .enrollment_service import EnrollmentService
from .gateways import IdentityResolver
from .identity_service import (
    IdentityService,
    ensure_request_owner,
    require_tutor_profile_id,
    resolve_student_scope,
    resolve_target_student_id,
)
from .notification_dispatcher import NotificationDispatcher
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class ClassRequestService(BaseService):
    """
    Service layer for class requests.

    Every mutation validates ownership and state before its first write and
    commits as one unit. Notifications are dispatched after commit.
    """

    def __init__(
        self,
        db: Session,
        identity: Optional[IdentityResolver] = None,
        enrollment_service: Optional[EnrollmentService] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ):
        super().__init__(db)
        self.identity = identity or IdentityService(db)
        self.dispatcher = dispatcher or NotificationDispatcher(NotificationService(db))
        self.enrollment_service = enrollment_service or EnrollmentService(
            db, identity=self.identity, dispatcher=self.dispatcher
        )
        self.request_repository = RepositoryFactory.create_class_request_repository(db)
        self.schedule_repository = RepositoryFactory.create_class_request_schedule_repository(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_or_404(self, request_id: str) -> ClassRequest:
        request = self.request_repository.get_by_id(request_id)
        if request is None:
            raise NotFoundException(
                "Class request not found", details={"class_request_id": request_id}
            )
        return request

    @staticmethod
    def _ensure_pending(request: ClassRequest, action: str) -> None:
        if request.status != ClassRequestStatus.PENDING:
            raise InvalidStateException(
                f"Cannot {action} a class request with status '{request.status.value}'",
                details={"class_request_id": request.id, "status": request.status.value},
            )

    def _add_schedules(
        self, request_id: str, intervals: Sequence[ScheduleInterval]
    ) -> List[ClassRequestSchedule]:
        return self.schedule_repository.add_all(
            [
                ClassRequestSchedule(
                    class_request_id=request_id,
                    day_of_week=interval.day_of_week,
                    start_time=interval.start_time,
                    end_time=interval.end_time,
                )
                for interval in intervals
            ]
        )

    # ------------------------------------------------------------------
    # Creation and edits
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_class_request")
    def create_class_request(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        draft: ClassRequestCreate,
    ) -> ClassRequest:
        """
        Create a pending request with its preferred weekly intervals.

        A parent must set ``draft.student_id`` to a linked child. A request with
        ``tutor_id`` is addressed to that tutor, who is notified.
        """
        student_id = resolve_target_student_id(
            self.identity, actor_user_id, role, draft.student_id
        )
        ensure_well_ordered(draft.schedules)

        tutor_user_id = None
        if draft.tutor_id:
            tutor_user_id = self.identity.tutor_user_id(draft.tutor_id)
            if tutor_user_id is None:
                raise NotFoundException("Tutor not found", details={"tutor_id": draft.tutor_id})

        expiry_date = utc_now() + timedelta(days=settings.class_request_expiry_days)

        def _create() -> WorkflowOutcome[ClassRequest]:
            request = self.request_repository.create(
                student_id=student_id,
                tutor_id=draft.tutor_id,
                subject=draft.subject,
                education_level=draft.education_level,
                mode=draft.mode,
                budget=draft.budget,
                location=draft.location,
                description=draft.description,
                special_requirements=draft.special_requirements,
                class_start_date=draft.class_start_date,
                online_link=draft.online_link,
                status=ClassRequestStatus.PENDING,
                expiry_date=expiry_date,
            )
            self._add_schedules(request.id, draft.schedules)

            notifications = []
            if tutor_user_id:
                notifications.append(
                    PendingNotification(
                        user_id=tutor_user_id,
                        kind=NotificationKind.CLASS_REQUEST_RECEIVED,
                        message=f"New {request.subject} class request for you.",
                        related_entity_id=request.id,
                    )
                )
            return WorkflowOutcome(result=request, notifications=notifications)

        outcome = self.atomic("create_class_request", _create)
        self.log_operation(
            "create_class_request",
            class_request_id=outcome.result.id,
            student_id=student_id,
            direct=tutor_user_id is not None,
        )
        self.dispatcher.dispatch(outcome.notifications)
        return outcome.result

    @BaseService.measure_operation("update_class_request")
    def update_class_request(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        request_id: str,
        patch: ClassRequestUpdate,
    ) -> ClassRequest:
        """
        Apply a partial edit to a pending request.

        Absent or blank fields are left alone. ``patch.schedules`` replaces the
        whole interval set in the same unit as the field changes.
        """
        request = self._get_or_404(request_id)
        ensure_request_owner(self.identity, actor_user_id, role, request.student_id)
        self._ensure_pending(request, "edit")
        if patch.schedules is not None:
            ensure_well_ordered(patch.schedules)

        changes = patch.changed_fields()

        def _update() -> ClassRequest:
            locked = self.request_repository.get_for_update(request_id)
            if locked is None:
                raise NotFoundException(
                    "Class request not found", details={"class_request_id": request_id}
                )
            self._ensure_pending(locked, "edit")

            for field, value in changes.items():
                setattr(locked, field, value)
            if patch.schedules is not None:
                self.schedule_repository.delete_for_request(request_id)
                self._add_schedules(request_id, patch.schedules)
            self.request_repository.flush()
            return locked

        updated = self.atomic("update_class_request", _update)
        self.log_operation(
            "update_class_request",
            class_request_id=request_id,
            fields=sorted(changes),
            schedules_replaced=patch.schedules is not None,
        )
        return updated

    def update_class_request_schedule(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        request_id: str,
        schedules: List[ScheduleInterval],
    ) -> ClassRequest:
        """Replace the full interval set of a pending request."""
        return self.update_class_request(
            actor_user_id, role, request_id, ClassRequestUpdate(schedules=schedules)
        )

    @BaseService.measure_operation("cancel_class_request")
    def cancel_class_request(
        self, actor_user_id: str, role: Union[str, RoleName], request_id: str
    ) -> ClassRequest:
        request = self._get_or_404(request_id)
        ensure_request_owner(self.identity, actor_user_id, role, request.student_id)
        self._ensure_pending(request, "cancel")

        def _cancel() -> ClassRequest:
            locked = self.request_repository.get_for_update(request_id)
            if locked is None:
                raise NotFoundException(
                    "Class request not found", details={"class_request_id": request_id}
                )
            self._ensure_pending(locked, "cancel")
            locked.status = ClassRequestStatus.CANCELLED
            self.request_repository.flush()
            return locked

        cancelled = self.atomic("cancel_class_request", _cancel)
        self.log_operation("cancel_class_request", class_request_id=request_id)
        return cancelled

    # ------------------------------------------------------------------
    # Tutor response to a direct request
    # ------------------------------------------------------------------

    @BaseService.measure_operation("respond_to_direct_request")
    def respond_to_direct_request(
        self,
        tutor_user_id: str,
        request_id: str,
        accept: bool,
        meeting_link: Optional[str] = None,
    ) -> Union[TutoringClass, ClassRequest]:
        """
        Accept or reject a request addressed to this tutor.

        Accepting creates the class and enrollment and returns the class;
        rejecting returns the rejected request.
        """
        tutor_id = require_tutor_profile_id(self.identity, tutor_user_id)
        request = self.request_repository.get_by_id(request_id)
        if request is None or request.tutor_id != tutor_id:
            raise NotFoundException(
                "Class request not found", details={"class_request_id": request_id}
            )
        self._ensure_pending(request, "respond to")
        student_user_id = self.identity.student_user_id(request.student_id)

        def _respond() -> WorkflowOutcome[Union[TutoringClass, ClassRequest]]:
            locked = self.request_repository.get_for_update(request_id)
            if locked is None:
                raise NotFoundException(
                    "Class request not found", details={"class_request_id": request_id}
                )
            self._ensure_pending(locked, "respond to")

            if not accept:
                locked.status = ClassRequestStatus.REJECTED
                self.request_repository.flush()
                notifications = []
                if student_user_id:
                    notifications.append(
                        PendingNotification(
                            user_id=student_user_id,
                            kind=NotificationKind.CLASS_REQUEST_REJECTED,
                            message=f"Your {locked.subject} class request was declined.",
                            related_entity_id=locked.id,
                        )
                    )
                return WorkflowOutcome(result=locked, notifications=notifications)

            new_class = self.enrollment_service.create_class_from_match(
                locked, tutor_id, meeting_link
            )
            notifications = []
            if student_user_id:
                notifications = [
                    PendingNotification(
                        user_id=student_user_id,
                        kind=NotificationKind.CLASS_REQUEST_ACCEPTED,
                        message=f"Your {locked.subject} class request was accepted.",
                        related_entity_id=locked.id,
                    ),
                    PendingNotification(
                        user_id=student_user_id,
                        kind=NotificationKind.CLASS_CREATED_FROM_REQUEST,
                        message=f"Class '{new_class.title}' has been created for you.",
                        related_entity_id=new_class.id,
                    ),
                ]
            return WorkflowOutcome(result=new_class, notifications=notifications)

        outcome = self.atomic("respond_to_direct_request", _respond)
        self.log_operation(
            "respond_to_direct_request",
            class_request_id=request_id,
            tutor_id=tutor_id,
            accepted=accept,
        )
        self.dispatcher.dispatch(outcome.notifications)
        return outcome.result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_request(self, request_id: str) -> ClassRequest:
        return self._get_or_404(request_id)

    def get_request_schedules(self, request_id: str) -> List[ScheduleInterval]:
        self._get_or_404(request_id)
        return intervals_from_rows(self.schedule_repository.list_for_request(request_id))

    @BaseService.measure_operation("list_my_requests")
    def list_my_requests(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        student_id: Optional[str] = None,
    ) -> List[ClassRequest]:
        student_ids = resolve_student_scope(self.identity, actor_user_id, role, student_id)
        return self.request_repository.list_for_students(student_ids)

    def list_direct_requests(self, tutor_user_id: str) -> List[ClassRequest]:
        """Pending requests addressed to this tutor."""
        tutor_id = require_tutor_profile_id(self.identity, tutor_user_id)
        return self.request_repository.list_direct_pending_for_tutor(tutor_id)

    @BaseService.measure_operation("list_marketplace_requests")
    def list_marketplace_requests(
        self,
        page: int = 1,
        page_size: int = 20,
        status: Optional[Union[str, ClassRequestStatus]] = None,
        subject: Optional[str] = None,
        education_level: Optional[str] = None,
        mode: Optional[str] = None,
        location_contains: Optional[str] = None,
    ) -> Tuple[List[ClassRequest], int]:
        """
        Page through open marketplace requests, newest first.

        Returns:
            Tuple of (page items, total matching requests)
        """
        if page < 1:
            raise ValidationException("page must be at least 1", details={"page": page})
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValidationException(
                f"page_size must be between 1 and {MAX_PAGE_SIZE}",
                details={"page_size": page_size},
            )

        return self.request_repository.search_marketplace(
            status=self._parse_status(status) if status else ClassRequestStatus.PENDING,
            subject=subject,
            education_level=education_level,
            mode=mode,
            location_contains=location_contains,
            offset=(page - 1) * page_size,
            limit=page_size,
        )

    @staticmethod
    def _parse_status(value: Union[str, ClassRequestStatus]) -> ClassRequestStatus:
        try:
            return ClassRequestStatus(str(getattr(value, "value", value)).lower())
        except ValueError:
            raise ValidationException(
                f"Unknown class request status: {value}", details={"status": str(value)}
            )

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    @BaseService.measure_operation("update_class_request_status")
    def update_status(
        self, request_id: str, status: Union[str, ClassRequestStatus]
    ) -> ClassRequest:
        """Administrative status override; no transition rules apply."""
        new_status = self._parse_status(status)
        self._get_or_404(request_id)

        def _update() -> ClassRequest:
            locked = self.request_repository.get_for_update(request_id)
            if locked is None:
                raise NotFoundException(
                    "Class request not found", details={"class_request_id": request_id}
                )
            locked.status = new_status
            self.request_repository.flush()
            return locked

        updated = self.atomic("update_class_request_status", _update)
        self.log_operation(
            "update_class_request_status", class_request_id=request_id, status=new_status.value
        )
        return updated

    def soft_delete(self, request_id: str) -> bool:
        request = self.request_repository.get_by_id(request_id)
        if request is None:
            return False

        with self.transaction():
            request.deleted_at = utc_now()
            self.request_repository.flush()

        self.log_operation("soft_delete_class_request", class_request_id=request_id)
        return True

    # ------------------------------------------------------------------
    # Expiry sweep
    # ------------------------------------------------------------------

    def _expirable_statuses(self) -> List[ClassRequestStatus]:
        statuses = [ClassRequestStatus.ACTIVE]
        if settings.request_expiry_include_pending:
            statuses.append(ClassRequestStatus.PENDING)
        return statuses

    def _mark_expired(self, request: ClassRequest) -> None:
        request.status = ClassRequestStatus.EXPIRED
        self.request_repository.flush()

    @BaseService.measure_operation("expire_class_requests")
    def expire_requests(self, now: Optional[datetime] = None) -> int:
        """
        Move every expirable request past its expiry date to ``expired``.

        Sweeps ``active`` requests; ``pending`` ones are included only when
        ``request_expiry_include_pending`` is set. Each batch commits on its own.
        When a batch fails it is retried one request at a time so that a single
        bad row is logged and skipped without holding back the rest.

        Returns:
            Number of requests expired
        """
        now = now or utc_now()
        statuses = self._expirable_statuses()
        batch_size = settings.request_expiry_batch_size
        failed_ids: List[str] = []
        expired = 0

        while True:
            batch = self.request_repository.find_expirable(
                now, statuses, batch_size, exclude_ids=failed_ids
            )
            if not batch:
                break

            try:
                with self.transaction():
                    for request in batch:
                        self._mark_expired(request)
                expired += len(batch)
                continue
            except Exception as exc:
                self.logger.warning(
                    f"Expiry batch failed, retrying per request: {str(exc)}",
                    extra={"batch_size": len(batch)},
                )

            for request in batch:
                request_id = request.id
                try:
                    with self.transaction():
                        self._mark_expired(request)
                    expired += 1
                except Exception as exc:
                    failed_ids.append(request_id)
                    self.logger.error(
                        f"Failed to expire class request {request_id}: {str(exc)}",
                        extra={"class_request_id": request_id},
                    )

        if expired:
            prometheus_metrics.inc_requests_expired(expired)
        self.logger.info(
            f"Expired {expired} class requests",
            extra={"expired": expired, "failed": len(failed_ids)},
        )
        return expired
