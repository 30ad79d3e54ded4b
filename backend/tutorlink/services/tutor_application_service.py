# backend/tutorlink/services/tutor_application_service.py
"""
Tutor Application Service for the TutorLink platform

Tutors apply to marketplace requests; the request owner (the student or a
linked parent) accepts one application, which turns the request into a class,
or rejects applications one by one.
"""

import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import (
    DuplicateException,
    InvalidStateException,
    NotFoundException,
    UnauthorizedException,
)
from ..events.notification_events import NotificationKind, PendingNotification, WorkflowOutcome
from ..models.class_request import ClassRequest, ClassRequestStatus
from ..models.tutor_application import ApplicationStatus, TutorApplication
from ..models.tutoring_class import TutoringClass
from ..repositories.base_repository import IntegrityViolation
from ..repositories.factory import RepositoryFactory
from ..schemas.tutor_application import TutorApplicationCreate
from .base import BaseService
from .enrollment_service import EnrollmentService
from .gateways import IdentityResolver
from .identity_service import IdentityService, ensure_request_owner, require_tutor_profile_id
from .notification_dispatcher import NotificationDispatcher
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


class TutorApplicationService(BaseService):
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
        self.application_repository = RepositoryFactory.create_tutor_application_repository(db)
        self.request_repository = RepositoryFactory.create_class_request_repository(db)

    def _get_application_or_404(self, application_id: str) -> TutorApplication:
        application = self.application_repository.get_by_id(application_id)
        if application is None:
            raise NotFoundException(
                "Application not found", details={"application_id": application_id}
            )
        return application

    def _get_request_or_404(self, request_id: str) -> ClassRequest:
        request = self.request_repository.get_by_id(request_id)
        if request is None:
            raise NotFoundException(
                "Class request not found", details={"class_request_id": request_id}
            )
        return request

    @staticmethod
    def _ensure_application_pending(application: TutorApplication) -> None:
        if application.status != ApplicationStatus.PENDING:
            raise InvalidStateException(
                f"Application is already {application.status.value}",
                details={"application_id": application.id, "status": application.status.value},
            )

    @staticmethod
    def _ensure_request_pending(request: ClassRequest) -> None:
        if request.status != ClassRequestStatus.PENDING:
            raise InvalidStateException(
                f"Class request is already {request.status.value}",
                details={"class_request_id": request.id, "status": request.status.value},
            )

    @BaseService.measure_operation("submit_application")
    def submit_application(
        self, tutor_user_id: str, draft: TutorApplicationCreate
    ) -> TutorApplication:
        """
        Apply to a class request.

        One application per tutor and request, whatever its status.
        """
        tutor_id = require_tutor_profile_id(self.identity, tutor_user_id)
        request = self._get_request_or_404(draft.class_request_id)

        if self.application_repository.find_for_tutor_and_request(tutor_id, request.id):
            raise DuplicateException(
                "You have already applied to this class request",
                details={"class_request_id": request.id},
            )
        student_user_id = self.identity.student_user_id(request.student_id)

        def _submit() -> WorkflowOutcome[TutorApplication]:
            try:
                application = self.application_repository.create(
                    tutor_id=tutor_id,
                    class_request_id=request.id,
                    status=ApplicationStatus.PENDING,
                    meeting_link=draft.meeting_link,
                    cover_letter=draft.cover_letter,
                )
            except IntegrityViolation as exc:
                raise DuplicateException(
                    "You have already applied to this class request",
                    details={"class_request_id": request.id},
                ) from exc

            notifications = []
            if student_user_id:
                notifications.append(
                    PendingNotification(
                        user_id=student_user_id,
                        kind=NotificationKind.TUTOR_APPLICATION_RECEIVED,
                        message=f"A tutor applied to your {request.subject} class request.",
                        related_entity_id=application.id,
                    )
                )
            return WorkflowOutcome(result=application, notifications=notifications)

        outcome = self.atomic("submit_application", _submit)
        self.log_operation(
            "submit_application",
            application_id=outcome.result.id,
            class_request_id=request.id,
            tutor_id=tutor_id,
        )
        self.dispatcher.dispatch(outcome.notifications)
        return outcome.result

    @BaseService.measure_operation("withdraw_application")
    def withdraw_application(self, tutor_user_id: str, application_id: str) -> bool:
        """Delete one of the tutor's own pending applications."""
        tutor_id = require_tutor_profile_id(self.identity, tutor_user_id)
        application = self._get_application_or_404(application_id)
        if application.tutor_id != tutor_id:
            raise UnauthorizedException("You can only withdraw your own applications")
        self._ensure_application_pending(application)

        def _withdraw() -> bool:
            locked = self.application_repository.get_for_update(application_id)
            if locked is None:
                raise NotFoundException(
                    "Application not found", details={"application_id": application_id}
                )
            self._ensure_application_pending(locked)
            return self.application_repository.delete(application_id)

        withdrawn = self.atomic("withdraw_application", _withdraw)
        self.log_operation("withdraw_application", application_id=application_id)
        return withdrawn

    @BaseService.measure_operation("accept_application")
    def accept_application(
        self, actor_user_id: str, role: Union[str, RoleName], application_id: str
    ) -> TutoringClass:
        """
        Accept an application on the actor's request and create the class.

        Once the request is matched every other application on it is refused
        with InvalidStateException.
        """
        application = self._get_application_or_404(application_id)
        request = self._get_request_or_404(application.class_request_id)
        ensure_request_owner(self.identity, actor_user_id, role, request.student_id)
        self._ensure_request_pending(request)
        self._ensure_application_pending(application)

        tutor_user_id = self.identity.tutor_user_id(application.tutor_id)
        student_user_id = self.identity.student_user_id(request.student_id)

        def _accept() -> WorkflowOutcome[TutoringClass]:
            locked_request = self.request_repository.get_for_update(request.id)
            if locked_request is None:
                raise NotFoundException(
                    "Class request not found", details={"class_request_id": request.id}
                )
            locked_application = self.application_repository.get_for_update(application_id)
            if locked_application is None:
                raise NotFoundException(
                    "Application not found", details={"application_id": application_id}
                )
            self._ensure_request_pending(locked_request)
            self._ensure_application_pending(locked_application)

            new_class = self.enrollment_service.create_class_from_match(
                locked_request,
                locked_application.tutor_id,
                locked_application.meeting_link,
                locked_application,
            )

            notifications = []
            if tutor_user_id:
                notifications.append(
                    PendingNotification(
                        user_id=tutor_user_id,
                        kind=NotificationKind.TUTOR_APPLICATION_ACCEPTED,
                        message=f"Your application was accepted. Class '{new_class.title}' is ready.",
                        related_entity_id=new_class.id,
                    )
                )
            if student_user_id:
                notifications.append(
                    PendingNotification(
                        user_id=student_user_id,
                        kind=NotificationKind.CLASS_CREATED_FROM_REQUEST,
                        message=f"Class '{new_class.title}' has been created for you.",
                        related_entity_id=new_class.id,
                    )
                )
            return WorkflowOutcome(result=new_class, notifications=notifications)

        outcome = self.atomic("accept_application", _accept)
        self.log_operation(
            "accept_application",
            application_id=application_id,
            class_request_id=request.id,
            class_id=outcome.result.id,
        )
        self.dispatcher.dispatch(outcome.notifications)
        return outcome.result

    @BaseService.measure_operation("reject_application")
    def reject_application(
        self, actor_user_id: str, role: Union[str, RoleName], application_id: str
    ) -> TutorApplication:
        application = self._get_application_or_404(application_id)
        request = self._get_request_or_404(application.class_request_id)
        ensure_request_owner(self.identity, actor_user_id, role, request.student_id)
        self._ensure_application_pending(application)

        tutor_user_id = self.identity.tutor_user_id(application.tutor_id)

        def _reject() -> WorkflowOutcome[TutorApplication]:
            locked = self.application_repository.get_for_update(application_id)
            if locked is None:
                raise NotFoundException(
                    "Application not found", details={"application_id": application_id}
                )
            self._ensure_application_pending(locked)
            locked.status = ApplicationStatus.REJECTED
            self.application_repository.flush()

            notifications = []
            if tutor_user_id:
                notifications.append(
                    PendingNotification(
                        user_id=tutor_user_id,
                        kind=NotificationKind.TUTOR_APPLICATION_REJECTED,
                        message=f"Your application for the {request.subject} request was declined.",
                        related_entity_id=locked.id,
                    )
                )
            return WorkflowOutcome(result=locked, notifications=notifications)

        outcome = self.atomic("reject_application", _reject)
        self.log_operation("reject_application", application_id=application_id)
        self.dispatcher.dispatch(outcome.notifications)
        return outcome.result

    def list_my_applications(self, tutor_user_id: str) -> List[TutorApplication]:
        tutor_id = require_tutor_profile_id(self.identity, tutor_user_id)
        return self.application_repository.list_for_tutor(tutor_id)

    def list_applications_for_request(
        self, actor_user_id: str, role: Union[str, RoleName], request_id: str
    ) -> List[TutorApplication]:
        request = self._get_request_or_404(request_id)
        ensure_request_owner(self.identity, actor_user_id, role, request.student_id)
        return self.application_repository.list_for_request(request_id)
