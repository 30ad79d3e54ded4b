# backend/tutorlink/services/recurring_class_service.py
"""Tutor-authored recurring classes offered on the marketplace."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..models.tutoring_class import ClassSchedule, ClassStatus, TutoringClass
from ..repositories.factory import RepositoryFactory
from ..schemas.recurring_class import RecurringClassCreate
from ..schemas.schedule import ensure_well_ordered
from .base import BaseService
from .gateways import IdentityResolver
from .identity_service import IdentityService, require_tutor_profile_id

logger = logging.getLogger(__name__)


class RecurringClassService(BaseService):
    def __init__(self, db: Session, identity: Optional[IdentityResolver] = None):
        super().__init__(db)
        self.identity = identity or IdentityService(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.schedule_repository = RepositoryFactory.create_class_schedule_repository(db)

    @BaseService.measure_operation("create_recurring_class")
    def create_recurring_class(
        self, tutor_user_id: str, draft: RecurringClassCreate
    ) -> TutoringClass:
        """Create an empty pending class and its weekly rules in one transaction."""
        tutor_id = require_tutor_profile_id(self.identity, tutor_user_id)
        ensure_well_ordered(draft.schedules)

        def _create() -> TutoringClass:
            tutoring_class = self.class_repository.create(
                tutor_id=tutor_id,
                title=draft.title,
                description=draft.description,
                subject=draft.subject,
                education_level=draft.education_level,
                mode=draft.mode,
                price=draft.price,
                status=ClassStatus.PENDING,
                student_limit=draft.student_limit,
                current_student_count=0,
                location=draft.location,
                online_study_link=draft.online_study_link,
                class_start_date=draft.class_start_date,
            )
            self.schedule_repository.add_all(
                [
                    ClassSchedule(
                        class_id=tutoring_class.id,
                        day_of_week=rule.day_of_week,
                        start_time=rule.start_time,
                        end_time=rule.end_time,
                    )
                    for rule in draft.schedules
                ]
            )
            return tutoring_class

        created = self.atomic("create_recurring_class", _create)
        self.log_operation(
            "create_recurring_class",
            class_id=created.id,
            tutor_id=tutor_id,
            rules=len(draft.schedules),
        )
        return created

    def get_class(self, class_id: str) -> TutoringClass:
        tutoring_class = self.class_repository.get_by_id(class_id)
        if tutoring_class is None:
            raise NotFoundException("Class not found", details={"class_id": class_id})
        return tutoring_class

    def list_tutor_classes(self, tutor_user_id: str) -> List[TutoringClass]:
        tutor_id = require_tutor_profile_id(self.identity, tutor_user_id)
        return self.class_repository.list_for_tutor(tutor_id)

    @BaseService.measure_operation("list_available_classes")
    def list_available_classes(
        self,
        subject: Optional[str] = None,
        education_level: Optional[str] = None,
        mode: Optional[str] = None,
    ) -> List[TutoringClass]:
        """Pending or active classes with a free seat, open to marketplace purchase."""
        return self.class_repository.list_available(
            subject=subject, education_level=education_level, mode=mode
        )
