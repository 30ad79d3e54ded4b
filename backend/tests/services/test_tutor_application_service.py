"""TutorApplicationService: submit, withdraw, accept and reject."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from tests.factories.builders import create_class_request
from tutorlink.core.exceptions import (
    DuplicateException,
    InvalidStateException,
    NotFoundException,
    UnauthorizedException,
)
from tutorlink.events.notification_events import NotificationKind
from tutorlink.models.class_request import ClassRequestStatus
from tutorlink.models.enrollment import ClassAssign
from tutorlink.models.tutor_application import ApplicationStatus, TutorApplication
from tutorlink.models.tutoring_class import ClassSchedule, TutoringClass
from tutorlink.schemas.tutor_application import TutorApplicationCreate
from tutorlink.services.notification_dispatcher import NotificationDispatcher
from tutorlink.services.tutor_application_service import TutorApplicationService

THREE_SLOTS = [(1, "09:00", "10:00"), (3, "09:00", "10:00"), (5, "16:00", "17:30")]


@pytest.fixture
def service(db, dispatcher) -> TutorApplicationService:
    return TutorApplicationService(db, dispatcher=dispatcher)


@pytest.fixture
def open_request(db, test_student):
    return create_class_request(db, test_student.id, slots=THREE_SLOTS)


def _apply(service, tutor, request, meeting_link=None) -> TutorApplication:
    return service.submit_application(
        tutor.user_id,
        TutorApplicationCreate(
            class_request_id=request.id,
            meeting_link=meeting_link,
            cover_letter="Ten years of experience",
        ),
    )


class TestSubmitAndWithdraw:
    def test_submit_creates_pending_application_and_notifies_owner(
        self, service, test_tutor, test_student, open_request, notification_sink
    ):
        application = _apply(service, test_tutor, open_request)

        assert application.status == ApplicationStatus.PENDING
        assert application.tutor_id == test_tutor.id
        assert notification_sink.kinds_for(test_student.user_id) == [
            NotificationKind.TUTOR_APPLICATION_RECEIVED.value
        ]

    def test_second_application_is_duplicate(self, service, test_tutor, open_request):
        _apply(service, test_tutor, open_request)
        with pytest.raises(DuplicateException):
            _apply(service, test_tutor, open_request)

    def test_duplicate_even_after_rejection(
        self, service, db, test_tutor, test_student, open_request
    ):
        application = _apply(service, test_tutor, open_request)
        service.reject_application(test_student.user_id, "student", application.id)

        with pytest.raises(DuplicateException):
            _apply(service, test_tutor, open_request)

    def test_unknown_request(self, service, test_tutor):
        with pytest.raises(NotFoundException):
            service.submit_application(
                test_tutor.user_id,
                TutorApplicationCreate(class_request_id="01HMISSING0000000000000000"),
            )

    def test_account_without_tutor_profile(self, service, test_student, open_request):
        with pytest.raises(UnauthorizedException):
            _apply(service, test_student, open_request)

    def test_withdraw_deletes_pending_application(self, service, db, test_tutor, open_request):
        application = _apply(service, test_tutor, open_request)

        assert service.withdraw_application(test_tutor.user_id, application.id) is True
        assert db.query(TutorApplication).count() == 0

    def test_withdraw_requires_pending(self, service, test_tutor, test_student, open_request):
        application = _apply(service, test_tutor, open_request)
        service.reject_application(test_student.user_id, "student", application.id)

        with pytest.raises(InvalidStateException):
            service.withdraw_application(test_tutor.user_id, application.id)

    def test_cannot_withdraw_someone_elses_application(
        self, service, test_tutor, test_tutor_2, open_request
    ):
        application = _apply(service, test_tutor, open_request)
        with pytest.raises(UnauthorizedException):
            service.withdraw_application(test_tutor_2.user_id, application.id)

    def test_withdraw_rechecks_status_under_lock(
        self, service, db, test_tutor, test_student, open_request
    ):
        application = _apply(service, test_tutor, open_request)
        # Pending as read before the request owner accepted it
        stale = SimpleNamespace(
            id=application.id,
            tutor_id=test_tutor.id,
            class_request_id=open_request.id,
            status=ApplicationStatus.PENDING,
        )
        service.accept_application(test_student.user_id, "student", application.id)

        with patch.object(service.application_repository, "get_by_id", return_value=stale):
            with pytest.raises(InvalidStateException):
                service.withdraw_application(test_tutor.user_id, application.id)

        assert db.get(TutorApplication, application.id).status == ApplicationStatus.ACCEPTED


class TestAcceptApplication:
    def test_accept_turns_request_into_class(
        self, service, db, test_tutor, test_student, open_request, notification_sink
    ):
        application = _apply(service, test_tutor, open_request, "https://meet.example/x")

        new_class = service.accept_application(test_student.user_id, "student", application.id)

        assert new_class.tutor_id == test_tutor.id
        assert new_class.online_study_link == "https://meet.example/x"
        assert db.query(ClassSchedule).filter(ClassSchedule.class_id == new_class.id).count() == 3
        assert db.get(TutorApplication, application.id).status == ApplicationStatus.ACCEPTED
        assert service.request_repository.get_by_id(open_request.id).status == (
            ClassRequestStatus.MATCHED
        )
        assert db.query(ClassAssign).filter(ClassAssign.class_id == new_class.id).count() == 1

        assert notification_sink.kinds_for(test_tutor.user_id) == [
            NotificationKind.TUTOR_APPLICATION_ACCEPTED.value
        ]
        assert NotificationKind.CLASS_CREATED_FROM_REQUEST.value in notification_sink.kinds_for(
            test_student.user_id
        )

    def test_second_accept_on_matched_request_fails(
        self, service, db, test_tutor, test_tutor_2, test_student, open_request
    ):
        first = _apply(service, test_tutor, open_request)
        second = _apply(service, test_tutor_2, open_request)
        service.accept_application(test_student.user_id, "student", first.id)

        with pytest.raises(InvalidStateException):
            service.accept_application(test_student.user_id, "student", second.id)

        assert db.query(TutoringClass).count() == 1
        assert db.get(TutorApplication, second.id).status == ApplicationStatus.PENDING

    def test_concurrent_second_accept_is_refused_under_lock(
        self, service, db, test_tutor, test_tutor_2, test_student, open_request
    ):
        first = _apply(service, test_tutor, open_request)
        second = _apply(service, test_tutor_2, open_request)
        # Request as read by the second accept before the first one committed
        stale_request = SimpleNamespace(
            id=open_request.id,
            student_id=test_student.id,
            subject=open_request.subject,
            status=ClassRequestStatus.PENDING,
        )
        service.accept_application(test_student.user_id, "student", first.id)

        with patch.object(service.request_repository, "get_by_id", return_value=stale_request):
            with pytest.raises(InvalidStateException):
                service.accept_application(test_student.user_id, "student", second.id)

        assert db.query(TutoringClass).count() == 1
        assert db.query(ClassAssign).count() == 1
        assert db.get(TutorApplication, second.id).status == ApplicationStatus.PENDING

    def test_only_request_owner_can_accept(
        self, service, test_tutor, test_student_2, open_request
    ):
        application = _apply(service, test_tutor, open_request)
        with pytest.raises(UnauthorizedException):
            service.accept_application(test_student_2.user_id, "student", application.id)

    def test_linked_parent_can_accept(
        self, service, test_tutor, test_parent_user_id, open_request
    ):
        application = _apply(service, test_tutor, open_request)
        new_class = service.accept_application(test_parent_user_id, "parent", application.id)
        assert new_class.current_student_count == 1

    def test_notification_failure_does_not_undo_the_match(
        self, db, test_tutor, test_student, open_request, notification_sink
    ):
        notification_sink.fail_notify = True
        service = TutorApplicationService(db, dispatcher=NotificationDispatcher(notification_sink))
        application = _apply(service, test_tutor, open_request)

        new_class = service.accept_application(test_student.user_id, "student", application.id)

        assert db.get(TutoringClass, new_class.id) is not None
        assert notification_sink.notified == []


class TestRejectApplication:
    def test_reject_notifies_tutor(
        self, service, test_tutor, test_student, open_request, notification_sink
    ):
        application = _apply(service, test_tutor, open_request)

        rejected = service.reject_application(test_student.user_id, "student", application.id)

        assert rejected.status == ApplicationStatus.REJECTED
        assert notification_sink.kinds_for(test_tutor.user_id) == [
            NotificationKind.TUTOR_APPLICATION_REJECTED.value
        ]

    def test_reject_twice_fails(self, service, test_tutor, test_student, open_request):
        application = _apply(service, test_tutor, open_request)
        service.reject_application(test_student.user_id, "student", application.id)
        with pytest.raises(InvalidStateException):
            service.reject_application(test_student.user_id, "student", application.id)

    def test_lists(self, service, test_tutor, test_tutor_2, test_student, open_request):
        mine = _apply(service, test_tutor, open_request)
        _apply(service, test_tutor_2, open_request)

        assert [a.id for a in service.list_my_applications(test_tutor.user_id)] == [mine.id]
        assert len(
            service.list_applications_for_request(test_student.user_id, "student", open_request.id)
        ) == 2
