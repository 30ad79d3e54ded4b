"""Marketplace search and expiry queries on class requests."""

from datetime import datetime, timedelta, timezone

import pytest

from tests.factories.builders import create_class_request
from tutorlink.models.class_request import ClassMode, ClassRequestStatus
from tutorlink.repositories.factory import RepositoryFactory


@pytest.fixture
def repository(db):
    return RepositoryFactory.create_class_request_repository(db)


class TestSearchMarketplace:
    def test_only_open_requests_in_the_given_status(self, db, repository, test_student, test_tutor):
        open_math = create_class_request(db, test_student.id)
        create_class_request(db, test_student.id, tutor_id=test_tutor.id)
        create_class_request(db, test_student.id, status=ClassRequestStatus.CANCELLED)

        items, total = repository.search_marketplace(status=ClassRequestStatus.PENDING)

        assert total == 1
        assert [r.id for r in items] == [open_math.id]

    def test_filters_combine(self, db, repository, test_student):
        wanted = create_class_request(
            db, test_student.id, subject="Physics", mode=ClassMode.OFFLINE
        )
        wanted.location = "District 1, Ho Chi Minh City"
        create_class_request(db, test_student.id, subject="Physics", mode=ClassMode.ONLINE)
        create_class_request(db, test_student.id, subject="Chemistry", mode=ClassMode.OFFLINE)
        db.commit()

        items, total = repository.search_marketplace(
            status=ClassRequestStatus.PENDING,
            subject="Physics",
            mode=ClassMode.OFFLINE,
            location_contains="district 1",
        )

        assert total == 1
        assert items[0].id == wanted.id

    def test_paging_reports_full_total(self, db, repository, test_student):
        for _ in range(5):
            create_class_request(db, test_student.id)

        first, total = repository.search_marketplace(
            status=ClassRequestStatus.PENDING, offset=0, limit=2
        )
        last, _ = repository.search_marketplace(
            status=ClassRequestStatus.PENDING, offset=4, limit=2
        )

        assert total == 5
        assert len(first) == 2
        assert len(last) == 1

    def test_soft_deleted_requests_are_hidden(self, db, repository, test_student):
        request = create_class_request(db, test_student.id)
        request.deleted_at = datetime.now(timezone.utc)
        db.commit()

        _, total = repository.search_marketplace(status=ClassRequestStatus.PENDING)

        assert total == 0
        assert repository.get_by_id(request.id) is None


class TestFindExpirable:
    def test_past_expiry_in_listed_statuses(self, db, repository, test_student):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        overdue_active = create_class_request(
            db, test_student.id, status=ClassRequestStatus.ACTIVE, expiry_date=past
        )
        create_class_request(db, test_student.id, status=ClassRequestStatus.PENDING, expiry_date=past)
        create_class_request(db, test_student.id, status=ClassRequestStatus.ACTIVE)

        found = repository.find_expirable(
            datetime.now(timezone.utc), [ClassRequestStatus.ACTIVE], limit=10
        )

        assert [r.id for r in found] == [overdue_active.id]

    def test_exclude_ids_and_limit(self, db, repository, test_student):
        now = datetime.now(timezone.utc)
        ids = [
            create_class_request(
                db,
                test_student.id,
                status=ClassRequestStatus.ACTIVE,
                expiry_date=now - timedelta(days=3 - offset),
            ).id
            for offset in range(3)
        ]

        found = repository.find_expirable(
            now, [ClassRequestStatus.ACTIVE], limit=1, exclude_ids=[ids[0]]
        )

        assert [r.id for r in found] == [ids[1]]
