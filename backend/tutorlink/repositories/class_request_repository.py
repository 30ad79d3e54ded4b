# backend/tutorlink/repositories/class_request_repository.py
"""
ClassRequest Repository for the TutorLink platform.

Handles data access for class requests and their preferred weekly intervals.
Soft-deleted requests (``deleted_at`` set) are invisible to every query here.
"""

from datetime import datetime
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.class_request import ClassRequest, ClassRequestSchedule, ClassRequestStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ClassRequestRepository(BaseRepository[ClassRequest]):
    """Repository for class request queries."""

    def __init__(self, db: Session):
        super().__init__(db, ClassRequest)

    def _live(self):
        return self.db.query(ClassRequest).filter(ClassRequest.deleted_at.is_(None))

    def get_by_id(self, id: str) -> Optional[ClassRequest]:
        return self._live().filter(ClassRequest.id == id).first()

    def get_for_update(self, id: str) -> Optional[ClassRequest]:
        return (
            self._live()
            .filter(ClassRequest.id == id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def list_for_students(self, student_ids: Sequence[str]) -> List[ClassRequest]:
        if not student_ids:
            return []
        return (
            self._live()
            .filter(ClassRequest.student_id.in_(list(student_ids)))
            .order_by(ClassRequest.created_at.desc())
            .all()
        )

    def list_direct_pending_for_tutor(self, tutor_id: str) -> List[ClassRequest]:
        return (
            self._live()
            .filter(
                ClassRequest.tutor_id == tutor_id,
                ClassRequest.status == ClassRequestStatus.PENDING,
            )
            .order_by(ClassRequest.created_at.desc())
            .all()
        )

    def search_marketplace(
        self,
        *,
        status: ClassRequestStatus,
        subject: Optional[str] = None,
        education_level: Optional[str] = None,
        mode: Optional[str] = None,
        location_contains: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[ClassRequest], int]:
        """
        Page through open (tutor-less) requests, newest first.

        Returns:
            Tuple of (page items, total matching rows)
        """
        try:
            query = self._live().filter(
                ClassRequest.tutor_id.is_(None),
                ClassRequest.status == status,
            )
            if subject:
                query = query.filter(ClassRequest.subject == subject)
            if education_level:
                query = query.filter(ClassRequest.education_level == education_level)
            if mode:
                query = query.filter(ClassRequest.mode == mode)
            if location_contains:
                query = query.filter(ClassRequest.location.ilike(f"%{location_contains}%"))

            total = query.count()
            items = (
                query.order_by(ClassRequest.created_at.desc(), ClassRequest.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return items, total
        except OperationalError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error searching marketplace requests: {str(e)}")
            raise RepositoryException(f"Failed to search class requests: {str(e)}")

    def find_expirable(
        self,
        now: datetime,
        statuses: Iterable[ClassRequestStatus],
        limit: int,
        exclude_ids: Optional[Sequence[str]] = None,
    ) -> List[ClassRequest]:
        """Requests in one of ``statuses`` whose expiry date has passed."""
        query = self._live().filter(
            ClassRequest.status.in_(list(statuses)),
            ClassRequest.expiry_date <= now,
        )
        if exclude_ids:
            query = query.filter(ClassRequest.id.notin_(list(exclude_ids)))
        return (
            query
            .order_by(ClassRequest.expiry_date.asc(), ClassRequest.id.asc())
            .limit(limit)
            .all()
        )


class ClassRequestScheduleRepository(BaseRepository[ClassRequestSchedule]):
    def __init__(self, db: Session):
        super().__init__(db, ClassRequestSchedule)

    def list_for_request(self, class_request_id: str) -> List[ClassRequestSchedule]:
        return (
            self.db.query(ClassRequestSchedule)
            .filter(ClassRequestSchedule.class_request_id == class_request_id)
            .order_by(ClassRequestSchedule.day_of_week, ClassRequestSchedule.start_time)
            .all()
        )

    def delete_for_request(self, class_request_id: str) -> int:
        deleted = (
            self.db.query(ClassRequestSchedule)
            .filter(ClassRequestSchedule.class_request_id == class_request_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return int(deleted or 0)
