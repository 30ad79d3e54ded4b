# backend/tutorlink/services/conflict_checker.py
"""
Conflict Checker Service for the TutorLink platform

Detects whether a tutor already runs a class equivalent to a proposed one:
same subject, education level and mode, a price within the tolerance window
(default ±10%), and at least one weekly interval overlapping on the same day.

The decision itself is the pure function ``find_schedule_conflict``; the
service only loads candidates and raises. No writes happen here.
"""

from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import ScheduleConflictException
from ..models.class_request import ClassMode
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..schemas.schedule import ScheduleInterval, intervals_from_rows
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class ClassCandidate:
    """An existing live class reduced to what the overlap check needs."""

    class_id: str
    price: Optional[Decimal]
    schedules: List[ScheduleInterval] = field(default_factory=list)


@dataclass(frozen=True)
class ScheduleConflict:
    class_id: str
    interval: ScheduleInterval


def price_within_tolerance(
    candidate_price: Optional[Decimal], proposed_price: Decimal, tolerance: Decimal
) -> bool:
    if candidate_price is None:
        return False
    proposed = Decimal(proposed_price)
    low = proposed * (Decimal(1) - tolerance)
    high = proposed * (Decimal(1) + tolerance)
    return low <= Decimal(candidate_price) <= high


def find_schedule_conflict(
    candidates: Sequence[ClassCandidate],
    proposed_price: Optional[Decimal],
    intervals: Sequence[ScheduleInterval],
    *,
    tolerance: Decimal = Decimal("0.10"),
) -> Optional[ScheduleConflict]:
    """
    First (candidate, interval) pair that overlaps, or None.

    Candidates must already match tutor/subject/level/mode and be live. When no
    price is proposed the price filter is skipped.
    """
    if not candidates:
        return None

    if proposed_price is not None:
        candidates = [
            c for c in candidates if price_within_tolerance(c.price, proposed_price, tolerance)
        ]
        if not candidates:
            return None

    for candidate in candidates:
        for existing in candidate.schedules:
            for proposed in intervals:
                if proposed.overlaps(existing):
                    return ScheduleConflict(class_id=candidate.class_id, interval=proposed)
    return None


class ConflictChecker(BaseService):
    """Loads a tutor's live equivalent classes and rejects duplicate offers."""

    def __init__(self, db: Session, tolerance: Optional[float] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.schedule_repository = RepositoryFactory.create_class_schedule_repository(db)
        raw_tolerance = settings.conflict_price_tolerance if tolerance is None else tolerance
        self.tolerance = Decimal(str(raw_tolerance))

    def load_candidates(
        self, tutor_id: str, subject: str, education_level: str, mode: ClassMode
    ) -> List[ClassCandidate]:
        classes = self.class_repository.find_live_equivalents(
            tutor_id, subject, education_level, mode
        )
        if not classes:
            return []
        schedules = self.schedule_repository.group_by_class([c.id for c in classes])
        return [
            ClassCandidate(
                class_id=c.id,
                price=c.price,
                schedules=intervals_from_rows(schedules.get(c.id, [])),
            )
            for c in classes
        ]

    @BaseService.measure_operation("check_schedule_conflict")
    def ensure_no_conflict(
        self,
        tutor_id: str,
        subject: str,
        education_level: str,
        mode: ClassMode,
        proposed_price: Optional[Decimal],
        intervals: Sequence[ScheduleInterval],
    ) -> None:
        """Raise ScheduleConflictException naming the first overlapping class."""
        candidates = self.load_candidates(tutor_id, subject, education_level, mode)
        conflict = find_schedule_conflict(
            candidates, proposed_price, intervals, tolerance=self.tolerance
        )
        if conflict is None:
            return

        prometheus_metrics.inc_schedule_conflict()
        self.logger.info(
            "Offer rejected: equivalent class already scheduled",
            extra={
                "tutor_id": tutor_id,
                "conflicting_class_id": conflict.class_id,
                "slot": conflict.interval.label(),
            },
        )
        raise ScheduleConflictException(
            conflict.class_id,
            day_of_week=conflict.interval.day_of_week,
            start_time=conflict.interval.start_time.strftime("%H:%M"),
            end_time=conflict.interval.end_time.strftime("%H:%M"),
        )
