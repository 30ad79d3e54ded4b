# backend/tutorlink/services/withdrawal_service.py
"""
Withdrawal Service for the TutorLink platform

Reverses an enrollment: refunds whatever is still in escrow, removes the
enrollment, frees the seat and, when the last student leaves, cancels the
class and purges its future lesson occurrences. All of it commits as one unit.
"""

from dataclasses import dataclass
from decimal import Decimal
import logging
from typing import Optional, Union

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import InvalidStateException, NotFoundException
from ..core.timezone_utils import utc_now
from ..models.enrollment import PaymentStatus
from ..models.escrow import Escrow, EscrowStatus
from ..models.tutoring_class import ClassStatus
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .escrow_service import EscrowService
from .gateways import EscrowGateway, IdentityResolver
from .identity_service import IdentityService, resolve_target_student_id
from .wallet_service import to_money

logger = logging.getLogger(__name__)

_CLOSED_CLASS_STATUSES = (ClassStatus.COMPLETED, ClassStatus.CANCELLED)


@dataclass
class WithdrawalResult:
    refunded_total: Decimal
    class_cancelled: bool
    occurrences_removed: int


def remaining_fraction(escrow: Escrow) -> Decimal:
    """Share of the gross amount not yet released to the tutor."""
    gross = to_money(escrow.gross_amount)
    if gross <= 0:
        return Decimal("0")
    return Decimal(1) - to_money(escrow.released_amount) / gross


class WithdrawalService(BaseService):
    def __init__(
        self,
        db: Session,
        identity: Optional[IdentityResolver] = None,
        escrow: Optional[EscrowGateway] = None,
    ):
        super().__init__(db)
        self.identity = identity or IdentityService(db)
        self.escrow = escrow or EscrowService(db)
        self.class_repository = RepositoryFactory.create_class_repository(db)
        self.class_assign_repository = RepositoryFactory.create_class_assign_repository(db)
        self.lesson_repository = RepositoryFactory.create_lesson_repository(db)
        self.entry_repository = RepositoryFactory.create_schedule_entry_repository(db)

    @BaseService.measure_operation("withdraw_from_class")
    def withdraw_from_class(
        self,
        actor_user_id: str,
        role: Union[str, RoleName],
        class_id: str,
        student_id: Optional[str] = None,
    ) -> WithdrawalResult:
        """
        Withdraw a student from a class.

        Held escrows are refunded in full. Partially released escrows are
        refunded for the share not yet released. Released or refunded escrows
        are left alone.
        """
        target_student_id = resolve_target_student_id(
            self.identity, actor_user_id, role, student_id
        )

        def _withdraw() -> WithdrawalResult:
            # Class row first: every change to its occupancy holds this lock.
            tutoring_class = self.class_repository.get_for_update(class_id)
            if tutoring_class is None:
                raise NotFoundException("Class not found", details={"class_id": class_id})
            enrollment = self.class_assign_repository.find_enrollment(
                class_id, target_student_id, for_update=True
            )
            if enrollment is None:
                raise NotFoundException(
                    "Enrollment not found",
                    details={"class_id": class_id, "student_id": target_student_id},
                )
            if tutoring_class.status in _CLOSED_CLASS_STATUSES:
                raise InvalidStateException(
                    f"Cannot withdraw from a class with status '{tutoring_class.status.value}'",
                    details={"class_id": class_id, "status": tutoring_class.status.value},
                )

            refunded_total = Decimal("0.00")
            for escrow in self.escrow.list_refundable_for_assign(enrollment.id):
                if escrow.status == EscrowStatus.HELD:
                    refunded_total += self.escrow.refund(escrow.id)
                elif escrow.status == EscrowStatus.PARTIALLY_RELEASED:
                    fraction = remaining_fraction(escrow)
                    if fraction > 0:
                        refunded_total += self.escrow.partial_refund(escrow.id, fraction)

            enrollment.payment_status = PaymentStatus.REFUNDED
            self.class_assign_repository.flush()
            if not self.class_assign_repository.delete(enrollment.id):
                raise NotFoundException(
                    "Enrollment not found",
                    details={"class_id": class_id, "student_id": target_student_id},
                )

            tutoring_class.current_student_count = max(
                (tutoring_class.current_student_count or 0) - 1, 0
            )

            class_cancelled = False
            occurrences_removed = 0
            if tutoring_class.current_student_count == 0:
                tutoring_class.status = ClassStatus.CANCELLED
                class_cancelled = True
                future_entries = self.entry_repository.find_future_for_class(class_id, utc_now())
                lesson_ids = sorted({e.lesson_id for e in future_entries if e.lesson_id})
                occurrences_removed = self.entry_repository.delete_many(
                    [e.id for e in future_entries]
                )
                self.lesson_repository.delete_many(lesson_ids)

            self.class_repository.flush()
            return WithdrawalResult(
                refunded_total=refunded_total,
                class_cancelled=class_cancelled,
                occurrences_removed=occurrences_removed,
            )

        result = self.atomic("withdraw_from_class", _withdraw)
        prometheus_metrics.inc_withdrawal(result.class_cancelled)
        self.log_operation(
            "withdraw_from_class",
            class_id=class_id,
            student_id=target_student_id,
            refunded_total=str(result.refunded_total),
            class_cancelled=result.class_cancelled,
            occurrences_removed=result.occurrences_removed,
        )
        return result
