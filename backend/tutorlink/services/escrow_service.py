# backend/tutorlink/services/escrow_service.py
"""
Escrow refund service.

Refunds move money from an escrow back to the payer's wallet. A full refund
returns everything not yet released to the tutor; a partial refund returns
``gross * fraction``, capped at what is still refundable. The escrow becomes
``refunded`` once nothing refundable remains.

Joins the caller's transaction; never commits.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import List

from sqlalchemy.orm import Session

from ..core.exceptions import InvalidStateException, NotFoundException, ValidationException
from ..models.escrow import REFUNDABLE_ESCROW_STATUSES, Escrow, EscrowStatus
from ..models.wallet import TransactionType
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .wallet_service import CENT, WalletService, to_money

logger = logging.getLogger(__name__)


class EscrowService(BaseService):
    def __init__(self, db: Session, wallet_service: WalletService | None = None):
        super().__init__(db)
        self.escrow_repository = RepositoryFactory.create_escrow_repository(db)
        self.wallet_service = wallet_service or WalletService(db)

    def list_refundable_for_assign(self, class_assign_id: str) -> List[Escrow]:
        return self.escrow_repository.list_refundable_for_assign(class_assign_id)

    def _load_refundable(self, escrow_id: str) -> Escrow:
        escrow = self.escrow_repository.get_for_update(escrow_id)
        if escrow is None:
            raise NotFoundException("Escrow not found", details={"escrow_id": escrow_id})
        if escrow.status not in REFUNDABLE_ESCROW_STATUSES:
            raise InvalidStateException(
                f"Escrow in status '{escrow.status.value}' cannot be refunded",
                details={"escrow_id": escrow_id, "status": escrow.status.value},
            )
        return escrow

    def _apply_refund(self, escrow: Escrow, amount: Decimal) -> Decimal:
        amount = min(to_money(amount), escrow.refundable_amount)
        if amount > 0:
            self.wallet_service.credit(
                escrow.payer_user_id,
                amount,
                transaction_type=TransactionType.REFUND,
                note=f"Escrow refund {escrow.id}",
                reference_id=escrow.id,
            )
            escrow.refunded_amount = to_money(escrow.refunded_amount) + amount

        if escrow.refundable_amount <= 0:
            escrow.status = EscrowStatus.REFUNDED
        self.escrow_repository.flush()

        self.logger.info(
            "Escrow refunded",
            extra={
                "escrow_id": escrow.id,
                "amount": str(amount),
                "status": escrow.status.value,
            },
        )
        return amount

    @BaseService.measure_operation("escrow_refund")
    def refund(self, escrow_id: str) -> Decimal:
        """Refund everything not yet released; returns the amount refunded."""
        escrow = self._load_refundable(escrow_id)
        return self._apply_refund(escrow, escrow.refundable_amount)

    @BaseService.measure_operation("escrow_partial_refund")
    def partial_refund(self, escrow_id: str, fraction: Decimal) -> Decimal:
        """Refund ``gross * fraction``; fraction must lie in (0, 1]."""
        fraction = Decimal(str(fraction))
        if fraction <= 0 or fraction > 1:
            raise ValidationException(
                "Refund fraction must be greater than 0 and at most 1",
                details={"fraction": str(fraction)},
            )
        escrow = self._load_refundable(escrow_id)
        amount = (to_money(escrow.gross_amount) * fraction).quantize(CENT, rounding=ROUND_HALF_UP)
        return self._apply_refund(escrow, amount)

    def hold(self, class_assign_id: str, payer_user_id: str, amount: Decimal) -> Escrow:
        """Open a held escrow for money already debited from the payer."""
        return self.escrow_repository.create(
            class_assign_id=class_assign_id,
            payer_user_id=payer_user_id,
            gross_amount=to_money(amount),
            released_amount=Decimal("0"),
            refunded_amount=Decimal("0"),
            status=EscrowStatus.HELD,
        )
