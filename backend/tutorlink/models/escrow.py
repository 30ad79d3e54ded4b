# backend/tutorlink/models/escrow.py
"""
Escrow holding a payment tied to one enrollment.

``released_amount`` has gone to the tutor; ``refunded_amount`` back to the
payer. Invariant: released + refunded <= gross.
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, String
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .base_enum import create_safe_enum


class EscrowStatus(str, Enum):
    HELD = "held"
    PARTIALLY_RELEASED = "partially_released"
    RELEASED = "released"
    REFUNDED = "refunded"


REFUNDABLE_ESCROW_STATUSES = (EscrowStatus.HELD, EscrowStatus.PARTIALLY_RELEASED)


class Escrow(Base):
    __tablename__ = "escrows"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    # No FK: the enrollment row is deleted on withdrawal while the escrow stays
    # as the audit record of the refund.
    class_assign_id = Column(String(26), nullable=False, index=True)
    payer_user_id = Column(String(26), nullable=False, index=True)
    gross_amount = Column(Numeric(14, 2), nullable=False)
    released_amount = Column(Numeric(14, 2), nullable=False, default=0)
    refunded_amount = Column(Numeric(14, 2), nullable=False, default=0)
    status = Column(
        create_safe_enum(EscrowStatus, "escrow_status"),
        nullable=False,
        default=EscrowStatus.HELD,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("released_amount <= gross_amount", name="check_escrow_release_bounded"),
    )

    @property
    def refundable_amount(self) -> Decimal:
        gross = Decimal(self.gross_amount or 0)
        released = Decimal(self.released_amount or 0)
        refunded = Decimal(self.refunded_amount or 0)
        return max(gross - released - refunded, Decimal("0"))
