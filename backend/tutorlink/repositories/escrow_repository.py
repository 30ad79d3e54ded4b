# backend/tutorlink/repositories/escrow_repository.py
"""Escrow Repository for the TutorLink platform."""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..models.escrow import REFUNDABLE_ESCROW_STATUSES, Escrow
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class EscrowRepository(BaseRepository[Escrow]):
    def __init__(self, db: Session):
        super().__init__(db, Escrow)

    def list_refundable_for_assign(self, class_assign_id: str) -> List[Escrow]:
        """Held or partially released escrows of one enrollment."""
        return (
            self.db.query(Escrow)
            .filter(
                Escrow.class_assign_id == class_assign_id,
                Escrow.status.in_(REFUNDABLE_ESCROW_STATUSES),
            )
            .order_by(Escrow.created_at.asc(), Escrow.id.asc())
            .all()
        )

    def list_for_assign(self, class_assign_id: str) -> List[Escrow]:
        return (
            self.db.query(Escrow)
            .filter(Escrow.class_assign_id == class_assign_id)
            .order_by(Escrow.created_at.asc(), Escrow.id.asc())
            .all()
        )
