# backend/tutorlink/repositories/wallet_repository.py
"""Wallet and wallet ledger repositories."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.wallet import Wallet, WalletTransaction
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class WalletRepository(BaseRepository[Wallet]):
    def __init__(self, db: Session):
        super().__init__(db, Wallet)

    def get_by_user_id(self, user_id: str, *, for_update: bool = False) -> Optional[Wallet]:
        query = self.db.query(Wallet).filter(Wallet.user_id == user_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()


class WalletTransactionRepository(BaseRepository[WalletTransaction]):
    def __init__(self, db: Session):
        super().__init__(db, WalletTransaction)
