# backend/tutorlink/services/wallet_service.py
"""Wallet balance and ledger service."""

from __future__ import annotations

from decimal import Decimal
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.exceptions import InsufficientFundsException, ValidationException
from ..models.wallet import TransactionStatus, TransactionType, Wallet, WalletTransaction
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(value: object) -> Decimal:
    """Normalise an amount to a two-decimal Decimal."""
    return Decimal(str(value if value is not None else 0)).quantize(CENT)


class WalletService(BaseService):
    """
    Debits and credits user wallets.

    Never commits: every call joins the caller's transaction so that a balance
    change and the workflow that caused it commit or roll back together.
    """

    def __init__(self, db: Session):
        super().__init__(db)
        self.wallet_repository = RepositoryFactory.create_wallet_repository(db)
        self.transaction_repository = RepositoryFactory.create_wallet_transaction_repository(db)

    def get_balance(self, user_id: str) -> Decimal:
        wallet = self.wallet_repository.get_by_user_id(user_id)
        if wallet is None:
            return to_money(0)
        return to_money(wallet.balance)

    @BaseService.measure_operation("wallet_debit")
    def debit(
        self, user_id: str, amount: Decimal, *, note: Optional[str] = None
    ) -> WalletTransaction:
        """Check and debit under a row lock; records a negative ledger row."""
        amount = to_money(amount)
        if amount < 0:
            raise ValidationException("Debit amount must not be negative")

        wallet = self.wallet_repository.get_by_user_id(user_id, for_update=True)
        balance = to_money(wallet.balance) if wallet else to_money(0)
        if wallet is None or balance < amount:
            self.logger.info(
                "Wallet debit refused",
                extra={"user_id": user_id, "required": str(amount), "balance": str(balance)},
            )
            raise InsufficientFundsException(required=amount, balance=balance)

        wallet.balance = balance - amount
        entry = self.transaction_repository.create(
            wallet_id=wallet.id,
            type=TransactionType.DEBIT,
            amount=-amount,
            status=TransactionStatus.SUCCEEDED,
            note=note,
        )
        self.logger.debug(f"Debited {amount} from wallet {wallet.id}")
        return entry

    @BaseService.measure_operation("wallet_credit")
    def credit(
        self,
        user_id: str,
        amount: Decimal,
        *,
        transaction_type: TransactionType = TransactionType.CREDIT,
        note: Optional[str] = None,
        reference_id: Optional[str] = None,
    ) -> WalletTransaction:
        """Credit a wallet, creating it on first use."""
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationException("Credit amount must be positive")

        wallet = self.wallet_repository.get_by_user_id(user_id, for_update=True)
        if wallet is None:
            wallet = self.wallet_repository.add(Wallet(user_id=user_id, balance=Decimal("0")))

        wallet.balance = to_money(wallet.balance) + amount
        return self.transaction_repository.create(
            wallet_id=wallet.id,
            type=transaction_type,
            amount=amount,
            status=TransactionStatus.SUCCEEDED,
            note=note,
            reference_id=reference_id,
        )
