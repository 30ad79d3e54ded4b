# backend/tutorlink/models/wallet.py
"""
Wallet balance and its append-only signed ledger.

Debits are stored as negative amounts, credits (refunds, top-ups) as positive.
The balance must never go negative.
"""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base
from .base_enum import create_safe_enum


class TransactionType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    REFUND = "refund"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Wallet(Base):
    __tablename__ = "wallets"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), nullable=False, unique=True, index=True)
    balance = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (CheckConstraint("balance >= 0", name="check_wallet_balance_non_negative"),)


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    wallet_id = Column(String(26), ForeignKey("wallets.id"), nullable=False, index=True)
    type = Column(create_safe_enum(TransactionType, "wallet_transaction_type"), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    status = Column(
        create_safe_enum(TransactionStatus, "wallet_transaction_status"),
        nullable=False,
        default=TransactionStatus.SUCCEEDED,
    )
    note = Column(Text, nullable=True)
    reference_id = Column(String(26), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
