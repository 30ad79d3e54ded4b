"""WalletService and EscrowService, driven inside explicit transactions."""

from decimal import Decimal

import pytest

from tests.factories.builders import fund_wallet
from tutorlink.core.exceptions import (
    InsufficientFundsException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)
from tutorlink.models.escrow import Escrow, EscrowStatus
from tutorlink.models.wallet import TransactionType, WalletTransaction
from tutorlink.services.escrow_service import EscrowService
from tutorlink.services.wallet_service import WalletService, to_money


def _escrow(db, payer_user_id, gross="1000", released="0", status=EscrowStatus.HELD) -> Escrow:
    escrow = Escrow(
        class_assign_id="01HASSIGN00000000000000000",
        payer_user_id=payer_user_id,
        gross_amount=Decimal(gross),
        released_amount=Decimal(released),
        refunded_amount=Decimal("0"),
        status=status,
    )
    db.add(escrow)
    db.commit()
    return escrow


class TestWalletService:
    def test_to_money_quantizes(self):
        assert to_money("10") == Decimal("10.00")
        assert to_money(None) == Decimal("0.00")

    def test_balance_of_unknown_user_is_zero(self, db):
        assert WalletService(db).get_balance("01HNOBODY00000000000000000") == Decimal("0.00")

    def test_debit_records_negative_ledger_row(self, db, test_student):
        fund_wallet(db, test_student.user_id, "250")
        wallet = WalletService(db)

        with wallet.transaction():
            entry = wallet.debit(test_student.user_id, Decimal("100"), note="Tuition")

        assert entry.type == TransactionType.DEBIT
        assert entry.amount == Decimal("-100.00")
        assert wallet.get_balance(test_student.user_id) == Decimal("150.00")

    def test_debit_refused_when_short(self, db, test_student):
        fund_wallet(db, test_student.user_id, "99.99")

        with pytest.raises(InsufficientFundsException) as exc:
            WalletService(db).debit(test_student.user_id, Decimal("100"))

        assert exc.value.code == "INSUFFICIENT_FUNDS"
        assert exc.value.details["required"] == "100.00"
        assert db.query(WalletTransaction).count() == 0

    def test_credit_creates_wallet(self, db, test_student):
        wallet = WalletService(db)

        with wallet.transaction():
            wallet.credit(test_student.user_id, Decimal("40"), transaction_type=TransactionType.REFUND)

        assert wallet.get_balance(test_student.user_id) == Decimal("40.00")

    def test_credit_must_be_positive(self, db, test_student):
        with pytest.raises(ValidationException):
            WalletService(db).credit(test_student.user_id, Decimal("0"))


class TestEscrowService:
    def test_hold_creates_held_escrow(self, db, test_student):
        service = EscrowService(db)
        with service.transaction():
            escrow = service.hold("01HASSIGN00000000000000000", test_student.user_id, "750")

        assert escrow.status == EscrowStatus.HELD
        assert escrow.refundable_amount == Decimal("750.00")
        assert service.list_refundable_for_assign("01HASSIGN00000000000000000") == [escrow]

    def test_full_refund_credits_payer(self, db, test_student):
        escrow = _escrow(db, test_student.user_id, gross="1000")
        service = EscrowService(db)

        with service.transaction():
            refunded = service.refund(escrow.id)

        assert refunded == Decimal("1000.00")
        assert escrow.status == EscrowStatus.REFUNDED
        assert WalletService(db).get_balance(test_student.user_id) == Decimal("1000.00")
        ledger = db.query(WalletTransaction).one()
        assert ledger.type == TransactionType.REFUND
        assert ledger.reference_id == escrow.id

    def test_partial_refund_keeps_escrow_open(self, db, test_student):
        escrow = _escrow(db, test_student.user_id, gross="1000")
        service = EscrowService(db)

        with service.transaction():
            refunded = service.partial_refund(escrow.id, Decimal("0.25"))

        assert refunded == Decimal("250.00")
        assert escrow.status == EscrowStatus.HELD
        assert escrow.refundable_amount == Decimal("750.00")

    def test_partial_refund_is_capped_at_refundable(self, db, test_student):
        escrow = _escrow(
            db,
            test_student.user_id,
            gross="1000",
            released="600",
            status=EscrowStatus.PARTIALLY_RELEASED,
        )
        service = EscrowService(db)

        with service.transaction():
            refunded = service.partial_refund(escrow.id, Decimal("1"))

        assert refunded == Decimal("400.00")
        assert escrow.status == EscrowStatus.REFUNDED

    @pytest.mark.parametrize("fraction", ["0", "-0.1", "1.01"])
    def test_fraction_must_be_in_range(self, db, test_student, fraction):
        escrow = _escrow(db, test_student.user_id)
        with pytest.raises(ValidationException):
            EscrowService(db).partial_refund(escrow.id, Decimal(fraction))

    def test_refunded_escrow_cannot_be_refunded_again(self, db, test_student):
        escrow = _escrow(db, test_student.user_id, status=EscrowStatus.REFUNDED)
        with pytest.raises(InvalidStateException):
            EscrowService(db).refund(escrow.id)

    def test_unknown_escrow(self, db):
        with pytest.raises(NotFoundException):
            EscrowService(db).refund("01HNOESCROW000000000000000")
