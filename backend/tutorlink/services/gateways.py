# backend/tutorlink/services/gateways.py
"""
Collaborator contracts consumed by the matching and enrollment workflows.

The workflows depend on these protocols only. Database-backed defaults live in
identity_service, wallet_service, escrow_service, schedule_generation_service
and notification_service; tests substitute recording fakes.

Wallet, escrow and schedule collaborators join the caller's transaction and
never commit. The notification sink is only ever called after commit.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from ..models.escrow import Escrow
    from ..models.wallet import WalletTransaction
    from ..schemas.schedule import ScheduleInterval


class IdentityResolver(Protocol):
    def student_profile_id_for_user(self, user_id: str) -> Optional[str]:
        ...

    def tutor_profile_id_for_user(self, user_id: str) -> Optional[str]:
        ...

    def parent_child_link_exists(self, parent_user_id: str, student_profile_id: str) -> bool:
        ...

    def student_user_id(self, student_profile_id: str) -> Optional[str]:
        ...

    def tutor_user_id(self, tutor_profile_id: str) -> Optional[str]:
        ...

    def children_of(self, parent_user_id: str) -> List[str]:
        ...


class WalletGateway(Protocol):
    def get_balance(self, user_id: str) -> Decimal:
        ...

    def debit(
        self, user_id: str, amount: Decimal, *, note: Optional[str] = None
    ) -> "WalletTransaction":
        """Atomic check-and-debit; raises InsufficientFundsException."""
        ...


class EscrowGateway(Protocol):
    def hold(self, class_assign_id: str, payer_user_id: str, amount: Decimal) -> "Escrow":
        ...

    def refund(self, escrow_id: str) -> Decimal:
        ...

    def partial_refund(self, escrow_id: str, fraction: Decimal) -> Decimal:
        """``fraction`` must lie in (0, 1]."""
        ...

    def list_refundable_for_assign(self, class_assign_id: str) -> List["Escrow"]:
        ...


class ScheduleGenerator(Protocol):
    def generate_from_weekly_rules(
        self,
        class_id: str,
        tutor_id: str,
        start_date: datetime,
        intervals: Sequence["ScheduleInterval"],
    ) -> int:
        """Materialise occurrences; returns how many were created."""
        ...


class NotificationSink(Protocol):
    def notify(
        self, user_id: str, kind: str, message: str, related_entity_id: Optional[str]
    ) -> str:
        """Persist a notification; returns its id."""
        ...

    def push_realtime(self, user_id: str, notification_id: str) -> None:
        ...
