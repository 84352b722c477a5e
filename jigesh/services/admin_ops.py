"""Administrative operations: suspension and dashboard statistics"""

from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from ..models.account import ROLE_STUDENT, Account
from ..models.payment import STATUS_APPROVED, PaymentRequest
from ..utils.clock import Clock
from ..utils.exceptions import PaymentRequestNotFound
from ..utils.logger import get_logger
from .effective_state import has_active_premium
from .record_store import RecordStore
from .subscription import SubscriptionWorkflow

logger = get_logger(__name__)

NEW_STUDENT_WINDOW = timedelta(days=7)


@dataclass(frozen=True)
class AdminStats:
    total_students: int
    premium_count: int
    total_revenue: int
    new_students_last_7_days: int


class AdminOperations:
    """
    Admin dashboard operations.

    Not-found and already-decided conditions come from a stale admin screen
    and are logged no-ops rather than errors.
    """

    def __init__(
        self,
        store: RecordStore,
        subscriptions: SubscriptionWorkflow,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.subscriptions = subscriptions
        self.clock = clock or Clock()

    def toggle_suspension(self, account_id: str) -> Optional[Account]:
        """
        Flip the suspended flag of an account.

        Sessions already open elsewhere notice on their next reconcile().
        """
        account = self.store.get_account(account_id)
        if account is None:
            logger.warning("SUSPENSION_TARGET_MISSING", account_id=account_id)
            return None
        if account.is_admin:
            # Administrators cannot be suspended; a locked-out admin has no way back in
            logger.warning("SUSPENSION_TARGET_ADMIN", account_id=account_id, email=account.email)
            return None

        updated = account.model_copy(update={"suspended": not account.suspended})
        self.store.upsert_account(updated)
        logger.info(
            "ACCOUNT_SUSPENDED" if updated.suspended else "ACCOUNT_REACTIVATED",
            account_id=account_id,
            email=account.email,
        )
        return updated

    def decide_payment(self, request_id: str, decision: str) -> Optional[PaymentRequest]:
        try:
            return self.subscriptions.decide_payment(request_id, decision)
        except PaymentRequestNotFound:
            logger.warning("PAYMENT_NOT_FOUND", request_id=request_id)
            return None

    def list_students(self) -> List[Account]:
        return [a for a in self.store.list_accounts() if a.role == ROLE_STUDENT]

    def list_payment_requests(self) -> List[PaymentRequest]:
        return self.subscriptions.list_payment_requests()

    def compute_stats(self) -> AdminStats:
        """Derive dashboard figures from a full scan of the store"""
        now = self.clock.now()
        students = self.list_students()
        approved = [
            r for r in self.store.list_payment_requests() if r.status == STATUS_APPROVED
        ]
        since = now - NEW_STUDENT_WINDOW

        return AdminStats(
            total_students=len(students),
            premium_count=sum(1 for a in students if has_active_premium(a, now)),
            total_revenue=sum(r.amount for r in approved),
            new_students_last_7_days=sum(1 for a in students if a.joined_at > since),
        )
