"""
Subscription workflow: payment requests and premium activation.

Students claim an out-of-band payment (bKash/Nagad style transaction
reference); an administrator reviews the claim and approves or rejects it.
Only an approval grants premium, and only once per request.
"""

from typing import List, Optional

from ..models.account import Account
from ..models.payment import (
    STATUS_APPROVED,
    STATUS_REJECTED,
    PaymentRequest,
)
from ..utils.clock import Clock
from ..utils.exceptions import PaymentAlreadyDecided, PaymentRequestNotFound
from ..utils.logger import get_logger
from .record_store import RecordStore
from .subscription_plans import PlanCatalogue

logger = get_logger(__name__)

DECISIONS = (STATUS_APPROVED, STATUS_REJECTED)


class SubscriptionWorkflow:
    def __init__(
        self,
        store: RecordStore,
        clock: Optional[Clock] = None,
        plans: Optional[PlanCatalogue] = None,
    ):
        self.store = store
        self.clock = clock or Clock()
        self.plans = plans or PlanCatalogue()

    def submit_payment_request(
        self,
        account: Account,
        plan: str,
        transaction_ref: str,
    ) -> PaymentRequest:
        """
        Record a pending payment claim.

        Args:
            account: Paying account
            plan: "one_month" or "three_month"
            transaction_ref: Transaction id supplied by the user

        Returns:
            The stored pending PaymentRequest (premium is not granted here)
        """
        transaction_ref = (transaction_ref or "").strip()
        if not transaction_ref:
            raise ValueError("Transaction reference is required")
        amount = self.plans.amount(plan)

        request = PaymentRequest(
            account_id=account.id,
            account_email=account.email,
            account_name=account.display_name or "Unknown",
            plan=plan,
            amount=amount,
            external_transaction_ref=transaction_ref,
            submitted_at=self.clock.now(),
        )
        self.store.insert_payment_request(request)
        logger.info(
            "PAYMENT_SUBMITTED",
            request_id=request.id,
            account_id=account.id,
            plan=plan,
            amount=amount,
        )
        return request

    def list_payment_requests(self) -> List[PaymentRequest]:
        """All payment requests, newest first"""
        return sorted(
            self.store.list_payment_requests(),
            key=lambda r: r.submitted_at,
            reverse=True,
        )

    def list_for_account(self, account_id: str) -> List[PaymentRequest]:
        return [r for r in self.list_payment_requests() if r.account_id == account_id]

    def decide_payment(self, request_id: str, decision: str) -> Optional[PaymentRequest]:
        """
        Approve or reject a pending payment request.

        A request that is no longer pending is a logged no-op, so a stale
        admin screen cannot apply a decision twice. If another process
        decides the request while this approval is in flight, the premium
        grant is taken back. On approval the account is upgraded before the
        request is marked approved: anyone who sees the approval also sees
        the premium account.

        Returns:
            The decided request, or None when nothing took effect

        Raises:
            PaymentRequestNotFound: request_id does not resolve
        """
        if decision not in DECISIONS:
            raise ValueError(f"Decision must be one of {', '.join(DECISIONS)}")

        request = self.store.get_payment_request(request_id)
        if request is None:
            raise PaymentRequestNotFound(f"Payment request '{request_id}' not found")
        if not request.is_pending:
            logger.info("PAYMENT_ALREADY_DECIDED", request_id=request_id, status=request.status)
            return None

        now = self.clock.now()
        previous = None
        granted = None
        if decision == STATUS_APPROVED:
            account = self.store.get_account(request.account_id)
            if account is None:
                logger.error(
                    "PAYMENT_ACCOUNT_MISSING",
                    request_id=request_id,
                    account_id=request.account_id,
                )
                return None
            previous = _premium_fields(account)
            # Measured from the approval instant, never stacked on remaining time
            expires_at = self.plans.expiry_from(request.plan, now)
            granted = {
                "is_premium": True,
                "premium_plan": request.plan,
                "premium_expires_at": expires_at,
            }
            self.store.upsert_account(account.model_copy(update=granted))
            logger.info(
                "PREMIUM_ACTIVATED",
                account_id=account.id,
                plan=request.plan,
                expires_at=expires_at.isoformat(),
            )

        def _decide(current: PaymentRequest) -> PaymentRequest:
            if not current.is_pending:
                raise PaymentAlreadyDecided(
                    f"Payment request '{current.id}' is already {current.status}",
                    status=current.status,
                )
            return current.model_copy(update={"status": decision, "decided_at": now})

        try:
            decided = self.store.update_payment_request(request_id, _decide)
        except PaymentAlreadyDecided as e:
            logger.info("PAYMENT_ALREADY_DECIDED", request_id=request_id, status=e.status)
            if granted is not None:
                self._revoke_grant(request.account_id, granted, previous, request_id)
            return None

        if decided is None:
            if granted is not None:
                self._revoke_grant(request.account_id, granted, previous, request_id)
            raise PaymentRequestNotFound(f"Payment request '{request_id}' was removed")

        logger.info(
            "PAYMENT_DECIDED",
            request_id=request_id,
            decision=decision,
            account_id=decided.account_id,
            amount=decided.amount,
        )
        return decided

    def _revoke_grant(self, account_id: str, granted: dict, previous: dict, request_id: str) -> None:
        """
        Undo a premium grant whose request was decided elsewhere first.

        The account is reloaded and only restored while it still carries
        exactly this grant; a later write by someone else wins.
        """
        account = self.store.get_account(account_id)
        if account is None or _premium_fields(account) != granted:
            logger.warning(
                "PREMIUM_GRANT_NOT_REVERTED",
                request_id=request_id,
                account_id=account_id,
            )
            return
        self.store.upsert_account(account.model_copy(update=previous))
        logger.warning("PREMIUM_GRANT_REVERTED", request_id=request_id, account_id=account_id)


def _premium_fields(account: Account) -> dict:
    return {
        "is_premium": account.is_premium,
        "premium_plan": account.premium_plan,
        "premium_expires_at": account.premium_expires_at,
    }
