"""Daily usage quota enforcement"""

from dataclasses import dataclass
from typing import Optional, Union

from ..models.account import Account
from ..utils.clock import Clock
from ..utils.exceptions import AccountNotFound, QuotaExceeded
from ..utils.logger import get_logger
from .effective_state import effective_used_today, is_quota_exempt
from .record_store import RecordStore

logger = get_logger(__name__)

DAILY_LIMIT = 50
UNLIMITED = "unlimited"


@dataclass(frozen=True)
class QuotaStatus:
    allowed: bool
    remaining: Union[int, str]


class QuotaTracker:
    """
    Enforces the per-account daily limit on AI chat usage.

    Features:
    - Admins and accounts with valid premium are unlimited
    - Lazy reset: a counter from a previous day reads as 0 without a write
    - Rollover and increment are persisted as a single write
    """

    def __init__(
        self,
        store: RecordStore,
        clock: Optional[Clock] = None,
        daily_limit: int = DAILY_LIMIT,
    ):
        self.store = store
        self.clock = clock or Clock()
        self.daily_limit = daily_limit

    def check_limit(self, account: Account) -> QuotaStatus:
        """
        Check whether the account may issue another AI request today.

        Args:
            account: Account to check

        Returns:
            QuotaStatus with remaining count, or "unlimited"
        """
        if is_quota_exempt(account, self.clock.now()):
            return QuotaStatus(allowed=True, remaining=UNLIMITED)

        used = effective_used_today(account, self.clock.today())
        remaining = max(0, self.daily_limit - used)
        return QuotaStatus(allowed=used < self.daily_limit, remaining=remaining)

    def ensure_allowed(self, account: Account) -> QuotaStatus:
        """Like check_limit, but raise QuotaExceeded when the limit is reached"""
        status = self.check_limit(account)
        if not status.allowed:
            logger.info("QUOTA_EXCEEDED", account_id=account.id, limit=self.daily_limit)
            raise QuotaExceeded(
                f"Daily limit of {self.daily_limit} questions reached. Upgrade to premium for unlimited access.",
                limit=self.daily_limit,
                remaining=status.remaining,
            )
        return status

    def record_usage(self, account: Account) -> Account:
        """
        Record one completed AI interaction.

        Reloads the account so only the usage fields of the latest stored
        record change. Must be called after the interaction succeeded.
        """
        current = self.store.get_account(account.id)
        if current is None:
            raise AccountNotFound(f"Account '{account.id}' not found")

        if is_quota_exempt(current, self.clock.now()):
            return current

        today = self.clock.today()
        if current.usage_date != today:
            updated = current.model_copy(update={"used_today": 1, "usage_date": today})
        else:
            updated = current.model_copy(update={"used_today": current.used_today + 1})

        self.store.upsert_account(updated)
        logger.debug(
            "QUOTA_USED",
            account_id=updated.id,
            used_today=updated.used_today,
            date=today.isoformat(),
        )
        return updated
