"""
Effective account state derived from stored fields and the current time.

Stored records may lag behind the clock (premium past its expiry, a quota
counter from a previous day). These pure functions compute what the record
means *now*; the read path and the write path both go through them.
"""

from datetime import date, datetime

from ..models.account import PLAN_NONE, Account


def premium_lapsed(account: Account, now: datetime) -> bool:
    """True when a stored premium entitlement has passed its expiry"""
    if account.is_admin or not account.is_premium:
        return False
    if account.premium_expires_at is None:
        # Student premium without an expiry cannot be trusted
        return True
    return now >= account.premium_expires_at


def has_active_premium(account: Account, now: datetime) -> bool:
    if account.is_admin:
        return True
    return account.is_premium and not premium_lapsed(account, now)


def is_quota_exempt(account: Account, now: datetime) -> bool:
    return has_active_premium(account, now)


def settle_premium(account: Account, now: datetime) -> Account:
    """Return the account with a lapsed premium corrected (unchanged otherwise)"""
    if not premium_lapsed(account, now):
        return account
    return account.model_copy(
        update={"is_premium": False, "premium_plan": PLAN_NONE, "premium_expires_at": None}
    )


def effective_used_today(account: Account, today: date) -> int:
    """Usage counter with the daily rollover applied lazily"""
    if account.usage_date != today:
        return 0
    return account.used_today
