"""
Session manager: which account is "current" for this client.

The session is only a pointer (client_id -> account_id) persisted in the
record store so a reload can resume it. The authoritative account data always
lives in the store; reconcile() is the one mechanism that pulls changes made
by other processes (admin suspension, payment approval) into a long-lived
session.
"""

from datetime import datetime
from typing import Optional

from ..models.account import Account
from ..utils.clock import Clock
from ..utils.exceptions import AccountNotFound, AccountSuspended
from ..utils.logger import get_logger
from .effective_state import settle_premium
from .record_store import RecordStore

logger = get_logger(__name__)

DEFAULT_CLIENT_ID = "default"
VALID_TRACKS = ("11", "12")


def persist_settled_premium(store: RecordStore, account: Account, now: datetime) -> Account:
    """Correct a lapsed premium and persist the correction before anyone trusts it"""
    settled = settle_premium(account, now)
    if settled is not account:
        store.upsert_account(settled)
        logger.info(
            "PREMIUM_EXPIRED",
            account_id=account.id,
            plan=account.premium_plan,
            expired_at=account.premium_expires_at.isoformat() if account.premium_expires_at else None,
        )
    return settled


class SessionManager:
    """Tracks and reconciles the current account for one client"""

    def __init__(
        self,
        store: RecordStore,
        client_id: str = DEFAULT_CLIENT_ID,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.client_id = client_id
        self.clock = clock or Clock()
        self._cached: Optional[Account] = None

    @property
    def cached(self) -> Optional[Account]:
        """Last observed copy of the session account (may be stale)"""
        return self._cached

    @property
    def current_account_id(self) -> Optional[str]:
        return self.store.get_session_pointer(self.client_id)

    def install(self, account: Account) -> None:
        self.store.set_session_pointer(self.client_id, account.id)
        self._cached = account
        logger.info("SESSION_STARTED", client_id=self.client_id, account_id=account.id)

    def clear(self) -> None:
        account_id = self.current_account_id
        self.store.set_session_pointer(self.client_id, None)
        self._cached = None
        if account_id:
            logger.info("SESSION_ENDED", client_id=self.client_id, account_id=account_id)

    def get_current_session(self) -> Optional[Account]:
        """Resolve the session pointer to a live account"""
        account_id = self.current_account_id
        if not account_id:
            self._cached = None
            return None

        account = self.store.get_account(account_id)
        if account is None:
            # Stale pointer to a missing account
            self.clear()
            return None

        account = persist_settled_premium(self.store, account, self.clock.now())
        self._cached = account
        return account

    def reconcile(self) -> Optional[Account]:
        """
        Re-read the session account from the store.

        Replaces the cached copy when the stored account differs. A suspended
        account ends the session and raises AccountSuspended.

        Returns:
            The refreshed account, or None without a (valid) session
        """
        account_id = self.current_account_id
        if not account_id:
            self._cached = None
            return None

        account = self.store.get_account(account_id)
        if account is None:
            logger.warning("SESSION_ACCOUNT_MISSING", client_id=self.client_id, account_id=account_id)
            self.clear()
            return None

        if account.suspended:
            logger.warning("SESSION_SUSPENDED", client_id=self.client_id, account_id=account_id)
            self.clear()
            raise AccountSuspended(account_id=account_id)

        account = persist_settled_premium(self.store, account, self.clock.now())
        if account != self._cached:
            if self._cached is not None:
                logger.info("SESSION_REFRESHED", client_id=self.client_id, account_id=account_id)
            self._cached = account
        return account

    def complete_profile(self, display_name: str, institution: str, track: str) -> Account:
        """Store the academic profile of the session account"""
        display_name = (display_name or "").strip()
        institution = (institution or "").strip()
        track = str(track).strip()
        if not display_name or not institution:
            raise ValueError("Name and institution are required")
        if track not in VALID_TRACKS:
            raise ValueError(f"Track must be one of {', '.join(VALID_TRACKS)}")

        account_id = self.current_account_id
        account = self.store.get_account(account_id) if account_id else None
        if account is None:
            raise AccountNotFound("No active session")

        updated = account.model_copy(
            update={"display_name": display_name, "institution": institution, "track": track}
        )
        self.store.upsert_account(updated)
        self._cached = updated
        logger.info("PROFILE_COMPLETED", account_id=account.id, track=track)
        return updated
