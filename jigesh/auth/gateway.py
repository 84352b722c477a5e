"""
Authentication gateway: registration, login and logout.

Composes the record store and the session manager. Credentials are stored as
bcrypt hashes (see credentials.py); callers only ever pass the raw secret.
"""

from typing import Optional

from ..models.account import PLAN_NONE, ROLE_ADMIN, ROLE_STUDENT, Account, normalize_email
from ..services.record_store import RecordStore
from ..services.session_manager import SessionManager, persist_settled_premium
from ..utils.clock import Clock
from ..utils.exceptions import AccountSuspended, DuplicateAccount, InvalidCredentials
from ..utils.logger import get_logger
from .credentials import DEFAULT_ROUNDS, hash_secret, verify_secret

logger = get_logger(__name__)


class AuthGateway:
    def __init__(
        self,
        store: RecordStore,
        sessions: SessionManager,
        clock: Optional[Clock] = None,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        self.store = store
        self.sessions = sessions
        self.clock = clock or Clock()
        self.bcrypt_rounds = bcrypt_rounds

    def register(self, email: str, secret: str) -> Account:
        """
        Create a student account and start a session for it.

        - Email must be unique (case-insensitive).
        - New accounts are non-premium with a fresh daily quota.
        """
        normalized = normalize_email(email)
        if not normalized or not secret:
            raise InvalidCredentials("Email and password are required")
        if self.store.find_account_by_email(normalized) is not None:
            raise DuplicateAccount("User already exists")

        now = self.clock.now()
        account = Account(
            email=normalized,
            credential_secret=hash_secret(secret, rounds=self.bcrypt_rounds),
            role=ROLE_STUDENT,
            is_premium=False,
            premium_plan=PLAN_NONE,
            used_today=0,
            usage_date=self.clock.today(),
            joined_at=now,
            suspended=False,
        )
        self.store.upsert_account(account)
        self.sessions.install(account)
        logger.info("ACCOUNT_REGISTERED", account_id=account.id, email=normalized)
        return account

    def login(self, email: str, secret: str) -> Account:
        """Check credentials, settle an expired premium and start a session"""
        account = self.store.find_account_by_email(email)
        if account is None or not secret or not verify_secret(secret, account.credential_secret):
            logger.info("LOGIN_FAILED", email=normalize_email(email), reason="invalid_credentials")
            raise InvalidCredentials()

        if account.suspended:
            logger.info("LOGIN_FAILED", account_id=account.id, reason="suspended")
            raise AccountSuspended(account_id=account.id)

        account = persist_settled_premium(self.store, account, self.clock.now())
        self.sessions.install(account)
        logger.info("LOGIN_SUCCEEDED", account_id=account.id, role=account.role)
        return account

    def logout(self) -> None:
        """End the current session; the account itself is untouched"""
        self.sessions.clear()

    def ensure_seed_admin(
        self,
        email: Optional[str],
        secret: Optional[str],
        name: str = "Super Admin",
    ) -> Optional[Account]:
        """
        Provision the administrator account out of band (idempotent).

        Admin credentials come from configuration (ADMIN_EMAIL / ADMIN_SECRET);
        nothing is seeded when they are not set.
        """
        normalized = normalize_email(email or "")
        if not normalized or not secret:
            logger.warning("ADMIN_SEED_SKIPPED", reason="admin credentials not configured")
            return None

        existing = self.store.find_account_by_email(normalized)
        if existing is not None:
            if existing.is_admin and existing.suspended:
                # Records from before admins were protected from suspension
                existing = existing.model_copy(update={"suspended": False})
                self.store.upsert_account(existing)
                logger.warning("ADMIN_REACTIVATED", account_id=existing.id, email=normalized)
            return existing

        now = self.clock.now()
        admin = Account(
            email=normalized,
            credential_secret=hash_secret(secret, rounds=self.bcrypt_rounds),
            role=ROLE_ADMIN,
            display_name=name,
            is_premium=True,
            used_today=0,
            usage_date=self.clock.today(),
            joined_at=now,
        )
        self.store.upsert_account(admin)
        logger.info("ADMIN_SEEDED", account_id=admin.id, email=normalized)
        return admin
