"""
Record storage with JSON-based persistence.

Holds the three collections the core works against:
- accounts (data/accounts.json)
- payment requests (data/payment_requests.json)
- per-client session pointers (data/sessions.json)

Every call re-reads the medium so independent processes (a student tab and an
admin tab) see each other's writes. There is no locking: each logical
mutation must be a single load-mutate-store performed by one component.
"""

import copy
import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from ..models.account import Account, normalize_email
from ..models.payment import PaymentRequest
from ..utils.exceptions import StorageUnavailable
from ..utils.logger import get_logger

logger = get_logger(__name__)

ACCOUNTS_FILE = "accounts.json"
PAYMENTS_FILE = "payment_requests.json"
SESSIONS_FILE = "sessions.json"

_COLLECTION_KEYS = {
    ACCOUNTS_FILE: "accounts",
    PAYMENTS_FILE: "payment_requests",
    SESSIONS_FILE: "sessions",
}


class RecordStore:
    """
    Durable key-indexed collections of Account and PaymentRequest records.

    With data_dir=None the store is ephemeral (memory only). A file-backed
    store that cannot write to its medium degrades to ephemeral mode instead
    of failing the caller.
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self.data_dir: Optional[Path] = Path(data_dir) if data_dir is not None else None
        self._memory: Optional[Dict[str, Dict[str, Any]]] = None
        self.degraded = False

        if self.data_dir is None:
            self._memory = {}
        else:
            try:
                self.data_dir.mkdir(exist_ok=True, parents=True)
            except OSError as e:
                self._degrade(f"cannot create data dir: {e}")

    @classmethod
    def ephemeral(cls) -> "RecordStore":
        return cls(None)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def list_accounts(self) -> List[Account]:
        """Load all accounts, skipping entries that fail validation"""
        accounts = []
        for i, item in enumerate(self._load_items(ACCOUNTS_FILE)):
            try:
                accounts.append(Account(**item))
            except (ValidationError, TypeError) as e:
                logger.warning(
                    "Skipping invalid account record",
                    index=i,
                    account_id=(item or {}).get("id") if isinstance(item, dict) else None,
                    error=str(e),
                )
        return accounts

    def get_account(self, account_id: str) -> Optional[Account]:
        return next((a for a in self.list_accounts() if a.id == account_id), None)

    def find_account_by_email(self, email: str) -> Optional[Account]:
        """Find account by normalized email"""
        wanted = normalize_email(email)
        if not wanted:
            return None
        return next(
            (a for a in self.list_accounts() if normalize_email(a.email) == wanted),
            None,
        )

    def upsert_account(self, account: Account) -> Account:
        """Replace the full record matched by id, or append a new one"""
        items = self._load_items(ACCOUNTS_FILE)
        payload = account.model_dump(mode="json")
        for i, item in enumerate(items):
            if isinstance(item, dict) and item.get("id") == account.id:
                items[i] = payload
                break
        else:
            items.append(payload)
        self._save_items(ACCOUNTS_FILE, items)
        return account

    # ------------------------------------------------------------------
    # Payment requests
    # ------------------------------------------------------------------

    def list_payment_requests(self) -> List[PaymentRequest]:
        requests = []
        for i, item in enumerate(self._load_items(PAYMENTS_FILE)):
            try:
                requests.append(PaymentRequest(**item))
            except (ValidationError, TypeError) as e:
                logger.warning("Skipping invalid payment request record", index=i, error=str(e))
        return requests

    def get_payment_request(self, request_id: str) -> Optional[PaymentRequest]:
        return next((r for r in self.list_payment_requests() if r.id == request_id), None)

    def insert_payment_request(self, request: PaymentRequest) -> PaymentRequest:
        items = self._load_items(PAYMENTS_FILE)
        if any(isinstance(item, dict) and item.get("id") == request.id for item in items):
            raise ValueError(f"Payment request '{request.id}' already exists")
        items.append(request.model_dump(mode="json"))
        self._save_items(PAYMENTS_FILE, items)
        return request

    def update_payment_request(
        self,
        request_id: str,
        mutator: Callable[[PaymentRequest], PaymentRequest],
    ) -> Optional[PaymentRequest]:
        """
        Load, mutate and store one payment request.

        Returns the updated record, or None if the id is absent. Exceptions
        raised by the mutator propagate and nothing is written.
        """
        items = self._load_items(PAYMENTS_FILE)
        for i, item in enumerate(items):
            if not isinstance(item, dict) or item.get("id") != request_id:
                continue
            updated = mutator(PaymentRequest(**item))
            items[i] = updated.model_dump(mode="json")
            self._save_items(PAYMENTS_FILE, items)
            return updated
        return None

    # ------------------------------------------------------------------
    # Session pointers
    # ------------------------------------------------------------------

    def get_session_pointer(self, client_id: str) -> Optional[str]:
        sessions = self._load_mapping(SESSIONS_FILE)
        value = sessions.get(client_id)
        return value if isinstance(value, str) else None

    def set_session_pointer(self, client_id: str, account_id: Optional[str]) -> None:
        sessions = self._load_mapping(SESSIONS_FILE)
        if account_id is None:
            if client_id not in sessions:
                return
            del sessions[client_id]
        else:
            sessions[client_id] = account_id
        self._write(SESSIONS_FILE, {"sessions": sessions})

    # ------------------------------------------------------------------
    # Medium access
    # ------------------------------------------------------------------

    def _load_items(self, name: str) -> List[Any]:
        raw = self._read(name)
        items = raw.get(_COLLECTION_KEYS[name], [])
        return items if isinstance(items, list) else []

    def _load_mapping(self, name: str) -> Dict[str, Any]:
        raw = self._read(name)
        mapping = raw.get(_COLLECTION_KEYS[name], {})
        return mapping if isinstance(mapping, dict) else {}

    def _save_items(self, name: str, items: List[Any]) -> None:
        self._write(name, {_COLLECTION_KEYS[name]: items})

    def _read(self, name: str) -> Dict[str, Any]:
        """Read one collection file; corrupt or unreadable payloads read as empty"""
        if self._memory is not None:
            return copy.deepcopy(self._memory.get(name, {}))

        path = self.data_dir / name
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning("STORE_READ_FAILED", path=str(path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("STORE_READ_FAILED", path=str(path), error="payload is not an object")
            return {}
        return data

    def _write(self, name: str, payload: Dict[str, Any]) -> None:
        if self._memory is None:
            try:
                self._atomic_write(self.data_dir / name, payload)
                return
            except StorageUnavailable as e:
                self._degrade(str(e))
        self._memory[name] = copy.deepcopy(payload)

    def _degrade(self, reason: str) -> None:
        """Switch to an in-memory copy of whatever is still readable"""
        snapshot: Dict[str, Dict[str, Any]] = {}
        if self.data_dir is not None and self.data_dir.exists():
            for name in _COLLECTION_KEYS:
                snapshot[name] = self._read(name)
        self._memory = snapshot
        self.degraded = True
        logger.error("STORE_DEGRADED", reason=reason, data_dir=str(self.data_dir))

    def _atomic_write(self, path: Path, data: Dict[str, Any]) -> None:
        """Write JSON file atomically"""
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w", dir=str(path.parent), delete=False, encoding="utf-8"
            ) as tf:
                temp_path = Path(tf.name)
                json.dump(data, tf, indent=2, ensure_ascii=False)
            # Atomic move/replace
            shutil.move(str(temp_path), str(path))
        except OSError as e:
            # Clean up temp file if move failed
            if temp_path is not None and temp_path.exists():
                temp_path.unlink()
            raise StorageUnavailable(f"Failed to save {path}: {e}")
