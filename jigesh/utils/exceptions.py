"""Custom exceptions for the Jigesh account core"""

from typing import Optional, Union


class JigeshError(Exception):
    """Base exception for Jigesh"""
    pass


class DuplicateAccount(JigeshError):
    """An account with the same normalized email already exists"""
    pass


class InvalidCredentials(JigeshError):
    """Email/secret pair does not match any account"""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class AccountSuspended(JigeshError):
    """Account has been suspended by an administrator"""

    def __init__(
        self,
        message: str = "Your account has been suspended by the administrator.",
        account_id: Optional[str] = None,
    ):
        self.account_id = account_id
        super().__init__(message)


class AccountNotFound(JigeshError):
    """Account id does not resolve to a stored account"""
    pass


class PaymentRequestNotFound(JigeshError):
    """Payment request id does not resolve to a stored request"""
    pass


class PaymentAlreadyDecided(JigeshError):
    """Payment request is no longer pending"""

    def __init__(self, message: str, status: Optional[str] = None):
        self.status = status
        super().__init__(message)


class QuotaExceeded(JigeshError):
    """Daily usage limit reached"""

    def __init__(self, message: str, limit: int, remaining: Union[int, str] = 0):
        self.limit = limit
        self.remaining = remaining
        super().__init__(message)


class ProfileIncomplete(JigeshError):
    """Student profile must be completed before using AI features"""
    pass


class StorageUnavailable(JigeshError):
    """Persistence medium unreadable or unwritable"""
    pass


class ConfigError(JigeshError):
    """Configuration error"""
    pass


class CompletionError(JigeshError):
    """Error from the AI completion service"""

    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK_ERROR = "network_error"
    CONTENT_BLOCKED = "content_blocked"
    CONFIGURATION_MISSING = "configuration_missing"
    CANCELLED = "cancelled"

    def __init__(self, kind: str, message: Optional[str] = None):
        self.kind = kind
        super().__init__(message or kind)
