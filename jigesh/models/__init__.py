from .account import Account, normalize_email
from .payment import PaymentRequest

__all__ = ["Account", "PaymentRequest", "normalize_email"]
