"""Payment request data models"""

from datetime import datetime
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.clock import as_utc

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

PaidPlan = Literal["one_month", "three_month"]
PaymentStatus = Literal["pending", "approved", "rejected"]
Decision = Literal["approved", "rejected"]


class PaymentRequest(BaseModel):
    """Human-reviewed claim of an out-of-band payment"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    account_id: str
    # Snapshots taken at submission time, never re-derived
    account_email: str
    account_name: str
    plan: PaidPlan
    amount: int = Field(ge=0)
    external_transaction_ref: str
    status: PaymentStatus = STATUS_PENDING
    submitted_at: datetime
    decided_at: Optional[datetime] = None

    @field_validator("submitted_at", "decided_at")
    @classmethod
    def _instants_in_utc(cls, value):
        return as_utc(value) if value is not None else value

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING
