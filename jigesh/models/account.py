"""Account data models"""

from datetime import date, datetime
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.clock import as_utc

ROLE_STUDENT = "student"
ROLE_ADMIN = "admin"

PLAN_ONE_MONTH = "one_month"
PLAN_THREE_MONTH = "three_month"
PLAN_NONE = "none"

Role = Literal["student", "admin"]
PremiumPlan = Literal["one_month", "three_month", "none"]
Track = Literal["11", "12"]


def normalize_email(email: str) -> str:
    """Emails are compared case-insensitively and without surrounding whitespace"""
    return (email or "").strip().lower()


class Account(BaseModel):
    """User identity record: profile, subscription, quota and lifecycle fields"""

    model_config = ConfigDict(frozen=True)  # mutate via model_copy(update=...)

    id: str = Field(default_factory=lambda: str(uuid4()))
    email: str
    credential_secret: str
    role: Role = ROLE_STUDENT

    # Profile, required before a student can use AI features
    display_name: Optional[str] = None
    institution: Optional[str] = None
    track: Optional[Track] = None

    # Subscription
    is_premium: bool = False
    premium_plan: PremiumPlan = PLAN_NONE
    premium_expires_at: Optional[datetime] = None

    # Quota
    used_today: int = Field(default=0, ge=0)
    usage_date: date

    # Lifecycle
    joined_at: datetime
    suspended: bool = False

    @field_validator("premium_expires_at", "joined_at")
    @classmethod
    def _instants_in_utc(cls, value):
        # Hand-edited records may carry naive timestamps
        return as_utc(value) if value is not None else value

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def profile_complete(self) -> bool:
        if self.is_admin:
            return True
        return bool(self.display_name and self.institution and self.track)
