"""Request/response models for the HTTP surface"""

from datetime import date, datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from jigesh.models.account import Account


class AccountPublic(BaseModel):
    id: str
    email: str
    role: str
    display_name: Optional[str] = None
    institution: Optional[str] = None
    track: Optional[str] = None
    is_premium: bool
    premium_plan: str
    premium_expires_at: Optional[datetime] = None
    used_today: int
    usage_date: date
    joined_at: datetime
    suspended: bool
    profile_complete: bool


def account_to_public(account: Account) -> AccountPublic:
    data = account.model_dump(exclude={"credential_secret"})
    return AccountPublic(**data, profile_complete=account.profile_complete)


class AuthResponse(BaseModel):
    user: AccountPublic


class ProfileIn(BaseModel):
    display_name: str = Field(min_length=1)
    institution: str = Field(min_length=1)
    track: Literal["11", "12"]


class QuotaOut(BaseModel):
    allowed: bool
    remaining: Union[int, str]
    daily_limit: int


class AttachmentIn(BaseModel):
    name: str
    mime_type: str
    data_base64: str


class ChatIn(BaseModel):
    question: str = ""
    attachment: Optional[AttachmentIn] = None


class ChatOut(BaseModel):
    text: str
    remaining: Union[int, str]


class PaymentIn(BaseModel):
    plan: Literal["one_month", "three_month"]
    transaction_ref: str = Field(min_length=1)


class DecisionIn(BaseModel):
    decision: Literal["approved", "rejected"]
