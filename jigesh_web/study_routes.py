"""FastAPI routes for students: quota, AI tutor and payment requests."""

import base64
import binascii
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from jigesh.app import Services
from jigesh.models.account import Account
from jigesh.models.payment import PaymentRequest
from jigesh.services.completion import Attachment
from jigesh.services.session_manager import SessionManager

from .auth_middleware import get_services, get_sessions, require_login
from .schemas import ChatIn, ChatOut, PaymentIn, QuotaOut

router = APIRouter(tags=["study"])


@router.get("/quota", response_model=QuotaOut)
def quota(
    current: Account = Depends(require_login),
    services: Services = Depends(get_services),
) -> QuotaOut:
    result = services.quota.check_limit(current)
    return QuotaOut(
        allowed=result.allowed,
        remaining=result.remaining,
        daily_limit=services.quota.daily_limit,
    )


@router.post("/chat", response_model=ChatOut)
def chat(
    body: ChatIn,
    current: Account = Depends(require_login),
    sessions: SessionManager = Depends(get_sessions),
    services: Services = Depends(get_services),
) -> ChatOut:
    """Ask the AI tutor; quota is charged only for a completed reply"""
    attachment = None
    if body.attachment is not None:
        try:
            data = base64.b64decode(body.attachment.data_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Attachment is not valid base64")
        attachment = Attachment(
            name=body.attachment.name,
            mime_type=body.attachment.mime_type,
            data=data,
        )

    reply = services.assistant(sessions).ask(body.question, attachment=attachment)
    return ChatOut(text=reply.text, remaining=reply.remaining)


@router.post("/payments", response_model=PaymentRequest, status_code=status.HTTP_201_CREATED)
def submit_payment(
    body: PaymentIn,
    current: Account = Depends(require_login),
    services: Services = Depends(get_services),
) -> PaymentRequest:
    return services.subscriptions.submit_payment_request(current, body.plan, body.transaction_ref)


@router.get("/payments/mine", response_model=List[PaymentRequest])
def my_payments(
    current: Account = Depends(require_login),
    services: Services = Depends(get_services),
) -> List[PaymentRequest]:
    return services.subscriptions.list_for_account(current.id)
