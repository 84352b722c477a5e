"""
Admin dashboard routes: statistics, students, payment review, suspension.
"""

from dataclasses import asdict
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from jigesh.app import Services
from jigesh.models.account import Account
from jigesh.models.payment import PaymentRequest

from .auth_middleware import get_services, require_admin
from .schemas import AccountPublic, DecisionIn, account_to_public

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats")
def admin_stats(
    current: Account = Depends(require_admin),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return asdict(services.admin.compute_stats())


@router.get("/students", response_model=List[AccountPublic])
def list_students(
    current: Account = Depends(require_admin),
    services: Services = Depends(get_services),
) -> List[AccountPublic]:
    return [account_to_public(a) for a in services.admin.list_students()]


@router.get("/payments", response_model=List[PaymentRequest])
def list_payments(
    current: Account = Depends(require_admin),
    services: Services = Depends(get_services),
) -> List[PaymentRequest]:
    return services.admin.list_payment_requests()


@router.post("/payments/{request_id}/decision")
def decide_payment(
    request_id: str,
    body: DecisionIn,
    current: Account = Depends(require_admin),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """
    Approve or reject a pending payment.

    A stale screen deciding twice gets applied=false instead of an error.
    """
    decided = services.admin.decide_payment(request_id, body.decision)
    return {
        "applied": decided is not None,
        "payment": decided.model_dump(mode="json") if decided else None,
    }


@router.post("/accounts/{account_id}/suspension")
def toggle_suspension(
    account_id: str,
    current: Account = Depends(require_admin),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    updated = services.admin.toggle_suspension(account_id)
    return {
        "applied": updated is not None,
        "account": account_to_public(updated).model_dump(mode="json") if updated else None,
    }
