"""
FastAPI routes for authentication and profile.

Prefix: /auth
"""

from typing import Dict

from fastapi import APIRouter, Depends, Form, status

from jigesh.app import Services
from jigesh.models.account import Account
from jigesh.services.session_manager import SessionManager

from .auth_middleware import get_services, get_sessions, require_login
from .schemas import AccountPublic, AuthResponse, ProfileIn, account_to_public

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    email: str = Form(...),
    password: str = Form(...),
    sessions: SessionManager = Depends(get_sessions),
    services: Services = Depends(get_services),
) -> AuthResponse:
    """
    Register a new student and start a session for this client.

    Request (form-encoded):
        email: user email (unique, case-insensitive)
        password: raw password
    """
    account = services.auth(sessions).register(email, password)
    return AuthResponse(user=account_to_public(account))


@router.post("/login", response_model=AuthResponse)
def login(
    email: str = Form(...),
    password: str = Form(...),
    sessions: SessionManager = Depends(get_sessions),
    services: Services = Depends(get_services),
) -> AuthResponse:
    account = services.auth(sessions).login(email, password)
    return AuthResponse(user=account_to_public(account))


@router.post("/logout")
def logout(
    sessions: SessionManager = Depends(get_sessions),
    services: Services = Depends(get_services),
) -> Dict[str, str]:
    """End this client's session (idempotent)"""
    services.auth(sessions).logout()
    return {"status": "success"}


@router.get("/me", response_model=AccountPublic)
def me(current: Account = Depends(require_login)) -> AccountPublic:
    """Return the reconciled session account"""
    return account_to_public(current)


@router.post("/profile", response_model=AccountPublic)
def complete_profile(
    body: ProfileIn,
    current: Account = Depends(require_login),
    sessions: SessionManager = Depends(get_sessions),
) -> AccountPublic:
    account = sessions.complete_profile(body.display_name, body.institution, body.track)
    return account_to_public(account)
