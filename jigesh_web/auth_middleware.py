"""
Auth "middleware" helpers.

Each browser is a client with its own session pointer. The client id lives
in the jigesh_client cookie (or the X-Client-ID header for API clients) and
is issued on first contact.

require_login() reconciles the session on every request, which is how an
admin suspension or a payment approval reaches an already logged-in user.
"""

import os
from typing import Optional
from uuid import uuid4

from fastapi import Depends, HTTPException, Request, Response, status

from jigesh.app import Services
from jigesh.models.account import Account
from jigesh.services.session_manager import SessionManager
from jigesh.utils.exceptions import AccountSuspended

CLIENT_COOKIE = "jigesh_client"
CLIENT_COOKIE_MAX_AGE = 30 * 24 * 60 * 60  # 30 days


def get_services(request: Request) -> Services:
    return request.app.state.services


def _extract_client_id(request: Request) -> Optional[str]:
    # Prefer cookie for browser flows
    client_id = request.cookies.get(CLIENT_COOKIE)
    if client_id:
        return client_id
    header = request.headers.get("X-Client-ID")
    return header.strip() if header and header.strip() else None


def get_client_id(request: Request, response: Response) -> str:
    client_id = _extract_client_id(request)
    if client_id:
        return client_id
    client_id = uuid4().hex
    is_prod = (os.getenv("ENVIRONMENT") or "").strip().lower() == "production"
    response.set_cookie(
        key=CLIENT_COOKIE,
        value=client_id,
        max_age=CLIENT_COOKIE_MAX_AGE,
        httponly=True,
        secure=is_prod,
        samesite="lax",
    )
    return client_id


def get_sessions(
    client_id: str = Depends(get_client_id),
    services: Services = Depends(get_services),
) -> SessionManager:
    return services.sessions(client_id)


def require_login(sessions: SessionManager = Depends(get_sessions)) -> Account:
    """
    Dependency for protected routes.

    Raises 401 without a session and 403 when the account was suspended
    (the session is ended by reconcile()).
    """
    try:
        account = sessions.reconcile()
    except AccountSuspended as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return account


def require_admin(account: Account = Depends(require_login)) -> Account:
    if not account.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin only",
        )
    return account
