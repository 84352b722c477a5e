"""FastAPI application for the Jigesh study assistant backend"""

import os
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jigesh.app import Services, build_services
from jigesh.utils.exceptions import (
    AccountNotFound,
    AccountSuspended,
    CompletionError,
    DuplicateAccount,
    InvalidCredentials,
    JigeshError,
    ProfileIncomplete,
    QuotaExceeded,
    StorageUnavailable,
)
from jigesh.utils.logger import get_logger

from .admin_routes import router as admin_router
from .auth_routes import router as auth_router
from .study_routes import router as study_router

logger = get_logger(__name__)

ERROR_STATUS = [
    (DuplicateAccount, status.HTTP_409_CONFLICT),
    (InvalidCredentials, status.HTTP_401_UNAUTHORIZED),
    (AccountSuspended, status.HTTP_403_FORBIDDEN),
    (AccountNotFound, status.HTTP_404_NOT_FOUND),
    (ProfileIncomplete, status.HTTP_409_CONFLICT),
    (QuotaExceeded, status.HTTP_429_TOO_MANY_REQUESTS),
    (StorageUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
]

COMPLETION_STATUS = {
    CompletionError.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    CompletionError.SERVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    CompletionError.CONFIGURATION_MISSING: status.HTTP_503_SERVICE_UNAVAILABLE,
    CompletionError.NETWORK_ERROR: status.HTTP_502_BAD_GATEWAY,
    CompletionError.CONTENT_BLOCKED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    CompletionError.CANCELLED: 499,
}

# User-facing messages for AI failures
COMPLETION_MESSAGES = {
    CompletionError.RATE_LIMITED: "Limit Reached: hourly usage limit exceeded.",
    CompletionError.SERVICE_UNAVAILABLE: "Service Overloaded: the AI service is currently busy.",
    CompletionError.CONFIGURATION_MISSING: "Config Error: the AI API key is missing.",
    CompletionError.NETWORK_ERROR: "Network Error: please check your internet connection.",
    CompletionError.CONTENT_BLOCKED: "This request was blocked by the content filter.",
    CompletionError.CANCELLED: "Request cancelled.",
}


def _error_status(exc: JigeshError) -> int:
    for exc_type, code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the web app.

    Args:
        services: Pre-built services (tests inject fakes); built from
            settings when omitted
    """
    app = FastAPI(
        title="Jigesh API",
        description="Accounts, subscriptions and usage quota for the Jigesh study assistant",
        version="1.0.0",
    )
    app.state.services = services or build_services()

    cors_origins = os.getenv("CORS_ORIGINS")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins.split(",") if cors_origins else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CompletionError)
    async def completion_error_handler(request: Request, exc: CompletionError) -> JSONResponse:
        return JSONResponse(
            status_code=COMPLETION_STATUS.get(exc.kind, status.HTTP_503_SERVICE_UNAVAILABLE),
            content={"detail": COMPLETION_MESSAGES.get(exc.kind, str(exc)), "kind": exc.kind},
        )

    @app.exception_handler(QuotaExceeded)
    async def quota_error_handler(request: Request, exc: QuotaExceeded) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"detail": str(exc), "limit": exc.limit, "remaining": exc.remaining},
        )

    @app.exception_handler(JigeshError)
    async def jigesh_error_handler(request: Request, exc: JigeshError) -> JSONResponse:
        code = _error_status(exc)
        if code >= 500:
            logger.error("REQUEST_FAILED", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=code, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.get("/health")
    def health():
        return {"status": "ok", "storage_degraded": app.state.services.store.degraded}

    app.include_router(auth_router)
    app.include_router(study_router)
    app.include_router(admin_router)
    return app
