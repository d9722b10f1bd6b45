"""Exception handlers that turn domain errors into JSON responses.

==============================  ======  ==========================================
Exception                       Status  Body
==============================  ======  ==========================================
``AuthenticationError``         401     ``{"detail": "<message>"}``
``PermissionDeniedError``       403     ``{"detail": {"error": "forbidden", ...}}``
``AuthorizationEngineError``    500     ``{"detail": "Internal server error"}``
``HTTPException``               any     ``{"detail": <exc.detail>}``
anything else                   500     ``{"detail": "Internal server error"}``
==============================  ======  ==========================================

Predicate failures and configuration mistakes are server errors; they are
logged with a traceback and never reported to the client as a denial.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from gatekeeper_api.common.logging import log_context
from gatekeeper_api.core.auth.errors import AuthenticationError, PermissionDeniedError
from gatekeeper_api.core.authz.errors import AuthorizationEngineError

logger = logging.getLogger("gatekeeper_api.errors")

FORBIDDEN_MESSAGE = "You are not allowed to access this resource."
INTERNAL_ERROR_BODY = {"detail": "Internal server error"}


def _request_fields(request: Request) -> dict[str, str]:
    return {"method": request.method, "path": request.url.path}


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        exc_info=exc,
        extra=log_context(**_request_fields(request), exception_type=type(exc).__name__),
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=INTERNAL_ERROR_BODY)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Pass ``HTTPException`` through; only 5xx responses are logged."""

    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "http_exception",
            extra=log_context(**_request_fields(request), status_code=exc.status_code),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


async def authentication_error_handler(_request: Request, exc: AuthenticationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": str(exc) or "Authentication required"},
    )


async def permission_denied_handler(_request: Request, exc: PermissionDeniedError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content={
            "detail": {
                "error": "forbidden",
                "message": FORBIDDEN_MESSAGE,
                "requirement": exc.requirement,
                "reason": exc.reason,
            }
        },
    )


async def authorization_engine_error_handler(
    request: Request,
    exc: AuthorizationEngineError,
) -> JSONResponse:
    return await unhandled_exception_handler(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(PermissionDeniedError, permission_denied_handler)
    app.add_exception_handler(AuthorizationEngineError, authorization_engine_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "authentication_error_handler",
    "authorization_engine_error_handler",
    "http_exception_handler",
    "permission_denied_handler",
    "register_exception_handlers",
    "unhandled_exception_handler",
]
