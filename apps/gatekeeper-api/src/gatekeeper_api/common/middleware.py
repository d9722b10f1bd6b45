"""HTTP middleware: CORS and per-request correlation/access logging."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from gatekeeper_api.core.auth import principal_from_request
from gatekeeper_api.settings import Settings

from .logging import bind_request_context, clear_request_context, log_context

logger = logging.getLogger("gatekeeper_api.access")

REQUEST_ID_HEADER = "X-Request-ID"
_MAX_REQUEST_ID_LENGTH = 128


def _request_id(request: Request) -> str:
    supplied = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if supplied and len(supplied) <= _MAX_REQUEST_ID_LENGTH:
        return supplied
    return uuid4().hex


def _principal_id(request: Request) -> str | None:
    principal = principal_from_request(request)
    return str(principal.user_id) if principal is not None else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID for the request and log one access line for it.

    The authenticated principal (if the guard resolved one) is included so
    denials in the authorization log can be matched to the request outcome.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request)
        request.state.correlation_id = request_id
        bind_request_context(request_id)
        started = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception:
                logger.error(
                    "request.error",
                    extra=log_context(
                        user_id=_principal_id(request),
                        method=request.method,
                        path=request.url.path,
                        duration_ms=_elapsed_ms(started),
                    ),
                )
                raise

            logger.info(
                "request.complete",
                extra=log_context(
                    user_id=_principal_id(request),
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=_elapsed_ms(started),
                ),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            clear_request_context()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000.0, 2)


def register_middleware(app: FastAPI, settings: Settings) -> None:
    """Install CORS (when origins are configured) and request context middleware."""

    if settings.server_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.server_cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*", settings.identity_header],
        )
    app.add_middleware(RequestContextMiddleware)


__all__ = ["REQUEST_ID_HEADER", "RequestContextMiddleware", "register_middleware"]
