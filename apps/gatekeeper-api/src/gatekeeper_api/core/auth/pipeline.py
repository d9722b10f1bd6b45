"""Request authentication pipeline used by FastAPI dependencies.

Authentication itself happens upstream: a trusted proxy forwards the ID of
the authenticated user in ``settings.identity_header``. The pipeline loads
that user, checks it is active and exposes it as an
:class:`AuthenticatedPrincipal` on ``request.state.principal``.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper_api.common.logging import log_context
from gatekeeper_api.settings import Settings, get_settings

from .errors import AuthenticationError
from .principal import AuthenticatedPrincipal

logger = logging.getLogger(__name__)

PRINCIPAL_STATE_ATTRIBUTE = "principal"


def _request_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def _parse_user_id(raw: str) -> UUID:
    try:
        return UUID(raw.strip())
    except ValueError as exc:
        raise AuthenticationError("Malformed identity header") from exc


async def load_principal(session: AsyncSession, user_id: UUID) -> AuthenticatedPrincipal:
    """Return the principal for ``user_id`` or raise :class:`AuthenticationError`."""

    # Deferred import avoids circular dependency during app startup.
    from gatekeeper_api.models import User

    user = await session.get(User, user_id)
    if user is None:
        raise AuthenticationError("Unknown principal")
    if not user.is_active:
        raise AuthenticationError("User account is inactive.")
    return AuthenticatedPrincipal(
        user_id=user.id,
        email=user.email,
        permissions=tuple(user.permissions or ()),
    )


async def authenticate_request(request: Request) -> AuthenticatedPrincipal | None:
    """Resolve (once per request) the principal behind ``request``.

    Returns ``None`` when no identity header is present.
    """

    state = request.state
    if hasattr(state, PRINCIPAL_STATE_ATTRIBUTE):
        return getattr(state, PRINCIPAL_STATE_ATTRIBUTE)

    settings = _request_settings(request)
    raw = request.headers.get(settings.identity_header)
    if raw is None or not raw.strip():
        setattr(state, PRINCIPAL_STATE_ATTRIBUTE, None)
        return None

    user_id = _parse_user_id(raw)

    # Deferred import: the db package imports settings and logging only.
    from gatekeeper_api.db import get_database

    async with get_database(request).session_scope() as session:
        try:
            principal = await load_principal(session, user_id)
        except AuthenticationError:
            logger.info(
                "auth.principal.rejected",
                extra=log_context(user_id=str(user_id), path=request.url.path),
            )
            raise

    setattr(state, PRINCIPAL_STATE_ATTRIBUTE, principal)
    return principal


def principal_from_request(request: Request) -> AuthenticatedPrincipal | None:
    """Return the principal already resolved for ``request`` (never loads)."""

    return getattr(request.state, PRINCIPAL_STATE_ATTRIBUTE, None)


__all__ = [
    "PRINCIPAL_STATE_ATTRIBUTE",
    "authenticate_request",
    "load_principal",
    "principal_from_request",
]
