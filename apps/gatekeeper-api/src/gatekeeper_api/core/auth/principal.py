"""Lightweight identity representation produced by the auth pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True, slots=True)
class AuthenticatedPrincipal:
    """Identity information available to downstream handlers."""

    user_id: UUID
    email: str
    permissions: tuple[str, ...] = field(default_factory=tuple)
