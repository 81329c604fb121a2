"""Caller identity dependencies.

The service sits behind the platform gateway, which authenticates the
caller and forwards the owning user and organization as headers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from fixlify.core.config import Settings, get_settings
from fixlify.domain.exceptions import ValidationException


@dataclass(frozen=True)
class Owner:
    user_id: str | None = None
    organization_id: str | None = None

    @property
    def is_known(self) -> bool:
        return bool(self.user_id or self.organization_id)


def get_owner(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> Owner:
    """Owner from the gateway headers; either may be absent."""
    user_id = (request.headers.get(settings.user_id_header) or "").strip() or None
    organization_id = (request.headers.get(settings.organization_id_header) or "").strip() or None
    return Owner(user_id=user_id, organization_id=organization_id)


def require_owner(owner: Annotated[Owner, Depends(get_owner)]) -> Owner:
    """Owner that names at least a user or an organization (400 otherwise)."""
    if not owner.is_known:
        raise ValidationException(
            "X-User-ID or X-Organization-ID header is required", field="owner"
        )
    return owner
