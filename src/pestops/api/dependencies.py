"""Request dependencies: caller authentication and role checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from ..config import settings
from ..db.supabase import get_supabase_client

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Caller:
    id: str
    email: Optional[str] = None
    app_metadata: dict = field(default_factory=dict)
    user_metadata: dict = field(default_factory=dict)

    @property
    def role(self) -> Optional[str]:
        return self.app_metadata.get("role") or self.user_metadata.get("role")


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authorization header")
    return token.strip()


def get_current_user(authorization: Optional[str] = Header(default=None)) -> Caller:
    token = _bearer_token(authorization)
    client = get_supabase_client()
    if client is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Supabase not configured")
    try:
        response = client.auth.get_user(token)
    except Exception as exc:
        logger.info(f"Token verification failed: {exc}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    user = response.user if response is not None else None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return Caller(
        id=str(user.id),
        email=user.email,
        app_metadata=dict(user.app_metadata or {}),
        user_metadata=dict(user.user_metadata or {}),
    )


def require_admin(caller: Caller = Depends(get_current_user)) -> Caller:
    if not is_admin(caller):
        logger.warning(f"Admin operation refused for user {caller.id} (role={caller.role})")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized: admin role required")
    return caller


def is_admin(caller: Caller) -> bool:
    return caller.role in settings.admin_roles
