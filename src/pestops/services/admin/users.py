"""Privileged user and storage operations run with the service-role key."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ...config import settings
from ...data import repository
from ...db.supabase import get_supabase_client
from ...errors import BackendError, BackendUnavailableError

logger = logging.getLogger(__name__)

OPERATOR_ROLE = "operator"


def _client():
    client = get_supabase_client()
    if client is None:
        raise BackendUnavailableError("Supabase not configured.")
    return client


def _user_summary(user: Any) -> dict:
    return {"id": str(user.id), "email": user.email}


def create_operator(
    name: str,
    email: str,
    password: str,
    phone: Optional[str] = None,
    status: Optional[str] = None,
) -> dict:
    """Create the auth user and its ``operators`` row under the same id.

    When the row cannot be inserted the auth user is removed again and the
    insert error is re-raised.
    """

    if not (name or "").strip() or not (email or "").strip() or not password:
        raise ValueError("name, email and password are required.")

    admin = _client().auth.admin
    try:
        response = admin.create_user(
            {
                "email": email,
                "password": password,
                "email_confirm": True,
                "user_metadata": {"name": name, "role": OPERATOR_ROLE},
            }
        )
    except Exception as exc:
        raise BackendError(f"Failed to create auth user: {exc}") from exc

    user_id = str(response.user.id)
    try:
        repository.insert_operator(
            {
                "id": user_id,
                "auth_id": user_id,
                "name": name,
                "email": email,
                "phone": phone,
                "status": status,
            }
        )
    except BackendError:
        logger.warning(f"Operator row insert failed, removing auth user {user_id}")
        try:
            admin.delete_user(user_id)
        except Exception:
            logger.exception(f"Failed to remove auth user {user_id} after operator insert failure")
        raise

    logger.info(f"Operator {name} created with id {user_id}")
    return {"id": user_id, "email": email, "name": name}


def get_user(user_id: str) -> Optional[dict]:
    """Return ``{id, email}`` for ``user_id``, or None when no such user exists."""

    try:
        response = _client().auth.admin.get_user_by_id(user_id)
    except BackendUnavailableError:
        raise
    except Exception as exc:
        if getattr(exc, "status", None) == 404:
            return None
        raise BackendError(f"Failed to load user {user_id}: {exc}") from exc
    if response is None or response.user is None:
        return None
    return _user_summary(response.user)


def list_users() -> list[dict]:
    try:
        users = _client().auth.admin.list_users()
    except BackendUnavailableError:
        raise
    except Exception as exc:
        raise BackendError(f"Failed to list users: {exc}") from exc
    return [_user_summary(user) for user in users]


def download_private_file(path: str) -> bytes:
    if not (path or "").strip():
        raise ValueError("File path is required.")
    try:
        return _client().storage.from_(settings.documents_bucket).download(path)
    except BackendUnavailableError:
        raise
    except Exception as exc:
        raise BackendError(f"Failed to download '{path}': {exc}") from exc
