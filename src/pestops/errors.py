"""Exception types shared by services and routers."""

from __future__ import annotations


class BackendError(RuntimeError):
    """A call against the Supabase backend failed."""


class BackendUnavailableError(BackendError):
    """The Supabase client is not configured."""


class ExternalServiceError(RuntimeError):
    """A third-party API (maps, e-mail) returned an error."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(message)
        self.service = service
