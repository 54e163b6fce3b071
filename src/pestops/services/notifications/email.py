"""Transactional e-mail through the Resend API.

Every attempt, successful or not, is written to ``email_logs``; a failed log
write is only reported in the application log.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ...config import settings
from ...data import repository
from ...errors import BackendError, ExternalServiceError

logger = logging.getLogger(__name__)

SUCCESS = "success"
FAILED = "failed"


class ResendEmailClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key or settings.resend_api_key
        if not self.api_key:
            raise ExternalServiceError("resend", "Resend API key is not configured.")
        self.base_url = (base_url or settings.resend_base_url).rstrip("/")
        self.sender = sender or settings.email_sender
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=10.0))

    def send(self, to: str, subject: str, html: str) -> dict:
        client = self._get_client()
        try:
            response = client.post(
                f"{self.base_url}/emails",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"from": self.sender, "to": [to], "subject": subject, "html": html},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                "resend", f"Resend API error {exc.response.status_code}: {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError("resend", f"Failed to reach Resend: {exc}") from exc
        finally:
            client.close()


def _log_attempt(to: str, subject: str, html: str, status: str, error_message: Optional[str] = None) -> None:
    try:
        repository.insert_email_log(to, subject, html, status, error_message)
    except BackendError as exc:
        logger.warning(f"Could not record {status} e-mail to {to}: {exc}")


def send_email(to: str, subject: str, html: str) -> dict:
    """Send through Resend; a failed log write never changes the outcome of the send."""

    if not (to or "").strip() or not (subject or "").strip() or not (html or "").strip():
        raise ValueError("Missing required fields: to, subject, html")

    try:
        result = ResendEmailClient().send(to, subject, html)
    except ExternalServiceError as exc:
        logger.warning(f"E-mail to {to} failed: {exc}")
        _log_attempt(to, subject, html, FAILED, str(exc))
        raise

    _log_attempt(to, subject, html, SUCCESS)
    logger.info(f"E-mail sent to {to}: {subject}")
    return result
