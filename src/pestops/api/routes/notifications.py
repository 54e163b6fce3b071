"""Outbound e-mail endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.admin import SendEmailRequest, SendEmailResponse
from ...services.notifications import email
from ..dependencies import Caller, get_current_user
from ..errors import to_http_exception

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/email", response_model=SendEmailResponse, status_code=status.HTTP_200_OK)
def send_email(payload: SendEmailRequest, _: Caller = Depends(get_current_user)) -> SendEmailResponse:
    try:
        result = email.send_email(payload.to, payload.subject, payload.html)
    except Exception as exc:
        raise to_http_exception(exc, "send e-mail") from exc
    return SendEmailResponse(id=result.get("id"))
