"""Reporting endpoints: operator performance, receivables, monthly revenue."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...schemas.reporting import (
    PerformanceRequest,
    PerformanceResponse,
    ReceiptCheckRequest,
    ReceivablesResponse,
    RevenueResponse,
)
from ...services.reporting import service as reporting_service
from ..dependencies import Caller, require_admin
from ..errors import to_http_exception

router = APIRouter(prefix="/reports", tags=["reporting"], dependencies=[Depends(require_admin)])


@router.post("/operator-performance", response_model=PerformanceResponse, status_code=status.HTTP_200_OK)
def operator_performance(payload: PerformanceRequest) -> PerformanceResponse:
    try:
        return reporting_service.generate_operator_performance(payload)
    except Exception as exc:
        raise to_http_exception(exc, "generate operator performance report") from exc


@router.get("/receivables", response_model=ReceivablesResponse, status_code=status.HTTP_200_OK)
def receivables() -> ReceivablesResponse:
    try:
        return reporting_service.generate_receivables()
    except Exception as exc:
        raise to_http_exception(exc, "compute receivables") from exc


@router.post("/receivables/receipts/{receipt_id}/check", status_code=status.HTTP_200_OK)
def check_receipt(
    receipt_id: str,
    payload: ReceiptCheckRequest,
    caller: Caller = Depends(require_admin),
) -> dict:
    try:
        updated = reporting_service.mark_receipt_checked(receipt_id, payload.checked)
    except Exception as exc:
        raise to_http_exception(exc, "update collection receipt") from exc
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Receipt {receipt_id} not found")
    return {"id": receipt_id, "is_checked_by_admin": payload.checked, "checked_by": caller.id}


@router.get("/revenue", response_model=RevenueResponse, status_code=status.HTTP_200_OK)
def monthly_revenue(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
) -> RevenueResponse:
    try:
        return reporting_service.generate_monthly_revenue(year, month)
    except Exception as exc:
        raise to_http_exception(exc, "compute monthly revenue") from exc
