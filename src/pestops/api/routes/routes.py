"""Route sequencing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...schemas.routing import RouteOptimizationRequest, RouteOptimizationResponse
from ...services.routing import service as routing_service
from ..dependencies import require_admin
from ..errors import to_http_exception

router = APIRouter(prefix="/routes", tags=["routes"], dependencies=[Depends(require_admin)])


@router.post("/optimize", response_model=RouteOptimizationResponse, status_code=status.HTTP_200_OK)
def optimize(payload: RouteOptimizationRequest) -> RouteOptimizationResponse:
    try:
        return routing_service.optimize_visit_sequence(payload)
    except Exception as exc:
        raise to_http_exception(exc, "optimize route") from exc
