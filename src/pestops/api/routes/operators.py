"""Operator field-activity endpoints."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...schemas.operators import OperatorDistancesResponse, OperatorLocationModel, WeeklyKmModel, WeeklyKmRequest
from ...services import distances, mileage, tracking
from ..dependencies import Caller, get_current_user, is_admin, require_admin
from ..errors import to_http_exception

router = APIRouter(prefix="/operators", tags=["operators"])


@router.get("/locations", response_model=list[OperatorLocationModel], dependencies=[Depends(require_admin)])
def operator_locations() -> list[OperatorLocationModel]:
    try:
        board = tracking.load_locations()
    except Exception as exc:
        raise to_http_exception(exc, "load operator locations") from exc
    return [OperatorLocationModel(**asdict(location)) for location in board.snapshot()]


@router.get("/mileage/weekly", response_model=list[WeeklyKmModel], dependencies=[Depends(require_admin)])
def weekly_mileage(weeks: int = Query(default=12, ge=1, le=104)) -> list[WeeklyKmModel]:
    try:
        rows = mileage.load_weekly_km(weeks)
    except Exception as exc:
        raise to_http_exception(exc, "load weekly mileage") from exc
    return [WeeklyKmModel(**asdict(row)) for row in rows]


@router.post("/mileage/weekly", response_model=WeeklyKmModel, status_code=status.HTTP_201_CREATED)
def submit_weekly_mileage(payload: WeeklyKmRequest, caller: Caller = Depends(get_current_user)) -> WeeklyKmModel:
    """Operators record their own readings; admins may record for any operator."""

    operator_id = payload.operator_id or caller.id
    if operator_id != caller.id and not is_admin(caller):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized: readings can only be recorded for your own account",
        )
    try:
        entry = mileage.submit_weekly_km(operator_id, payload.start_km, payload.end_km)
    except Exception as exc:
        raise to_http_exception(exc, "record weekly mileage") from exc
    row = mileage.weekly_km_series([entry], [], [])[0]
    return WeeklyKmModel(**asdict(row))


@router.get(
    "/{operator_id}/distances",
    response_model=OperatorDistancesResponse,
    dependencies=[Depends(require_admin)],
)
def operator_distances(
    operator_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
) -> OperatorDistancesResponse:
    try:
        return distances.operator_distances(operator_id, start_date, end_date)
    except Exception as exc:
        raise to_http_exception(exc, "compute operator distances") from exc
