"""Operator field-activity schemas: daily distances, weekly mileage, live locations."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RouteVisitModel(BaseModel):
    visit_id: str
    visit_date: Optional[datetime] = None
    customer_name: Optional[str] = None
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class DailyRouteModel(BaseModel):
    day: str
    total_distance_km: float
    visit_count: int
    visits: List[RouteVisitModel]
    coordinates: List[List[float]]


class OperatorDistancesResponse(BaseModel):
    operator_id: str
    start_date: date
    end_date: date
    total_distance_km: float
    total_visits: int
    unique_locations: int
    days: List[DailyRouteModel]


class WeeklyKmRequest(BaseModel):
    operator_id: Optional[str] = Field(default=None, description="Defaults to the calling operator")
    start_km: float = Field(..., ge=0)
    end_km: float = Field(..., ge=0)


class WeeklyKmModel(BaseModel):
    operator_id: str
    operator_name: str
    vehicle_plate: str
    year: int
    week_number: int
    start_km: float
    end_km: float
    total_km: float
    submitted_at: Optional[datetime] = None


class OperatorLocationModel(BaseModel):
    operator_id: str
    operator_name: Optional[str] = None
    latitude: float
    longitude: float
    updated_at: Optional[datetime] = None
