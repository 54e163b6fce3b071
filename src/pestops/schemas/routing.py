"""Routing and place-search schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class RouteOptimizationRequest(BaseModel):
    operator_id: str
    day: date
    start_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    start_longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class RouteStopModel(BaseModel):
    sequence: int
    visit_id: str
    visit_date: Optional[datetime] = None
    customer_name: Optional[str] = None
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None
    latitude: float
    longitude: float


class RouteOptimizationResponse(BaseModel):
    operator_id: str
    day: date
    start: str
    stops: List[RouteStopModel]
    skipped_visit_ids: List[str]
    total_distance_km: float
    total_duration_min: float
    static_map_url: str


class PlaceModel(BaseModel):
    place_id: str
    name: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class PlaceDetailsModel(BaseModel):
    place_id: str
    name: Optional[str] = None
    formatted_address: Optional[str] = None
    formatted_phone_number: Optional[str] = None
    website: Optional[str] = None
