"""Straight-line daily travel distances of an operator."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence

from ..data import repository
from ..models.domain import Visit
from ..schemas.operators import DailyRouteModel, OperatorDistancesResponse, RouteVisitModel
from .geospatial import haversine_km


@dataclass(slots=True)
class DailyRoute:
    day: str
    visits: list[Visit]
    total_distance_km: float = 0.0
    coordinates: list[tuple[float, float]] = field(default_factory=list)


@dataclass(slots=True)
class RouteSummary:
    total_distance_km: float = 0.0
    total_visits: int = 0
    unique_locations: int = 0


def build_daily_routes(visits: Iterable[Visit]) -> list[DailyRoute]:
    """Group located visits by calendar day and sum the legs between consecutive ones.

    Visits without coordinates or without a timestamp are left out before
    grouping. Days are returned newest first.
    """

    by_day: dict[str, list[Visit]] = defaultdict(list)
    for visit in visits:
        if visit.visit_date is None or not visit.has_coordinates:
            continue
        by_day[visit.visit_date.date().isoformat()].append(visit)

    routes: list[DailyRoute] = []
    for day, day_visits in by_day.items():
        day_visits.sort(key=lambda visit: visit.visit_date)
        route = DailyRoute(day=day, visits=day_visits)
        for previous, visit in zip(day_visits, day_visits[1:]):
            route.total_distance_km += haversine_km(
                previous.latitude, previous.longitude, visit.latitude, visit.longitude
            )
        route.coordinates = [(visit.latitude, visit.longitude) for visit in day_visits]
        routes.append(route)

    return sorted(routes, key=lambda route: route.day, reverse=True)


def summarize_routes(routes: Sequence[DailyRoute]) -> RouteSummary:
    summary = RouteSummary()
    locations: set[str] = set()
    for route in routes:
        summary.total_distance_km += route.total_distance_km
        summary.total_visits += len(route.visits)
        for visit in route.visits:
            key = visit.branch_id or visit.branch_name
            if key:
                locations.add(key)
    summary.unique_locations = len(locations)
    return summary


def operator_distances(operator_id: str, start_date: date, end_date: date) -> OperatorDistancesResponse:
    if start_date > end_date:
        raise ValueError("start_date must not be after end_date.")
    start_iso, end_iso = repository.day_window(start_date, end_date)
    visits = repository.fetch_operator_visits(operator_id, start_iso, end_iso, "completed")
    routes = build_daily_routes(visits)
    summary = summarize_routes(routes)
    return OperatorDistancesResponse(
        operator_id=operator_id,
        start_date=start_date,
        end_date=end_date,
        total_distance_km=round(summary.total_distance_km, 2),
        total_visits=summary.total_visits,
        unique_locations=summary.unique_locations,
        days=[
            DailyRouteModel(
                day=route.day,
                total_distance_km=round(route.total_distance_km, 2),
                visit_count=len(route.visits),
                visits=[
                    RouteVisitModel(
                        visit_id=visit.id,
                        visit_date=visit.visit_date,
                        customer_name=visit.customer_name,
                        branch_id=visit.branch_id,
                        branch_name=visit.branch_name,
                        latitude=visit.latitude,
                        longitude=visit.longitude,
                    )
                    for visit in route.visits
                ],
                coordinates=[[lat, lon] for lat, lon in route.coordinates],
            )
            for route in routes
        ],
    )
