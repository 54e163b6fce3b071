"""Visit sequencing for an operator's working day."""

from __future__ import annotations

import logging

from ...config import settings
from ...data import repository
from ...errors import ExternalServiceError
from ...schemas.routing import (
    PlaceDetailsModel,
    PlaceModel,
    RouteOptimizationRequest,
    RouteOptimizationResponse,
    RouteStopModel,
)
from ..geospatial import format_latlng
from .maps_client import GoogleMapsClient

logger = logging.getLogger(__name__)

PLANNED = "planned"


def optimize_visit_sequence(payload: RouteOptimizationRequest) -> RouteOptimizationResponse:
    """Order the operator's planned visits of ``payload.day`` as a round trip from the start point.

    Visits whose branch has no coordinates cannot be routed; they are left out
    and reported in ``skipped_visit_ids``.
    """

    start_iso, end_iso = repository.day_window(payload.day, payload.day)
    visits = repository.fetch_operator_visits(payload.operator_id, start_iso, end_iso, PLANNED)

    routable = [visit for visit in visits if visit.has_coordinates]
    skipped = [visit.id for visit in visits if not visit.has_coordinates]
    if skipped:
        logger.warning(f"{len(skipped)} visits skipped for operator {payload.operator_id}: missing coordinates")
    if len(routable) < 2:
        raise ValueError("At least two visits with coordinates are required to optimize a route.")

    start = format_latlng(
        payload.start_latitude if payload.start_latitude is not None else settings.route_start_latitude,
        payload.start_longitude if payload.start_longitude is not None else settings.route_start_longitude,
    )
    waypoints = [format_latlng(visit.latitude, visit.longitude) for visit in routable]

    client = GoogleMapsClient()
    directions = client.directions(start, waypoints)
    route = directions["routes"][0]

    order = route.get("waypoint_order") or list(range(len(routable)))
    if sorted(order) != list(range(len(routable))):
        raise ExternalServiceError("google_maps", "Directions response returned an invalid waypoint order.")
    ordered = [routable[index] for index in order]

    distance_m = 0.0
    duration_s = 0.0
    for leg in route.get("legs") or []:
        distance_m += (leg.get("distance") or {}).get("value", 0)
        duration_s += (leg.get("duration") or {}).get("value", 0)

    stops = [
        RouteStopModel(
            sequence=sequence,
            visit_id=visit.id,
            visit_date=visit.visit_date,
            customer_name=visit.customer_name,
            branch_id=visit.branch_id,
            branch_name=visit.branch_name,
            latitude=visit.latitude,
            longitude=visit.longitude,
        )
        for sequence, visit in enumerate(ordered, start=1)
    ]
    return RouteOptimizationResponse(
        operator_id=payload.operator_id,
        day=payload.day,
        start=start,
        stops=stops,
        skipped_visit_ids=skipped,
        total_distance_km=round(distance_m / 1000, 2),
        total_duration_min=round(duration_s / 60, 1),
        static_map_url=client.static_map_url(start, [format_latlng(v.latitude, v.longitude) for v in ordered]),
    )


def search_places(query: str) -> list[PlaceModel]:
    """Business discovery through the places text search."""

    results = GoogleMapsClient().text_search(query)
    places: list[PlaceModel] = []
    for item in results:
        location = (item.get("geometry") or {}).get("location") or {}
        places.append(
            PlaceModel(
                place_id=item["place_id"],
                name=item.get("name") or "",
                address=item.get("formatted_address") or item.get("vicinity"),
                latitude=location.get("lat"),
                longitude=location.get("lng"),
            )
        )
    return places


def get_place_details(place_id: str) -> PlaceDetailsModel:
    details = GoogleMapsClient().place_details(place_id)
    return PlaceDetailsModel.model_validate({**details, "place_id": place_id})
