"""Business discovery endpoints backed by the places API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ...schemas.routing import PlaceDetailsModel, PlaceModel
from ...services.routing import service as routing_service
from ..dependencies import get_current_user
from ..errors import to_http_exception

router = APIRouter(prefix="/places", tags=["places"], dependencies=[Depends(get_current_user)])


@router.get("/search", response_model=list[PlaceModel])
def search(query: str = Query(..., min_length=1)) -> list[PlaceModel]:
    try:
        return routing_service.search_places(query)
    except Exception as exc:
        raise to_http_exception(exc, "search places") from exc


@router.get("/{place_id}", response_model=PlaceDetailsModel)
def details(place_id: str) -> PlaceDetailsModel:
    try:
        return routing_service.get_place_details(place_id)
    except Exception as exc:
        raise to_http_exception(exc, "load place details") from exc
