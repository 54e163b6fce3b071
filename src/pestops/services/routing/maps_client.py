"""HTTP client for the Google Maps web services (directions, places, static maps)."""

from __future__ import annotations

import logging
from typing import Sequence
from urllib.parse import quote

import httpx

from ...config import settings
from ...errors import ExternalServiceError

# Static map URLs longer than this are rejected by the API.
MAX_STATIC_MAP_URL_LENGTH = 8192
STATIC_MAP_SIZE = "600x400"
PLACE_DETAIL_FIELDS = ("name", "formatted_address", "formatted_phone_number", "website")

logger = logging.getLogger(__name__)


class GoogleMapsClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ExternalServiceError("google_maps", "Google Maps API key is not configured.")
        self.base_url = (base_url or settings.google_maps_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=10.0))

    def _get(self, path: str, params: dict) -> dict:
        url = f"{self.base_url}/{path}"
        client = self._get_client()
        try:
            response = client.get(url, params={**params, "key": self.api_key})
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                "google_maps", f"Google Maps request failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError("google_maps", f"Failed to reach Google Maps: {exc}") from exc
        finally:
            client.close()

        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            message = data.get("error_message") or f"Google Maps API error: {status}"
            logger.warning(message)
            raise ExternalServiceError("google_maps", message)
        return data

    def directions(self, origin: str, waypoints: Sequence[str], *, optimize: bool = True) -> dict:
        """Round trip from ``origin`` through ``waypoints``; the API picks the stop order when ``optimize``."""

        if not waypoints:
            raise ValueError("At least one waypoint is required.")
        prefix = "optimize:true|" if optimize else ""
        data = self._get(
            "directions/json",
            {"origin": origin, "destination": origin, "waypoints": prefix + "|".join(waypoints)},
        )
        if data.get("status") != "OK" or not data.get("routes"):
            raise ExternalServiceError("google_maps", "No route found for the given waypoints.")
        return data

    def text_search(self, query: str) -> list[dict]:
        if not query.strip():
            raise ValueError("Search query is required.")
        data = self._get("place/textsearch/json", {"query": query})
        return list(data.get("results") or [])

    def place_details(self, place_id: str) -> dict:
        data = self._get("place/details/json", {"place_id": place_id, "fields": ",".join(PLACE_DETAIL_FIELDS)})
        return data.get("result") or {}

    def static_map_url(self, start: str, stops: Sequence[str]) -> str:
        """Map image of the round trip; drops the drawn path when the URL would be too long."""

        start_marker = f"&markers=color:green|label:S|{start}"
        path_points = [start, *stops, start]
        path = f"&path=color:0x0000ff|weight:4|{'|'.join(path_points)}"
        markers = "".join(f"&markers=color:red|label:{index}|{stop}" for index, stop in enumerate(stops, start=1))
        base = f"{self.base_url}/staticmap?size={STATIC_MAP_SIZE}"
        key = f"&key={quote(self.api_key)}"

        url = f"{base}{path}{start_marker}{markers}{key}"
        if len(url) <= MAX_STATIC_MAP_URL_LENGTH:
            return url
        logger.info(f"Static map URL too long ({len(url)} chars), omitting route path")
        simple_markers = "".join(f"&markers=label:{index}|{stop}" for index, stop in enumerate(stops, start=1))
        return f"{base}{start_marker}{simple_markers}{key}"
