"""Live operator positions.

The board holds one position per operator. Change-feed events are applied in
arrival order and overwrite by ``operator_id``; there is no ordering or
de-duplication beyond that.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from ..data import repository
from ..models.domain import OperatorLocation

logger = logging.getLogger(__name__)


class LocationBoard:
    def __init__(self, locations: Iterable[OperatorLocation] = ()) -> None:
        self._locations: dict[str, OperatorLocation] = {}
        for location in locations:
            self._locations[location.operator_id] = location

    def __len__(self) -> int:
        return len(self._locations)

    def get(self, operator_id: str) -> Optional[OperatorLocation]:
        return self._locations.get(operator_id)

    def apply(self, event: Mapping[str, Any]) -> None:
        """Merge a ``postgres_changes`` payload (``eventType``, ``new``, ``old``)."""

        event_type = str(event.get("eventType") or event.get("type") or "").upper()
        if event_type == "DELETE":
            old = event.get("old") or event.get("old_record") or {}
            operator_id = old.get("operator_id")
            if operator_id:
                self._locations.pop(operator_id, None)
            return

        record = event.get("new") or event.get("record") or {}
        operator_id = record.get("operator_id")
        if not operator_id:
            logger.debug(f"Ignoring location event without operator_id: {event_type}")
            return
        try:
            latitude = float(record["latitude"])
            longitude = float(record["longitude"])
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Ignoring location event with invalid coordinates for {operator_id}")
            return

        updated_at = record.get("updated_at")
        try:
            timestamp = datetime.fromisoformat(str(updated_at).replace("Z", "+00:00")) if updated_at else None
        except ValueError:
            logger.debug(f"Ignoring location event with invalid timestamp for {operator_id}")
            return

        previous = self._locations.get(operator_id)
        self._locations[operator_id] = OperatorLocation(
            operator_id=operator_id,
            latitude=latitude,
            longitude=longitude,
            updated_at=timestamp,
            operator_name=previous.operator_name if previous else None,
        )

    def snapshot(self) -> list[OperatorLocation]:
        return sorted(self._locations.values(), key=lambda location: location.operator_id)


def load_locations() -> LocationBoard:
    return LocationBoard(repository.fetch_operator_locations())
