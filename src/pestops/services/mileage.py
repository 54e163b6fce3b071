"""Weekly odometer entries submitted by operators."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from ..data import repository
from ..models.domain import Operator, Vehicle, WeeklyKmEntry

logger = logging.getLogger(__name__)

UNKNOWN_OPERATOR = "Unknown"
NO_VEHICLE = "-"


@dataclass(slots=True)
class WeeklyKmRow:
    operator_id: str
    operator_name: str
    vehicle_plate: str
    year: int
    week_number: int
    start_km: float
    end_km: float
    total_km: float
    submitted_at: Optional[datetime] = None


def week_number(day: date) -> int:
    """Week of the year with weeks starting on Sunday; January 1st is always in week 1."""

    jan_first = date(day.year, 1, 1)
    days_since = (day - jan_first).days
    sunday_based_weekday = (jan_first.weekday() + 1) % 7
    return math.ceil((days_since + sunday_based_weekday + 1) / 7)


def validate_reading(start_km: float, end_km: float) -> float:
    """Return the distance driven, rejecting readings that do not move forward."""

    if start_km < 0 or end_km < 0:
        raise ValueError("Odometer readings must be non-negative.")
    if end_km <= start_km:
        raise ValueError("end_km must be greater than start_km.")
    return end_km - start_km


def submit_weekly_km(
    operator_id: str,
    start_km: float,
    end_km: float,
    now: Optional[datetime] = None,
) -> WeeklyKmEntry:
    total = validate_reading(start_km, end_km)
    moment = now or datetime.now(timezone.utc)
    entry = WeeklyKmEntry(
        operator_id=operator_id,
        week_number=week_number(moment.date()),
        year=moment.year,
        start_km=start_km,
        end_km=end_km,
        total_km=total,
        submitted_at=moment,
    )
    repository.insert_weekly_km(entry)
    logger.info(f"Weekly km recorded for operator {operator_id}: week {entry.week_number}/{entry.year}, {total} km")
    return entry


def weekly_km_series(
    entries: Iterable[WeeklyKmEntry],
    operators: Iterable[Operator],
    vehicles: Iterable[Vehicle],
) -> list[WeeklyKmRow]:
    names = {operator.id: operator.name for operator in operators}
    plates = {vehicle.operator_id: vehicle.plate_number for vehicle in vehicles if vehicle.operator_id}
    return [
        WeeklyKmRow(
            operator_id=entry.operator_id,
            operator_name=names.get(entry.operator_id, UNKNOWN_OPERATOR),
            vehicle_plate=plates.get(entry.operator_id, NO_VEHICLE),
            year=entry.year,
            week_number=entry.week_number,
            start_km=entry.start_km,
            end_km=entry.end_km,
            total_km=entry.total_km,
            submitted_at=entry.submitted_at,
        )
        for entry in entries
    ]


def load_weekly_km(weeks: int, today: Optional[date] = None) -> list[WeeklyKmRow]:
    """Entries from the year ``weeks`` weeks ago onward, enriched with names and plates."""

    if weeks < 1:
        raise ValueError("weeks must be at least 1.")
    since_year = ((today or date.today()) - timedelta(weeks=weeks)).year
    data = repository.fetch_parallel(
        entries=lambda: repository.fetch_weekly_km(since_year),
        operators=repository.fetch_operators,
        vehicles=repository.fetch_vehicles,
    )
    return weekly_km_series(data["entries"], data["operators"], data["vehicles"])
