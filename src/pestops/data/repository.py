"""Table access helpers for the Supabase backend.

Every read goes through :func:`_execute`, which turns a failed request into a
:class:`BackendError`. Callers never receive partial data: the first failure
aborts the operation that issued the query.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime
from typing import Any, Callable, Optional, TypeVar

from ..config import settings
from ..db.supabase import get_supabase_client
from ..errors import BackendError, BackendUnavailableError
from ..models.domain import (
    Branch,
    CollectionReceipt,
    Customer,
    MaterialSale,
    Operator,
    OperatorLocation,
    Pricing,
    Vehicle,
    Visit,
    WeeklyKmEntry,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CLOSED_SALE_STATUSES = ("invoiced", "paid")


def _client():
    client = get_supabase_client()
    if client is None:
        raise BackendUnavailableError(
            "Supabase not configured. Set PESTOPS_SUPABASE_URL and PESTOPS_SUPABASE_KEY environment variables."
        )
    return client


def _execute(query: Any, table: str) -> list[dict]:
    try:
        response = query.execute()
    except Exception as exc:
        logger.warning(f"Query on '{table}' failed: {exc}")
        raise BackendError(f"Query on '{table}' failed: {exc}") from exc
    return list(response.data or [])


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise BackendError(f"Unable to parse number from value '{value}'") from exc


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise BackendError(f"Unable to parse timestamp from value '{value}'") from exc


def day_window(start: date, end: date) -> tuple[str, str]:
    """Return inclusive ISO timestamps covering whole days from ``start`` to ``end``."""

    return f"{start.isoformat()}T00:00:00", f"{end.isoformat()}T23:59:59"


def fetch_parallel(**loaders: Callable[[], T]) -> dict[str, T]:
    """Run independent loaders concurrently and wait for every one of them.

    The first loader error is re-raised once the pool has drained.
    """

    if not loaders:
        return {}
    results: dict[str, T] = {}
    workers = min(settings.max_parallel_queries, len(loaders))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(loader): name for name, loader in loaders.items()}
        errors: list[BaseException] = []
        for future in as_completed(futures):
            error = future.exception()
            if error is not None:
                errors.append(error)
                continue
            results[futures[future]] = future.result()
    if errors:
        raise errors[0]
    return results


# -- row parsers ------------------------------------------------------------


def _visit_from_row(row: dict) -> Visit:
    branch = row.get("branch") or {}
    customer = row.get("customer") or {}
    return Visit(
        id=str(row["id"]),
        operator_id=row.get("operator_id"),
        branch_id=row.get("branch_id") or branch.get("id"),
        status=row.get("status") or "completed",
        customer_id=row.get("customer_id"),
        visit_date=_parse_datetime(row.get("visit_date")),
        branch_name=branch.get("sube_adi"),
        customer_name=customer.get("kisa_isim"),
        latitude=_coerce_float(branch.get("latitude")),
        longitude=_coerce_float(branch.get("longitude")),
    )


def _sale_from_row(row: dict) -> MaterialSale:
    return MaterialSale(
        id=row.get("id"),
        visit_id=row.get("visit_id"),
        total_amount=_coerce_float(row.get("total_amount")) or 0.0,
        customer_id=row.get("customer_id"),
        branch_id=row.get("branch_id"),
        status=row.get("status"),
        sale_date=_parse_datetime(row.get("sale_date")),
        operator_id=(row.get("visit") or {}).get("operator_id"),
    )


def _pricing_from_row(row: dict, key: str) -> Pricing:
    return Pricing(
        owner_id=str(row[key]),
        monthly_price=_coerce_float(row.get("monthly_price")),
        per_visit_price=_coerce_float(row.get("per_visit_price")),
    )


# -- reads ------------------------------------------------------------------


def fetch_operators() -> list[Operator]:
    rows = _execute(_client().table("operators").select("id, name").order("name"), "operators")
    return [Operator(id=str(row["id"]), name=row.get("name") or "") for row in rows]


def fetch_customers() -> list[Customer]:
    rows = _execute(
        _client().table("customers").select("id, kisa_isim, cari_isim").order("kisa_isim"),
        "customers",
    )
    return [
        Customer(id=str(row["id"]), short_name=row.get("kisa_isim") or "", legal_name=row.get("cari_isim"))
        for row in rows
    ]


def fetch_branches() -> list[Branch]:
    rows = _execute(
        _client().table("branches").select("id, customer_id, sube_adi, latitude, longitude"),
        "branches",
    )
    return [
        Branch(
            id=str(row["id"]),
            customer_id=row.get("customer_id"),
            name=row.get("sube_adi"),
            latitude=_coerce_float(row.get("latitude")),
            longitude=_coerce_float(row.get("longitude")),
        )
        for row in rows
    ]


def fetch_customer_pricing() -> list[Pricing]:
    rows = _execute(
        _client().table("customer_pricing").select("customer_id, monthly_price, per_visit_price"),
        "customer_pricing",
    )
    return [_pricing_from_row(row, "customer_id") for row in rows]


def fetch_branch_pricing() -> list[Pricing]:
    rows = _execute(
        _client().table("branch_pricing").select("branch_id, monthly_price, per_visit_price"),
        "branch_pricing",
    )
    return [_pricing_from_row(row, "branch_id") for row in rows]


def fetch_completed_visits(start_iso: str, end_iso: str, operator_id: Optional[str] = None) -> list[Visit]:
    query = (
        _client()
        .table("visits")
        .select("id, operator_id, branch_id, customer_id, visit_date, status")
        .eq("status", "completed")
        .gte("visit_date", start_iso)
        .lte("visit_date", end_iso)
    )
    if operator_id:
        query = query.eq("operator_id", operator_id)
    return [_visit_from_row(row) for row in _execute(query, "visits")]


def fetch_operator_visits(operator_id: str, start_iso: str, end_iso: str, status: str) -> list[Visit]:
    """Visits of one operator with branch coordinates, ordered by visit time."""

    query = (
        _client()
        .table("visits")
        .select(
            "id, visit_date, status, operator_id, branch_id, customer_id, "
            "customer:customer_id(kisa_isim), branch:branch_id(id, sube_adi, latitude, longitude)"
        )
        .eq("operator_id", operator_id)
        .eq("status", status)
        .gte("visit_date", start_iso)
        .lte("visit_date", end_iso)
        .order("visit_date")
    )
    return [_visit_from_row(row) for row in _execute(query, "visits")]


def fetch_unbilled_visits() -> list[Visit]:
    query = (
        _client()
        .table("visits")
        .select("id, customer_id, branch_id, operator_id, visit_date, status")
        .eq("status", "completed")
        .eq("is_invoiced", False)
    )
    return [_visit_from_row(row) for row in _execute(query, "visits")]


def fetch_material_sales(start_iso: str, end_iso: str, *, with_operator: bool = False) -> list[MaterialSale]:
    columns = "id, visit_id, total_amount, sale_date"
    if with_operator:
        columns += ", visit:visit_id(operator_id)"
    query = (
        _client()
        .table("paid_material_sales")
        .select(columns)
        .gte("sale_date", start_iso)
        .lte("sale_date", end_iso)
    )
    return [_sale_from_row(row) for row in _execute(query, "paid_material_sales")]


def fetch_open_material_sales() -> list[MaterialSale]:
    closed = ", ".join(f'"{status}"' for status in CLOSED_SALE_STATUSES)
    query = (
        _client()
        .table("paid_material_sales")
        .select("id, customer_id, branch_id, visit_id, sale_date, total_amount, status")
        .filter("status", "not.in", f"({closed})")
    )
    return [_sale_from_row(row) for row in _execute(query, "paid_material_sales")]


def fetch_collection_receipts() -> list[CollectionReceipt]:
    query = (
        _client()
        .table("collection_receipts")
        .select("id, customer_id, branch_id, amount, receipt_date, receipt_no, payment_method, is_checked_by_admin")
        .order("receipt_date", desc=True)
    )
    return [
        CollectionReceipt(
            id=str(row["id"]),
            customer_id=row.get("customer_id"),
            amount=_coerce_float(row.get("amount")) or 0.0,
            branch_id=row.get("branch_id"),
            receipt_date=_parse_datetime(row.get("receipt_date")),
            receipt_no=row.get("receipt_no"),
            payment_method=row.get("payment_method"),
            is_checked_by_admin=bool(row.get("is_checked_by_admin")),
        )
        for row in _execute(query, "collection_receipts")
    ]


def fetch_vehicles() -> list[Vehicle]:
    rows = _execute(_client().table("vehicles").select("id, plate_number, operator_id"), "vehicles")
    return [
        Vehicle(id=str(row["id"]), plate_number=row.get("plate_number") or "", operator_id=row.get("operator_id"))
        for row in rows
    ]


def fetch_weekly_km(since_year: int) -> list[WeeklyKmEntry]:
    query = (
        _client()
        .table("operator_weekly_km")
        .select("*")
        .gte("year", since_year)
        .order("year")
        .order("week_number")
    )
    return [
        WeeklyKmEntry(
            operator_id=row["operator_id"],
            week_number=int(row["week_number"]),
            year=int(row["year"]),
            start_km=_coerce_float(row.get("start_km")) or 0.0,
            end_km=_coerce_float(row.get("end_km")) or 0.0,
            total_km=_coerce_float(row.get("total_km")) or 0.0,
            submitted_at=_parse_datetime(row.get("submitted_at")),
        )
        for row in _execute(query, "operator_weekly_km")
    ]


def fetch_operator_locations() -> list[OperatorLocation]:
    rows = _execute(_client().table("operator_locations").select("*, operators(name)"), "operator_locations")
    locations: list[OperatorLocation] = []
    for row in rows:
        latitude = _coerce_float(row.get("latitude"))
        longitude = _coerce_float(row.get("longitude"))
        if latitude is None or longitude is None:
            continue
        operator = row.get("operators") or {}
        locations.append(
            OperatorLocation(
                operator_id=row["operator_id"],
                latitude=latitude,
                longitude=longitude,
                updated_at=_parse_datetime(row.get("updated_at")),
                operator_name=operator.get("name"),
            )
        )
    return locations


# -- writes -----------------------------------------------------------------


def insert_weekly_km(entry: WeeklyKmEntry) -> None:
    payload = {
        "operator_id": entry.operator_id,
        "week_number": entry.week_number,
        "year": entry.year,
        "start_km": entry.start_km,
        "end_km": entry.end_km,
        "total_km": entry.total_km,
        "submitted_at": entry.submitted_at.isoformat() if entry.submitted_at else None,
    }
    _execute(_client().table("operator_weekly_km").insert(payload), "operator_weekly_km")


def update_receipt_checked(receipt_id: str, checked: bool) -> bool:
    """Flip the admin check flag on a collection receipt. Returns False when no row matched."""

    rows = _execute(
        _client().table("collection_receipts").update({"is_checked_by_admin": checked}).eq("id", receipt_id),
        "collection_receipts",
    )
    return bool(rows)


def insert_operator(row: dict) -> None:
    _execute(_client().table("operators").insert(row), "operators")


def insert_email_log(recipient: str, subject: str, body: str, status: str, error_message: str | None = None) -> None:
    payload = {"recipient": recipient, "subject": subject, "body": body, "status": status}
    if error_message:
        payload["error_message"] = error_message
    _execute(_client().table("email_logs").insert(payload), "email_logs")
