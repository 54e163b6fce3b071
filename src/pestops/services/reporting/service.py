"""Reporting orchestration: fetch, aggregate, persist."""

from __future__ import annotations

import calendar
import logging
from dataclasses import asdict
from datetime import date

from ...data import repository
from ...persistence.filesystem import FileStorage
from ...schemas.reporting import (
    CollectionReceiptModel,
    CustomerBalanceModel,
    OperatorPerformanceModel,
    OperatorRevenueModel,
    PerformanceRequest,
    PerformanceResponse,
    PerformanceSummaryModel,
    ReceivablesResponse,
    RevenueResponse,
)
from ..outputs.formatter import performance_to_csv, performance_to_json
from .performance import aggregate_operator_performance, summarize_performance, top_performers
from .receivables import compute_customer_balances
from .revenue import compute_monthly_revenue

logger = logging.getLogger(__name__)


def generate_operator_performance(payload: PerformanceRequest) -> PerformanceResponse:
    """Per-operator revenue report for ``[start_date, end_date]``.

    All inputs are loaded in parallel; any failed query aborts the report.
    """

    if payload.start_date > payload.end_date:
        raise ValueError("start_date must not be after end_date.")

    start_iso, end_iso = repository.day_window(payload.start_date, payload.end_date)
    data = repository.fetch_parallel(
        operators=repository.fetch_operators,
        visits=lambda: repository.fetch_completed_visits(start_iso, end_iso),
        sales=lambda: repository.fetch_material_sales(start_iso, end_iso),
        customer_pricing=repository.fetch_customer_pricing,
        branch_pricing=repository.fetch_branch_pricing,
        branches=repository.fetch_branches,
    )

    operators = data["operators"]
    if payload.operator_id:
        operators = [operator for operator in operators if operator.id == payload.operator_id]
        if not operators:
            raise ValueError(f"Operator '{payload.operator_id}' not found.")

    result = aggregate_operator_performance(
        operators,
        data["visits"],
        data["sales"],
        data["branches"],
        data["customer_pricing"],
        data["branch_pricing"],
    )
    summary = summarize_performance(result.rows)
    leaders = top_performers(result.rows, limit=payload.top_n)

    metadata = {
        "window": {"start": start_iso, "end": end_iso},
        "operator_count": len(result.rows),
        "visit_count": len(data["visits"]),
        "sale_count": len(data["sales"]),
        "unattributed_visits": result.unattributed_visits,
        "unattributed_sales": result.unattributed_sales,
    }
    if result.unattributed_sales:
        logger.info(f"{result.unattributed_sales} material sales could not be attributed to an operator")

    if payload.persist:
        storage = FileStorage()
        run_metadata = {
            **metadata,
            "operator_id": payload.operator_id,
            "author": payload.requested_by,
            "run_label": payload.run_label,
        }
        run_dir = storage.save_run(
            "performance",
            performance_to_json(result.rows, summary, run_metadata),
            {"performance.csv": performance_to_csv(result.rows)},
        )
        metadata["output_dir"] = run_dir.name

    return PerformanceResponse(
        start_date=payload.start_date,
        end_date=payload.end_date,
        operator_id=payload.operator_id,
        rows=[OperatorPerformanceModel(**asdict(row)) for row in result.rows],
        summary=PerformanceSummaryModel(**asdict(summary)),
        top_performers=[OperatorPerformanceModel(**asdict(row)) for row in leaders],
        metadata=metadata,
    )


def generate_receivables() -> ReceivablesResponse:
    data = repository.fetch_parallel(
        customers=repository.fetch_customers,
        visits=repository.fetch_unbilled_visits,
        sales=repository.fetch_open_material_sales,
        receipts=repository.fetch_collection_receipts,
        customer_pricing=repository.fetch_customer_pricing,
        branch_pricing=repository.fetch_branch_pricing,
    )
    balances = compute_customer_balances(
        data["customers"],
        data["visits"],
        data["sales"],
        data["receipts"],
        data["customer_pricing"],
        data["branch_pricing"],
    )
    items = [
        CustomerBalanceModel(
            customer_id=entry.customer.id,
            customer_name=entry.customer.short_name,
            total_debt=entry.total_debt,
            total_collections=entry.total_collections,
            balance=entry.balance,
            visit_count=len(entry.visits),
            material_sale_count=len(entry.material_sales),
            visit_ids=[visit.id for visit in entry.visits],
            material_sale_ids=[str(sale.id) for sale in entry.material_sales if sale.id is not None],
            collections=[CollectionReceiptModel(**asdict(receipt)) for receipt in entry.collections],
        )
        for entry in balances
    ]
    return ReceivablesResponse(
        customers=items,
        total_debt=sum(item.total_debt for item in items),
        total_collections=sum(item.total_collections for item in items),
        total_balance=sum(item.balance for item in items),
    )


def mark_receipt_checked(receipt_id: str, checked: bool) -> bool:
    return repository.update_receipt_checked(receipt_id, checked)


def generate_monthly_revenue(year: int, month: int) -> RevenueResponse:
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12.")
    last_day = calendar.monthrange(year, month)[1]
    start_iso, end_iso = repository.day_window(date(year, month, 1), date(year, month, last_day))

    data = repository.fetch_parallel(
        operators=repository.fetch_operators,
        customer_pricing=repository.fetch_customer_pricing,
        branch_pricing=repository.fetch_branch_pricing,
        visits=lambda: repository.fetch_completed_visits(start_iso, end_iso),
        sales=lambda: repository.fetch_material_sales(start_iso, end_iso, with_operator=True),
    )
    overview = compute_monthly_revenue(
        data["customer_pricing"],
        data["branch_pricing"],
        data["visits"],
        data["sales"],
        {operator.id: operator.name for operator in data["operators"]},
    )
    return RevenueResponse(
        year=year,
        month=month,
        monthly_revenue=overview.monthly_revenue,
        per_visit_revenue=overview.per_visit_revenue,
        material_revenue=overview.material_revenue,
        total_revenue=overview.total_revenue,
        total_visits=overview.total_visits,
        operators=[OperatorRevenueModel(**asdict(entry)) for entry in overview.operators],
    )
