"""Per-operator revenue and visit aggregation.

Visit revenue is priced per branch group: all of an operator's visits to one
branch share a unit price chosen with a fixed precedence

    branch per-visit -> customer per-visit -> branch monthly / n -> customer monthly / n

where ``n`` is the number of visits in the group. Material revenue is credited
to an operator only through the visit a sale is attached to.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ...models.domain import Branch, MaterialSale, Operator, Pricing, Visit

COMPLETED = "completed"


@dataclass(slots=True)
class OperatorPerformance:
    operator_id: str
    operator_name: str
    material_sales_total: float = 0.0
    visit_revenue_total: float = 0.0
    total_revenue: float = 0.0
    total_visits: int = 0
    paid_visits: int = 0


@dataclass(slots=True)
class PerformanceSummary:
    total_revenue: float = 0.0
    material_sales_total: float = 0.0
    visit_revenue_total: float = 0.0
    total_visits: int = 0
    paid_visits: int = 0


@dataclass(slots=True)
class PerformanceResult:
    rows: list[OperatorPerformance]
    unattributed_visits: int = 0
    unattributed_sales: int = 0


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return value if value > 0 else None


def resolve_unit_price(
    visit_count: int,
    branch_price: Optional[Pricing],
    customer_price: Optional[Pricing],
) -> float:
    """Return the price of one visit in a branch group of ``visit_count`` visits."""

    per_visit = _positive(branch_price.per_visit_price if branch_price else None)
    if per_visit is not None:
        return per_visit
    per_visit = _positive(customer_price.per_visit_price if customer_price else None)
    if per_visit is not None:
        return per_visit
    if visit_count <= 0:
        return 0.0
    monthly = _positive(branch_price.monthly_price if branch_price else None)
    if monthly is not None:
        return monthly / visit_count
    monthly = _positive(customer_price.monthly_price if customer_price else None)
    if monthly is not None:
        return monthly / visit_count
    return 0.0


def aggregate_operator_performance(
    operators: Sequence[Operator],
    visits: Iterable[Visit],
    sales: Iterable[MaterialSale],
    branches: Iterable[Branch],
    customer_pricing: Iterable[Pricing],
    branch_pricing: Iterable[Pricing],
) -> PerformanceResult:
    """Compute revenue and visit totals for every operator in ``operators``.

    Operators keep their input order. Visits that are not completed are ignored.
    """

    branch_to_customer = {branch.id: branch.customer_id for branch in branches}
    branch_price = {price.owner_id: price for price in branch_pricing}
    customer_price = {price.owner_id: price for price in customer_pricing}

    completed = [visit for visit in visits if visit.status == COMPLETED]
    visit_to_operator = {visit.id: visit.operator_id for visit in completed}
    operator_ids = {operator.id for operator in operators}

    visits_by_operator: dict[str, list[Visit]] = defaultdict(list)
    unattributed_visits = 0
    for visit in completed:
        if visit.operator_id in operator_ids:
            visits_by_operator[visit.operator_id].append(visit)
        else:
            unattributed_visits += 1

    sales_by_operator: dict[str, float] = defaultdict(float)
    unattributed_sales = 0
    for sale in sales:
        operator_id = visit_to_operator.get(sale.visit_id) if sale.visit_id else None
        if operator_id is None or operator_id not in operator_ids:
            unattributed_sales += 1
            continue
        sales_by_operator[operator_id] += sale.total_amount or 0.0

    rows: list[OperatorPerformance] = []
    for operator in operators:
        operator_visits = visits_by_operator.get(operator.id, [])
        visit_revenue = 0.0
        paid_visits = 0

        by_branch: dict[Optional[str], int] = defaultdict(int)
        for visit in operator_visits:
            by_branch[visit.branch_id] += 1

        for branch_id, visit_count in by_branch.items():
            customer_id = branch_to_customer.get(branch_id)
            unit_price = resolve_unit_price(
                visit_count,
                branch_price.get(branch_id),
                customer_price.get(customer_id) if customer_id else None,
            )
            if unit_price > 0:
                visit_revenue += unit_price * visit_count
                paid_visits += visit_count

        material_total = sales_by_operator.get(operator.id, 0.0)
        rows.append(
            OperatorPerformance(
                operator_id=operator.id,
                operator_name=operator.name,
                material_sales_total=material_total,
                visit_revenue_total=visit_revenue,
                total_revenue=material_total + visit_revenue,
                total_visits=len(operator_visits),
                paid_visits=paid_visits,
            )
        )

    return PerformanceResult(
        rows=rows,
        unattributed_visits=unattributed_visits,
        unattributed_sales=unattributed_sales,
    )


def summarize_performance(rows: Iterable[OperatorPerformance]) -> PerformanceSummary:
    summary = PerformanceSummary()
    for row in rows:
        summary.total_revenue += row.total_revenue
        summary.material_sales_total += row.material_sales_total
        summary.visit_revenue_total += row.visit_revenue_total
        summary.total_visits += row.total_visits
        summary.paid_visits += row.paid_visits
    return summary


def top_performers(rows: Iterable[OperatorPerformance], limit: int = 10) -> list[OperatorPerformance]:
    """Operators with revenue, highest first."""

    ranked = sorted(
        (row for row in rows if row.total_revenue > 0),
        key=lambda row: row.total_revenue,
        reverse=True,
    )
    return ranked[: max(limit, 0)]
