"""Monthly revenue overview."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from ...models.domain import MaterialSale, Pricing, Visit

UNKNOWN_OPERATOR = "Unknown"


@dataclass(slots=True)
class OperatorRevenue:
    operator_id: str
    operator_name: str
    total_revenue: float = 0.0
    visit_count: int = 0


@dataclass(slots=True)
class RevenueOverview:
    monthly_revenue: float = 0.0
    per_visit_revenue: float = 0.0
    material_revenue: float = 0.0
    total_revenue: float = 0.0
    total_visits: int = 0
    operators: list[OperatorRevenue] = field(default_factory=list)


def compute_monthly_revenue(
    customer_pricing: Iterable[Pricing],
    branch_pricing: Iterable[Pricing],
    visits: Iterable[Visit],
    sales: Iterable[MaterialSale],
    operator_names: Mapping[str, str],
) -> RevenueOverview:
    """Contracted monthly revenue plus per-visit and material revenue of one month.

    A visit earns the branch per-visit price; when the branch carries no monthly
    contract it falls back to the customer per-visit price. Branches with a
    monthly contract are already counted in ``monthly_revenue``.
    """

    customer_prices = {price.owner_id: price for price in customer_pricing}
    branch_prices = {price.owner_id: price for price in branch_pricing}

    overview = RevenueOverview()
    monthly_branches: set[str] = set()
    for price in customer_prices.values():
        overview.monthly_revenue += price.monthly_price or 0.0
    for branch_id, price in branch_prices.items():
        if price.monthly_price:
            overview.monthly_revenue += price.monthly_price
            monthly_branches.add(branch_id)

    per_operator: dict[str, OperatorRevenue] = {}

    def _operator(operator_id: str) -> OperatorRevenue:
        if operator_id not in per_operator:
            per_operator[operator_id] = OperatorRevenue(
                operator_id=operator_id,
                operator_name=operator_names.get(operator_id, UNKNOWN_OPERATOR),
            )
        return per_operator[operator_id]

    for visit in visits:
        if visit.status != "completed":
            continue
        overview.total_visits += 1
        branch_price = branch_prices.get(visit.branch_id) if visit.branch_id else None
        customer_price = customer_prices.get(visit.customer_id) if visit.customer_id else None
        revenue = 0.0
        if branch_price and branch_price.per_visit_price:
            revenue = branch_price.per_visit_price
        elif visit.branch_id not in monthly_branches and customer_price and customer_price.per_visit_price:
            revenue = customer_price.per_visit_price
        overview.per_visit_revenue += revenue

        if visit.operator_id:
            entry = _operator(visit.operator_id)
            entry.total_revenue += revenue
            entry.visit_count += 1

    for sale in sales:
        overview.material_revenue += sale.total_amount or 0.0
        if sale.operator_id:
            _operator(sale.operator_id).total_revenue += sale.total_amount or 0.0

    overview.total_revenue = overview.monthly_revenue + overview.per_visit_revenue + overview.material_revenue
    overview.operators = sorted(per_operator.values(), key=lambda item: item.total_revenue, reverse=True)
    return overview
