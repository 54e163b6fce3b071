"""Outstanding balance per customer (unbilled visits and open material sales)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ...models.domain import CollectionReceipt, Customer, MaterialSale, Pricing, Visit

# Monthly contracts are billed per visit assuming four visits a month.
VISITS_PER_MONTH = 4

CLOSED_SALE_STATUSES = frozenset({"invoiced", "paid"})


@dataclass(slots=True)
class CustomerBalance:
    customer: Customer
    total_debt: float = 0.0
    total_collections: float = 0.0
    balance: float = 0.0
    visits: list[Visit] = field(default_factory=list)
    material_sales: list[MaterialSale] = field(default_factory=list)
    collections: list[CollectionReceipt] = field(default_factory=list)


def _price_from(pricing: Optional[Pricing]) -> float:
    if pricing is None:
        return 0.0
    if pricing.per_visit_price:
        return pricing.per_visit_price
    if pricing.monthly_price:
        return pricing.monthly_price / VISITS_PER_MONTH
    return 0.0


def visit_value(
    visit: Visit,
    branch_pricing: dict[str, Pricing],
    customer_pricing: dict[str, Pricing],
) -> float:
    """Billable amount of a single visit; branch pricing wins when it yields a price."""

    value = 0.0
    if visit.branch_id:
        value = _price_from(branch_pricing.get(visit.branch_id))
    if value == 0.0 and visit.customer_id:
        value = _price_from(customer_pricing.get(visit.customer_id))
    return value


def compute_customer_balances(
    customers: Iterable[Customer],
    visits: Iterable[Visit],
    sales: Iterable[MaterialSale],
    receipts: Iterable[CollectionReceipt],
    customer_pricing: Iterable[Pricing],
    branch_pricing: Iterable[Pricing],
) -> list[CustomerBalance]:
    """Debt, collections and balance for every customer, highest balance first."""

    customer_prices = {price.owner_id: price for price in customer_pricing}
    branch_prices = {price.owner_id: price for price in branch_pricing}
    summaries = {customer.id: CustomerBalance(customer=customer) for customer in customers}

    for visit in visits:
        summary = summaries.get(visit.customer_id)
        if summary is None:
            continue
        summary.total_debt += visit_value(visit, branch_prices, customer_prices)
        summary.visits.append(visit)

    for sale in sales:
        if sale.status in CLOSED_SALE_STATUSES:
            continue
        summary = summaries.get(sale.customer_id)
        if summary is None:
            continue
        summary.total_debt += sale.total_amount
        summary.material_sales.append(sale)

    for receipt in receipts:
        summary = summaries.get(receipt.customer_id)
        if summary is None:
            continue
        summary.total_collections += receipt.amount
        summary.collections.append(receipt)

    for summary in summaries.values():
        summary.balance = summary.total_debt - summary.total_collections

    return sorted(summaries.values(), key=lambda item: item.balance, reverse=True)
