"""Reporting services."""

from .performance import (
    OperatorPerformance,
    PerformanceSummary,
    aggregate_operator_performance,
    resolve_unit_price,
    summarize_performance,
    top_performers,
)
from .receivables import compute_customer_balances
from .revenue import compute_monthly_revenue

__all__ = [
    "OperatorPerformance",
    "PerformanceSummary",
    "aggregate_operator_performance",
    "resolve_unit_price",
    "summarize_performance",
    "top_performers",
    "compute_customer_balances",
    "compute_monthly_revenue",
]
