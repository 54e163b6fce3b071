"""Serializers for report outputs."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict
from typing import Sequence

from ..reporting.performance import OperatorPerformance, PerformanceSummary

PERFORMANCE_FIELDS = [
    "operator_id",
    "operator_name",
    "total_visits",
    "paid_visits",
    "visit_revenue_total",
    "material_sales_total",
    "total_revenue",
]


def performance_to_json(
    rows: Sequence[OperatorPerformance],
    summary: PerformanceSummary,
    metadata: dict,
) -> dict:
    return {
        "metadata": metadata,
        "summary": asdict(summary),
        "rows": [asdict(row) for row in rows],
    }


def performance_to_csv(rows: Sequence[OperatorPerformance]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=PERFORMANCE_FIELDS)
    writer.writeheader()
    for row in rows:
        record = asdict(row)
        for key in ("visit_revenue_total", "material_sales_total", "total_revenue"):
            record[key] = round(record[key], 2)
        writer.writerow({key: record[key] for key in PERFORMANCE_FIELDS})
    return buffer.getvalue()
