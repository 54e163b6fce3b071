"""Reporting request/response schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class PerformanceRequest(BaseModel):
    start_date: date
    end_date: date
    operator_id: Optional[str] = Field(default=None, description="Restrict the report to a single operator.")
    top_n: int = Field(default=10, ge=1, le=100)
    persist: bool = False
    requested_by: Optional[str] = Field(default=None, description="Person or system requesting the run.")
    run_label: Optional[str] = Field(default=None, description="Friendly name for persisted outputs.")


class OperatorPerformanceModel(BaseModel):
    operator_id: str
    operator_name: str
    material_sales_total: float
    visit_revenue_total: float
    total_revenue: float
    total_visits: int
    paid_visits: int


class PerformanceSummaryModel(BaseModel):
    total_revenue: float
    material_sales_total: float
    visit_revenue_total: float
    total_visits: int
    paid_visits: int


class PerformanceResponse(BaseModel):
    start_date: date
    end_date: date
    operator_id: Optional[str] = None
    rows: List[OperatorPerformanceModel]
    summary: PerformanceSummaryModel
    top_performers: List[OperatorPerformanceModel]
    metadata: dict


class CollectionReceiptModel(BaseModel):
    id: str
    amount: float
    branch_id: Optional[str] = None
    receipt_date: Optional[datetime] = None
    receipt_no: Optional[str] = None
    payment_method: Optional[str] = None
    is_checked_by_admin: bool = False


class CustomerBalanceModel(BaseModel):
    customer_id: str
    customer_name: str
    total_debt: float
    total_collections: float
    balance: float
    visit_count: int
    material_sale_count: int
    visit_ids: List[str]
    material_sale_ids: List[str]
    collections: List[CollectionReceiptModel]


class ReceivablesResponse(BaseModel):
    customers: List[CustomerBalanceModel]
    total_debt: float
    total_collections: float
    total_balance: float


class ReceiptCheckRequest(BaseModel):
    checked: bool


class OperatorRevenueModel(BaseModel):
    operator_id: str
    operator_name: str
    total_revenue: float
    visit_count: int


class RevenueResponse(BaseModel):
    year: int
    month: int
    monthly_revenue: float
    per_visit_revenue: float
    material_revenue: float
    total_revenue: float
    total_visits: int
    operators: List[OperatorRevenueModel]
