"""Domain models for rows read from the Supabase backend."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class Operator:
    """Field technician performing visits."""

    id: str
    name: str


@dataclass(slots=True)
class Customer:
    """Legal/billing identity owning one or more branches."""

    id: str
    short_name: str
    legal_name: Optional[str] = None


@dataclass(slots=True)
class Branch:
    """Physical site of a customer."""

    id: str
    customer_id: Optional[str]
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(slots=True)
class Pricing:
    """Monthly and/or per-visit price attached to a customer or a branch."""

    owner_id: str
    monthly_price: Optional[float] = None
    per_visit_price: Optional[float] = None


@dataclass(slots=True)
class Visit:
    """Scheduled, completed or cancelled service visit."""

    id: str
    operator_id: Optional[str]
    branch_id: Optional[str]
    status: str = "completed"
    customer_id: Optional[str] = None
    visit_date: Optional[datetime] = None
    branch_name: Optional[str] = None
    customer_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)


@dataclass(slots=True)
class MaterialSale:
    """Paid-material billing line, usually attached to a visit."""

    id: Optional[str]
    visit_id: Optional[str]
    total_amount: float
    customer_id: Optional[str] = None
    branch_id: Optional[str] = None
    status: Optional[str] = None
    sale_date: Optional[datetime] = None
    operator_id: Optional[str] = None


@dataclass(slots=True)
class CollectionReceipt:
    id: str
    customer_id: str
    amount: float
    branch_id: Optional[str] = None
    receipt_date: Optional[datetime] = None
    receipt_no: Optional[str] = None
    payment_method: Optional[str] = None
    is_checked_by_admin: bool = False


@dataclass(slots=True)
class Vehicle:
    id: str
    plate_number: str
    operator_id: Optional[str] = None


@dataclass(slots=True)
class WeeklyKmEntry:
    """Weekly odometer reading submitted by an operator."""

    operator_id: str
    week_number: int
    year: int
    start_km: float
    end_km: float
    total_km: float
    submitted_at: Optional[datetime] = None


@dataclass(slots=True)
class OperatorLocation:
    """Last reported position of an operator."""

    operator_id: str
    latitude: float
    longitude: float
    updated_at: Optional[datetime] = None
    operator_name: Optional[str] = None
