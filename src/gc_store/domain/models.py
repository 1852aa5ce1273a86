"""Domain models for gc_store — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class StoreProduct:
    id: str
    name: str
    description: str | None
    price_guincoin: Decimal
    is_active: bool
    created_at: datetime | None = None


@dataclass
class PurchaseOrder:
    id: str
    employee_id: str
    product_id: str
    transaction_id: str | None
    status: str                      # PurchaseOrderStatus value
    fulfilled_by_id: str | None = None
    fulfilled_at: datetime | None = None
    tracking_number: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    # Joined context
    employee_name: str = ""
    employee_email: str = ""
    product_name: str = ""
    price_guincoin: Decimal = Decimal("0")
