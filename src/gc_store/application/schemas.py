"""Pydantic schemas for gc_store API."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.gc_common.amounts import amount_to_number
from src.gc_ledger.application.schemas import TransactionItem
from src.gc_ledger.domain.models import LedgerTransaction
from src.gc_store.domain.models import PurchaseOrder, StoreProduct


def _iso(value: object) -> str | None:
    return value.isoformat() if value is not None else None  # type: ignore[attr-defined]


class CreateProductRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    price_guincoin: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class PurchaseRequest(BaseModel):
    product_id: str


class FulfillRequest(BaseModel):
    tracking_number: str | None = Field(None, max_length=200)
    notes: str | None = Field(None, max_length=2000)


class ProductItem(BaseModel):
    id: str
    name: str
    description: str | None
    price_guincoin: float
    is_active: bool
    created_at: str | None

    @classmethod
    def from_domain(cls, p: StoreProduct) -> "ProductItem":
        return cls(
            id=p.id,
            name=p.name,
            description=p.description,
            price_guincoin=amount_to_number(p.price_guincoin),
            is_active=p.is_active,
            created_at=_iso(p.created_at),
        )


class PurchaseOrderItem(BaseModel):
    id: str
    employee_id: str
    employee_name: str
    employee_email: str
    product_id: str
    product_name: str
    price_guincoin: float
    transaction_id: str | None
    status: str
    fulfilled_by_id: str | None
    fulfilled_at: str | None
    tracking_number: str | None
    notes: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, o: PurchaseOrder) -> "PurchaseOrderItem":
        return cls(
            id=o.id,
            employee_id=o.employee_id,
            employee_name=o.employee_name,
            employee_email=o.employee_email,
            product_id=o.product_id,
            product_name=o.product_name,
            price_guincoin=amount_to_number(o.price_guincoin),
            transaction_id=o.transaction_id,
            status=o.status,
            fulfilled_by_id=o.fulfilled_by_id,
            fulfilled_at=_iso(o.fulfilled_at),
            tracking_number=o.tracking_number,
            notes=o.notes,
            created_at=_iso(o.created_at),
        )


class PurchaseResponse(BaseModel):
    order: PurchaseOrderItem
    transaction: TransactionItem

    @classmethod
    def from_domain(cls, order: PurchaseOrder, debit: LedgerTransaction) -> "PurchaseResponse":
        return cls(
            order=PurchaseOrderItem.from_domain(order),
            transaction=TransactionItem.from_domain(debit),
        )
