"""Repository Protocol for store products and purchase orders."""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_store.domain.models import PurchaseOrder, StoreProduct


class StoreRepositoryProtocol(Protocol):
    async def create_product(
        self,
        db: AsyncSession,
        name: str,
        description: str | None,
        price_guincoin: Decimal,
    ) -> StoreProduct: ...

    async def list_active_products(self, db: AsyncSession) -> list[StoreProduct]: ...

    async def get_product(self, db: AsyncSession, product_id: str) -> StoreProduct | None: ...

    async def insert_order(
        self, db: AsyncSession, employee_id: str, product_id: str, transaction_id: str
    ) -> PurchaseOrder: ...

    async def get_order(
        self, db: AsyncSession, order_id: str, for_update: bool = False
    ) -> PurchaseOrder | None: ...

    async def list_pending_orders(self, db: AsyncSession) -> list[PurchaseOrder]: ...

    async def list_orders_by_employee(
        self, db: AsyncSession, employee_id: str
    ) -> list[PurchaseOrder]: ...

    async def list_orders(
        self, db: AsyncSession, status: str | None = None
    ) -> list[PurchaseOrder]: ...

    async def mark_fulfilled(
        self,
        db: AsyncSession,
        order_id: str,
        fulfilled_by_id: str,
        tracking_number: str | None,
        notes: str | None,
    ) -> PurchaseOrder | None: ...
