"""Store catalogue, purchases and fulfilment.

A purchase debits the buyer immediately: the account row is locked, spendable
funds are checked against the product price, and the ``store_purchase``
transaction is created, posted and linked to a new pending order inside one
unit of work. Fulfilment only moves the order; the ledger is already settled.
"""

import logging
from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.amounts import positive_amount
from src.gc_common.database import unit_of_work
from src.gc_common.enums import PurchaseOrderStatus, TransactionType
from src.gc_common.errors import (
    InsufficientBalanceError,
    InvalidStatusError,
    ProductNotFoundError,
    PurchaseOrderNotFoundError,
    PurchaseOrderNotPendingError,
)
from src.gc_common.ids import require_uuid
from src.gc_common.notifier import LogNotifier, Notifier
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_ledger.application.service import TransactionService
from src.gc_ledger.domain.models import LedgerTransaction
from src.gc_store.domain.models import PurchaseOrder, StoreProduct
from src.gc_store.domain.repository import StoreRepositoryProtocol
from src.gc_store.infrastructure.persistence import StoreRepository

logger = logging.getLogger("gc.rewards")


class StoreService:
    def __init__(
        self,
        repo: StoreRepositoryProtocol | None = None,
        ledger: TransactionService | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._repo: StoreRepositoryProtocol = repo or StoreRepository()
        self._ledger = ledger or TransactionService()
        self._notifier: Notifier = notifier or LogNotifier()

    async def list_products(self, db: AsyncSession) -> list[StoreProduct]:
        return await self._repo.list_active_products(db)

    async def create_product(
        self,
        db: AsyncSession,
        name: str,
        price_guincoin: object,
        description: str | None = None,
    ) -> StoreProduct:
        price = positive_amount(price_guincoin)
        async with unit_of_work(db) as tx:
            product = await self._repo.create_product(tx, name, description, price)
        logger.info("Product %s created: %s price=%s", product.id, name, price)
        return product

    async def purchase(
        self, db: AsyncSession, buyer: EmployeeModel, product_id: str
    ) -> tuple[PurchaseOrder, LedgerTransaction]:
        product_id = require_uuid(product_id, "product_id")
        product = await self._repo.get_product(db, product_id)
        if product is None or not product.is_active:
            raise ProductNotFoundError(product_id)
        account = await self._ledger.get_account_for_employee(db, str(buyer.id))
        price = product.price_guincoin

        async with unit_of_work(db) as tx:
            spendable = await self._ledger.get_spendable_balance(tx, account.id)
            if spendable < price:
                raise InsufficientBalanceError(price, spendable)
            debit = await self._ledger.create_pending_transaction(
                tx,
                account.id,
                TransactionType.STORE_PURCHASE,
                price,
                f"Store purchase: {product.name}",
                source_employee_id=str(buyer.id),
                tx=tx,
            )
            debit = await self._ledger.post_transaction(tx, debit.id, tx=tx)
            order = await self._repo.insert_order(tx, str(buyer.id), product.id, debit.id)

        order.employee_name = buyer.name
        order.employee_email = buyer.email
        order.product_name = product.name
        order.price_guincoin = price
        logger.info(
            "Purchase order %s: employee=%s product=%s price=%s",
            order.id, buyer.id, product.id, price,
        )
        await self._notifier.purchase_confirmed(buyer.email, buyer.name, product.name, price)
        return order, debit

    async def list_pending_orders(self, db: AsyncSession) -> list[PurchaseOrder]:
        return await self._repo.list_pending_orders(db)

    async def list_orders_for(
        self, db: AsyncSession, employee: EmployeeModel
    ) -> list[PurchaseOrder]:
        return await self._repo.list_orders_by_employee(db, str(employee.id))

    async def list_orders(
        self, db: AsyncSession, status: str | None = None
    ) -> list[PurchaseOrder]:
        """All orders, newest first, optionally narrowed to one status."""
        if status is not None:
            try:
                status = PurchaseOrderStatus(status).value
            except ValueError:
                raise InvalidStatusError("status", status) from None
        return await self._repo.list_orders(db, status)

    async def fulfill(
        self,
        db: AsyncSession,
        admin: EmployeeModel,
        order_id: str,
        tracking_number: str | None = None,
        notes: str | None = None,
    ) -> PurchaseOrder:
        order_id = require_uuid(order_id, "order_id")
        async with unit_of_work(db) as tx:
            order = await self._repo.get_order(tx, order_id, for_update=True)
            if order is None:
                raise PurchaseOrderNotFoundError(order_id)
            if order.status != PurchaseOrderStatus.PENDING:
                raise PurchaseOrderNotPendingError(order_id)
            updated = await self._repo.mark_fulfilled(
                tx, order_id, str(admin.id), tracking_number, notes
            )
            if updated is None:
                raise PurchaseOrderNotPendingError(order_id)

        logger.info("Purchase order %s fulfilled by %s", order_id, admin.id)
        await self._notifier.purchase_fulfilled(
            order.employee_email, order.employee_name, order.product_name, tracking_number
        )
        return replace(
            order,
            status=updated.status,
            fulfilled_by_id=updated.fulfilled_by_id,
            fulfilled_at=updated.fulfilled_at,
            tracking_number=updated.tracking_number,
            notes=updated.notes,
        )
