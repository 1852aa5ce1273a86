"""StoreRepository — raw SQL for store_products / store_purchase_orders.

Fulfilment is a conditional UPDATE (``WHERE status = 'pending'``); 0 rows back
means the order is unknown or already fulfilled.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.errors import InternalError
from src.gc_store.domain.models import PurchaseOrder, StoreProduct

_PRODUCT_COLUMNS = "id, name, description, price_guincoin, is_active, created_at"

_INSERT_PRODUCT_SQL = text(f"""
    INSERT INTO store_products (name, description, price_guincoin)
    VALUES (:name, :description, :price_guincoin)
    RETURNING {_PRODUCT_COLUMNS}
""")

_LIST_ACTIVE_PRODUCTS_SQL = text(f"""
    SELECT {_PRODUCT_COLUMNS}
    FROM store_products
    WHERE is_active = TRUE
    ORDER BY name ASC, id ASC
""")

_GET_PRODUCT_SQL = text(f"""
    SELECT {_PRODUCT_COLUMNS}
    FROM store_products
    WHERE id = :product_id
""")

_ORDER_COLUMNS = """id, employee_id, product_id, transaction_id, status, fulfilled_by_id,
              fulfilled_at, tracking_number, notes, created_at"""

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO store_purchase_orders (employee_id, product_id, transaction_id, status)
    VALUES (:employee_id, :product_id, :transaction_id, 'pending')
    RETURNING {_ORDER_COLUMNS}
""")

_ORDER_DETAIL_SELECT = """
    SELECT o.id, o.employee_id, o.product_id, o.transaction_id, o.status,
           o.fulfilled_by_id, o.fulfilled_at, o.tracking_number, o.notes, o.created_at,
           e.name  AS employee_name,
           e.email AS employee_email,
           p.name  AS product_name,
           p.price_guincoin
    FROM store_purchase_orders o
    JOIN employees e ON e.id = o.employee_id
    JOIN store_products p ON p.id = o.product_id
"""

_GET_ORDER_SQL = text(_ORDER_DETAIL_SELECT + """
    WHERE o.id = :order_id
""")

_GET_ORDER_FOR_UPDATE_SQL = text(_ORDER_DETAIL_SELECT + """
    WHERE o.id = :order_id
    FOR UPDATE OF o
""")

_LIST_PENDING_ORDERS_SQL = text(_ORDER_DETAIL_SELECT + """
    WHERE o.status = 'pending'
    ORDER BY o.created_at ASC, o.id ASC
""")

_LIST_EMPLOYEE_ORDERS_SQL = text(_ORDER_DETAIL_SELECT + """
    WHERE o.employee_id = :employee_id
    ORDER BY o.created_at DESC, o.id DESC
""")

_LIST_ORDERS_SQL = text(_ORDER_DETAIL_SELECT + """
    WHERE (CAST(:status AS TEXT) IS NULL OR o.status = :status)
    ORDER BY o.created_at DESC, o.id DESC
""")

_MARK_FULFILLED_SQL = text(f"""
    UPDATE store_purchase_orders
    SET status = 'fulfilled',
        fulfilled_by_id = :fulfilled_by_id,
        fulfilled_at = NOW(),
        tracking_number = :tracking_number,
        notes = :notes
    WHERE id = :order_id AND status = 'pending'
    RETURNING {_ORDER_COLUMNS}
""")


def _opt_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _row_to_product(row: object) -> StoreProduct:
    return StoreProduct(
        id=str(row.id),  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        price_guincoin=Decimal(row.price_guincoin),  # type: ignore[attr-defined]
        is_active=bool(row.is_active),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_order(row: object, detailed: bool = True) -> PurchaseOrder:
    order = PurchaseOrder(
        id=str(row.id),  # type: ignore[attr-defined]
        employee_id=str(row.employee_id),  # type: ignore[attr-defined]
        product_id=str(row.product_id),  # type: ignore[attr-defined]
        transaction_id=_opt_str(row.transaction_id),  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        fulfilled_by_id=_opt_str(row.fulfilled_by_id),  # type: ignore[attr-defined]
        fulfilled_at=row.fulfilled_at,  # type: ignore[attr-defined]
        tracking_number=row.tracking_number,  # type: ignore[attr-defined]
        notes=row.notes,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )
    if detailed:
        order.employee_name = row.employee_name  # type: ignore[attr-defined]
        order.employee_email = row.employee_email  # type: ignore[attr-defined]
        order.product_name = row.product_name  # type: ignore[attr-defined]
        order.price_guincoin = Decimal(row.price_guincoin)  # type: ignore[attr-defined]
    return order


class StoreRepository:
    async def create_product(
        self,
        db: AsyncSession,
        name: str,
        description: str | None,
        price_guincoin: Decimal,
    ) -> StoreProduct:
        result = await db.execute(
            _INSERT_PRODUCT_SQL,
            {"name": name, "description": description, "price_guincoin": price_guincoin},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Product insert returned no rows")
        return _row_to_product(row)

    async def list_active_products(self, db: AsyncSession) -> list[StoreProduct]:
        result = await db.execute(_LIST_ACTIVE_PRODUCTS_SQL)
        return [_row_to_product(row) for row in result.fetchall()]

    async def get_product(self, db: AsyncSession, product_id: str) -> StoreProduct | None:
        result = await db.execute(_GET_PRODUCT_SQL, {"product_id": product_id})
        row = result.fetchone()
        return _row_to_product(row) if row else None

    async def insert_order(
        self, db: AsyncSession, employee_id: str, product_id: str, transaction_id: str
    ) -> PurchaseOrder:
        result = await db.execute(
            _INSERT_ORDER_SQL,
            {
                "employee_id": employee_id,
                "product_id": product_id,
                "transaction_id": transaction_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Purchase order insert returned no rows")
        return _row_to_order(row, detailed=False)

    async def get_order(
        self, db: AsyncSession, order_id: str, for_update: bool = False
    ) -> PurchaseOrder | None:
        sql = _GET_ORDER_FOR_UPDATE_SQL if for_update else _GET_ORDER_SQL
        result = await db.execute(sql, {"order_id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def list_pending_orders(self, db: AsyncSession) -> list[PurchaseOrder]:
        result = await db.execute(_LIST_PENDING_ORDERS_SQL)
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_orders_by_employee(
        self, db: AsyncSession, employee_id: str
    ) -> list[PurchaseOrder]:
        result = await db.execute(_LIST_EMPLOYEE_ORDERS_SQL, {"employee_id": employee_id})
        return [_row_to_order(row) for row in result.fetchall()]

    async def list_orders(
        self, db: AsyncSession, status: str | None = None
    ) -> list[PurchaseOrder]:
        result = await db.execute(_LIST_ORDERS_SQL, {"status": status})
        return [_row_to_order(row) for row in result.fetchall()]

    async def mark_fulfilled(
        self,
        db: AsyncSession,
        order_id: str,
        fulfilled_by_id: str,
        tracking_number: str | None,
        notes: str | None,
    ) -> PurchaseOrder | None:
        result = await db.execute(
            _MARK_FULFILLED_SQL,
            {
                "order_id": order_id,
                "fulfilled_by_id": fulfilled_by_id,
                "tracking_number": tracking_number,
                "notes": notes,
            },
        )
        row = result.fetchone()
        return _row_to_order(row, detailed=False) if row else None
