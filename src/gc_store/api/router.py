"""gc_store REST endpoints.

GET  /store/products                     — active catalogue
POST /store/products                     — admin adds a product
POST /store/purchase                     — buy a product (debits immediately)
GET  /store/purchases                    — employee's own orders, newest first
GET  /store/purchases/all                — admin list of all orders, optional ?status=
GET  /store/purchases/pending            — admin fulfilment queue
POST /store/purchases/{id}/fulfill       — admin marks an order fulfilled
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.database import get_db_session
from src.gc_common.response import ApiResponse, success_response
from src.gc_gateway.auth.dependencies import get_current_employee, require_admin
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_store.application.schemas import (
    CreateProductRequest,
    FulfillRequest,
    ProductItem,
    PurchaseOrderItem,
    PurchaseRequest,
    PurchaseResponse,
)
from src.gc_store.application.service import StoreService

router = APIRouter(prefix="/store", tags=["store"])

_service = StoreService()


@router.get("/products")
async def list_products(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    products = await _service.list_products(db)
    return success_response([ProductItem.from_domain(p).model_dump() for p in products], request)


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(
    request: Request,
    body: CreateProductRequest,
    admin: Annotated[EmployeeModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    product = await _service.create_product(
        db, body.name, body.price_guincoin, body.description
    )
    resp = success_response(ProductItem.from_domain(product).model_dump(), request)
    resp.message = "Product created"
    return resp


@router.post("/purchase", status_code=status.HTTP_201_CREATED)
async def purchase(
    request: Request,
    body: PurchaseRequest,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    order, debit = await _service.purchase(db, current_employee, body.product_id)
    resp = success_response(PurchaseResponse.from_domain(order, debit).model_dump(), request)
    resp.message = "Purchase completed"
    return resp


@router.get("/purchases")
async def list_my_purchases(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    orders = await _service.list_orders_for(db, current_employee)
    return success_response(
        [PurchaseOrderItem.from_domain(o).model_dump() for o in orders], request
    )


@router.get("/purchases/all")
async def list_all_purchases(
    request: Request,
    admin: Annotated[EmployeeModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status_filter: str | None = Query(None, alias="status"),
) -> ApiResponse:
    orders = await _service.list_orders(db, status_filter)
    return success_response(
        [PurchaseOrderItem.from_domain(o).model_dump() for o in orders], request
    )


@router.get("/purchases/pending")
async def list_pending_purchases(
    request: Request,
    admin: Annotated[EmployeeModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    orders = await _service.list_pending_orders(db)
    return success_response(
        [PurchaseOrderItem.from_domain(o).model_dump() for o in orders], request
    )


@router.post("/purchases/{order_id}/fulfill")
async def fulfill_purchase(
    request: Request,
    order_id: str,
    admin: Annotated[EmployeeModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    body: FulfillRequest | None = None,
) -> ApiResponse:
    tracking_number = body.tracking_number if body is not None else None
    notes = body.notes if body is not None else None
    order = await _service.fulfill(db, admin, order_id, tracking_number, notes)
    resp = success_response(PurchaseOrderItem.from_domain(order).model_dump(), request)
    resp.message = "Order fulfilled"
    return resp
