"""gc_ledger REST API — read-only account endpoints for the current employee.

GET /accounts/balance        — posted / pending / total
GET /accounts/transactions   — history, newest first, limit/offset paging
GET /accounts/pending        — pending transactions with display context
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.database import get_db_session
from src.gc_common.enums import TransactionStatus, TransactionType
from src.gc_common.response import ApiResponse, success_response
from src.gc_gateway.auth.dependencies import get_current_employee
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_ledger.application.schemas import (
    BalanceResponse,
    PendingTransactionItem,
    TransactionHistoryResponse,
)
from src.gc_ledger.application.service import TransactionService

router = APIRouter(prefix="/accounts", tags=["accounts"])

_service = TransactionService()


@router.get("/balance")
async def get_balance(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    include_pending: bool = Query(True, description="Include pending transactions in total"),
) -> ApiResponse:
    account = await _service.get_account_for_employee(db, str(current_employee.id))
    summary = await _service.get_account_balance(db, account.id, include_pending)
    return success_response(BalanceResponse.from_domain(summary).model_dump(), request)


@router.get("/transactions")
async def get_transactions(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200, description="Items per page"),
    offset: int = Query(0, ge=0),
    status: TransactionStatus | None = Query(None),
    transaction_type: TransactionType | None = Query(None),
) -> ApiResponse:
    account = await _service.get_account_for_employee(db, str(current_employee.id))
    history = await _service.get_transaction_history(
        db, account.id, limit, offset, status, transaction_type
    )
    return success_response(TransactionHistoryResponse.from_domain(history).model_dump(), request)


@router.get("/pending")
async def get_pending(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    account = await _service.get_account_for_employee(db, str(current_employee.id))
    views = await _service.get_pending_transactions(db, account.id)
    items = [PendingTransactionItem.from_view(v).model_dump() for v in views]
    return success_response(items, request)
