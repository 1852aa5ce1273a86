"""gc_rewards REST endpoints.

POST /awards                       — manager awards coins to an employee (posted immediately)
GET  /manager/allotment            — manager's monthly award allotment and usage
GET  /manager/history              — awards issued by the manager, newest first
POST /transfers/send               — employee sends coins to a colleague by email
GET  /transfers/limits             — monthly transfer limit and usage
GET  /transfers/history            — sent and received transfers, newest first
GET  /transfers/pending            — unclaimed transfers to people not yet provisioned
POST /transfers/{transfer_id}/cancel — cancel an unclaimed transfer
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.database import get_db_session
from src.gc_common.response import ApiResponse, success_response
from src.gc_gateway.auth.dependencies import get_current_employee, require_manager
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_ledger.application.schemas import PartyHistoryResponse, TransactionItem
from src.gc_ledger.domain.models import TransferPair
from src.gc_rewards.application.award_service import AwardService
from src.gc_rewards.application.schemas import (
    AwardRequest,
    AwardResponse,
    PendingTransferItem,
    PeriodUsageResponse,
    TransferRequest,
    TransferResponse,
)
from src.gc_rewards.application.transfer_service import TransferService

router = APIRouter(tags=["rewards"])

_awards = AwardService()
_transfers = TransferService()


@router.post("/awards")
async def award_coins(
    request: Request,
    body: AwardRequest,
    manager: Annotated[EmployeeModel, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    posted = await _awards.award(
        db, manager, body.recipient_employee_id, body.amount, body.description
    )
    data = AwardResponse(transaction=TransactionItem.from_domain(posted))
    resp = success_response(data.model_dump(), request)
    resp.message = "Award posted"
    return resp


@router.get("/manager/allotment")
async def get_allotment(
    request: Request,
    manager: Annotated[EmployeeModel, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    usage = await _awards.get_allotment(db, manager)
    return success_response(PeriodUsageResponse.from_domain(usage).model_dump(), request)


@router.get("/manager/history")
async def get_award_history(
    request: Request,
    manager: Annotated[EmployeeModel, Depends(require_manager)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200, description="Items per page"),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    history = await _awards.history(db, manager, limit, offset)
    return success_response(PartyHistoryResponse.from_domain(history).model_dump(), request)


@router.post("/transfers/send")
async def send_transfer(
    request: Request,
    body: TransferRequest,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _transfers.send(
        db, current_employee, body.recipient_email, body.amount, body.message
    )
    if isinstance(result, TransferPair):
        resp = success_response(TransferResponse.from_domain(result).model_dump(), request)
        resp.message = "Transfer completed"
    else:
        resp = success_response(TransferResponse.from_pending(result).model_dump(), request)
        resp.message = "Transfer pending until recipient joins"
    return resp


@router.get("/transfers/limits")
async def get_transfer_limits(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    usage = await _transfers.get_limits(db, current_employee)
    return success_response(PeriodUsageResponse.from_domain(usage).model_dump(), request)


@router.get("/transfers/history")
async def get_transfer_history(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(50, ge=1, le=200, description="Items per page"),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    history = await _transfers.history(db, current_employee, limit, offset)
    return success_response(PartyHistoryResponse.from_domain(history).model_dump(), request)


@router.get("/transfers/pending")
async def list_pending_transfers(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    transfers = await _transfers.list_pending(db, current_employee)
    data = [PendingTransferItem.from_domain(t).model_dump() for t in transfers]
    return success_response(data, request)


@router.post("/transfers/{transfer_id}/cancel")
async def cancel_transfer(
    request: Request,
    transfer_id: str,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    transfer = await _transfers.cancel(db, current_employee, transfer_id)
    resp = success_response(PendingTransferItem.from_domain(transfer).model_dump(), request)
    resp.message = "Transfer cancelled"
    return resp
