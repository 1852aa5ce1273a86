"""Employee API router: provisioning and self lookup.

Provisioning also settles any coins colleagues sent to the new email before
the employee existed.

Login and token issuance belong to the identity provider; this service only
verifies the Bearer tokens it mints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.database import get_db_session
from src.gc_common.response import ApiResponse, success_response
from src.gc_gateway.auth.dependencies import get_current_employee, require_admin
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_gateway.employee.schemas import EmployeeResponse, ProvisionEmployeeRequest
from src.gc_gateway.employee.service import EmployeeService
from src.gc_ledger.application.service import TransactionService
from src.gc_rewards.application.transfer_service import TransferService

router = APIRouter(prefix="/employees", tags=["employees"])
_service = EmployeeService()
_ledger = TransactionService()
_transfers = TransferService()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Provision an employee and open their account",
)
async def provision_employee(
    request: Request,
    body: ProvisionEmployeeRequest,
    admin: Annotated[EmployeeModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    employee, account = await _service.provision(
        db, body.email, body.name, body.is_manager, body.is_admin
    )
    if await _transfers.claim_pending(db, employee):
        account = await _ledger.get_account_for_employee(db, str(employee.id))
    resp = success_response(EmployeeResponse.from_models(employee, account).model_dump(), request)
    resp.message = "Employee provisioned"
    return resp


@router.get("/me", response_model=ApiResponse, summary="Current employee and account")
async def get_me(
    request: Request,
    current_employee: Annotated[EmployeeModel, Depends(get_current_employee)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    account = await _ledger.get_account_for_employee(db, str(current_employee.id))
    data = EmployeeResponse.from_models(current_employee, account)
    return success_response(data.model_dump(), request)
