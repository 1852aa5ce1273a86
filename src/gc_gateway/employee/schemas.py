"""Pydantic request/response schemas for employee provisioning.

All responses are wrapped in ApiResponse at the router layer.
"""

from pydantic import BaseModel, EmailStr, Field

from src.gc_common.amounts import amount_to_number
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_ledger.domain.models import Account


class ProvisionEmployeeRequest(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    is_manager: bool = False
    is_admin: bool = False


class EmployeeResponse(BaseModel):
    employee_id: str
    email: str
    name: str
    is_manager: bool
    is_admin: bool
    account_id: str
    balance: float

    @classmethod
    def from_models(cls, employee: EmployeeModel, account: Account) -> "EmployeeResponse":
        return cls(
            employee_id=str(employee.id),
            email=employee.email,
            name=employee.name,
            is_manager=employee.is_manager,
            is_admin=employee.is_admin,
            account_id=account.id,
            balance=amount_to_number(account.balance),
        )
