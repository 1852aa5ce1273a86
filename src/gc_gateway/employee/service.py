"""Employee directory service: provisioning and lookups.

Provisioning inserts the employee row and opens their ledger account in one
unit of work, so an employee never exists without an account.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.database import unit_of_work
from src.gc_common.errors import EmailExistsError, EmployeeNotFoundError
from src.gc_common.ids import require_uuid
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_ledger.application.service import TransactionService
from src.gc_ledger.domain.models import Account

logger = logging.getLogger("gc.employees")


class EmployeeService:
    """Stateless service — instantiate once, reuse across requests."""

    def __init__(self, ledger: TransactionService | None = None) -> None:
        self._ledger = ledger or TransactionService()

    async def provision(
        self,
        db: AsyncSession,
        email: str,
        name: str,
        is_manager: bool = False,
        is_admin: bool = False,
    ) -> tuple[EmployeeModel, Account]:
        """Create an employee and their zero-balance account atomically."""
        email = email.strip().lower()
        async with unit_of_work(db) as tx:
            result = await tx.execute(select(EmployeeModel).where(EmployeeModel.email == email))
            if result.scalar_one_or_none() is not None:
                raise EmailExistsError()

            employee = EmployeeModel(
                email=email,
                name=name,
                is_manager=is_manager,
                is_admin=is_admin,
                is_active=True,
            )
            tx.add(employee)
            await tx.flush()  # Get employee.id without committing

            account = await self._ledger.open_account(tx, str(employee.id), tx=tx)

        logger.info("Provisioned employee %s (%s)", employee.id, email)
        return employee, account

    async def get_by_id(self, db: AsyncSession, employee_id: str) -> EmployeeModel:
        key = uuid.UUID(require_uuid(employee_id, "employee_id"))
        result = await db.execute(select(EmployeeModel).where(EmployeeModel.id == key))
        employee = result.scalar_one_or_none()
        if employee is None or not employee.is_active:
            raise EmployeeNotFoundError(str(key))
        return employee

    async def find_by_email(self, db: AsyncSession, email: str) -> EmployeeModel | None:
        """Exact lookup on the normalized email, active or not."""
        result = await db.execute(
            select(EmployeeModel).where(EmployeeModel.email == email.strip().lower())
        )
        return result.scalar_one_or_none()
