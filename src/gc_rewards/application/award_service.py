"""Manager awards: create a manager_award and post it immediately.

There is no approval step, so creation and posting share one unit of work:
the recipient never sees a pending award that might later vanish.

Each manager may award up to ``MANAGER_MONTHLY_ALLOTMENT`` per calendar month.
The manager's and recipient's account rows are locked (ascending id order)
before the allotment is read, so concurrent awards by one manager count
sequentially.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.gc_common.amounts import positive_amount
from src.gc_common.database import unit_of_work
from src.gc_common.enums import TransactionType
from src.gc_common.errors import AllotmentExceededError, SelfAwardError
from src.gc_common.notifier import LogNotifier, Notifier
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_gateway.employee.service import EmployeeService
from src.gc_ledger.application.service import PartyHistory, TransactionService
from src.gc_ledger.domain.models import LedgerTransaction
from src.gc_rewards.domain.limits import PeriodUsage, month_window

logger = logging.getLogger("gc.rewards")


class AwardService:
    def __init__(
        self,
        ledger: TransactionService | None = None,
        employees: EmployeeService | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._ledger = ledger or TransactionService()
        self._employees = employees or EmployeeService(self._ledger)
        self._notifier: Notifier = notifier or LogNotifier()

    async def award(
        self,
        db: AsyncSession,
        manager: EmployeeModel,
        recipient_employee_id: str,
        amount: object,
        description: str | None = None,
    ) -> LedgerTransaction:
        value = positive_amount(amount)
        recipient = await self._employees.get_by_id(db, recipient_employee_id)
        if recipient.id == manager.id:
            raise SelfAwardError()
        manager_account = await self._ledger.get_account_for_employee(db, str(manager.id))
        account = await self._ledger.get_account_for_employee(db, str(recipient.id))

        async with unit_of_work(db) as tx:
            await self._ledger.lock_accounts(tx, [manager_account.id, account.id])
            allotment = await self._allotment(tx, manager)
            if not allotment.allows(value):
                raise AllotmentExceededError(allotment.max_amount, allotment.used_amount)
            pending = await self._ledger.create_pending_transaction(
                tx,
                account.id,
                TransactionType.MANAGER_AWARD,
                value,
                description,
                source_employee_id=str(manager.id),
                target_employee_id=str(recipient.id),
                tx=tx,
            )
            posted = await self._ledger.post_transaction(tx, pending.id, tx=tx)

        logger.info(
            "Award %s: %s -> %s amount=%s", posted.id, manager.id, recipient.id, value
        )
        await self._notifier.award_received(
            recipient.email, recipient.name, value, manager.name, description
        )
        return posted

    async def get_allotment(self, db: AsyncSession, manager: EmployeeModel) -> PeriodUsage:
        return await self._allotment(db, manager)

    async def history(
        self,
        db: AsyncSession,
        manager: EmployeeModel,
        limit: int | None = None,
        offset: int = 0,
    ) -> PartyHistory:
        return await self._ledger.get_award_history(db, str(manager.id), limit, offset)

    async def _allotment(self, db: AsyncSession, manager: EmployeeModel) -> PeriodUsage:
        start, end = month_window()
        used = await self._ledger.get_period_total(
            db, TransactionType.MANAGER_AWARD, start, end, source_employee_id=str(manager.id)
        )
        return PeriodUsage(settings.MANAGER_MONTHLY_ALLOTMENT, used, start, end)
