"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock or an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_ledger.domain.models import (
    Account,
    LedgerTransaction,
    PartyTransaction,
    PendingTransactionView,
)


class LedgerRepositoryProtocol(Protocol):
    async def get_account(
        self, db: AsyncSession, account_id: str, for_update: bool = False
    ) -> Account | None: ...

    async def get_account_by_employee(
        self, db: AsyncSession, employee_id: str
    ) -> Account | None: ...

    async def create_account(self, db: AsyncSession, employee_id: str) -> Account: ...

    async def apply_balance_change(
        self, db: AsyncSession, account_id: str, delta: Decimal
    ) -> Account | None: ...

    async def insert_transaction(
        self,
        db: AsyncSession,
        account_id: str,
        transaction_type: str,
        amount: Decimal,
        description: str | None,
        source_employee_id: str | None,
        target_employee_id: str | None,
        wellness_submission_id: str | None,
    ) -> LedgerTransaction: ...

    async def get_transaction(
        self, db: AsyncSession, transaction_id: str
    ) -> LedgerTransaction | None: ...

    async def mark_posted(
        self, db: AsyncSession, transaction_id: str
    ) -> LedgerTransaction | None: ...

    async def mark_rejected(
        self, db: AsyncSession, transaction_id: str, reason: str | None
    ) -> LedgerTransaction | None: ...

    async def list_pending(
        self, db: AsyncSession, account_id: str
    ) -> list[LedgerTransaction]: ...

    async def list_transactions(
        self,
        db: AsyncSession,
        account_id: str,
        limit: int,
        offset: int,
        status: str | None,
        transaction_type: str | None,
    ) -> list[LedgerTransaction]: ...

    async def count_transactions(
        self,
        db: AsyncSession,
        account_id: str,
        status: str | None,
        transaction_type: str | None,
    ) -> int: ...

    async def list_pending_with_context(
        self, db: AsyncSession, account_id: str
    ) -> list[PendingTransactionView]: ...

    async def sum_amounts(
        self,
        db: AsyncSession,
        transaction_type: str,
        since: datetime,
        until: datetime,
        account_id: str | None = None,
        source_employee_id: str | None = None,
    ) -> Decimal: ...

    async def assign_transfer_target(
        self, db: AsyncSession, transaction_id: str, target_employee_id: str
    ) -> LedgerTransaction | None: ...

    async def list_awards_issued(
        self, db: AsyncSession, manager_id: str, limit: int, offset: int
    ) -> list[PartyTransaction]: ...

    async def count_awards_issued(self, db: AsyncSession, manager_id: str) -> int: ...

    async def list_transfers(
        self, db: AsyncSession, account_id: str, limit: int, offset: int
    ) -> list[PartyTransaction]: ...

    async def count_transfers(self, db: AsyncSession, account_id: str) -> int: ...
