"""Repository Protocol for transfers awaiting an unregistered recipient."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_rewards.domain.models import PendingTransfer


class PendingTransferRepositoryProtocol(Protocol):
    async def insert(
        self,
        db: AsyncSession,
        sender_employee_id: str,
        recipient_email: str,
        amount: Decimal,
        message: str | None,
        transaction_id: str,
    ) -> PendingTransfer: ...

    async def get(
        self, db: AsyncSession, transfer_id: str, for_update: bool = False
    ) -> PendingTransfer | None: ...

    async def list_pending_by_sender(
        self, db: AsyncSession, sender_employee_id: str
    ) -> list[PendingTransfer]: ...

    async def lock_pending_for_email(
        self, db: AsyncSession, recipient_email: str
    ) -> list[PendingTransfer]: ...

    async def mark_resolved(
        self, db: AsyncSession, transfer_id: str, status: str
    ) -> datetime | None: ...
