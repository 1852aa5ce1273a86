"""Peer transfers: one atomic operation producing a posted sent/received pair.

Both account rows are locked in ascending id order (``lock_accounts``) before
funds are checked, so two opposite transfers between the same people queue
instead of deadlocking, and two concurrent transfers from one sender cannot
both pass the funds check.

Coins sent to an email with no employee yet become a pending transfer: the
sent leg stays pending (reserving the amount) until the recipient is
provisioned and claims it, or the sender cancels it.

Every outgoing transfer also counts against the sender's monthly limit.
"""

import logging
from dataclasses import replace
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.gc_common.amounts import positive_amount
from src.gc_common.database import unit_of_work
from src.gc_common.enums import PendingTransferStatus, TransactionType
from src.gc_common.errors import (
    EmployeeNotFoundError,
    InsufficientBalanceError,
    PendingTransferNotFoundError,
    PendingTransferNotPendingError,
    SelfTransferError,
    TransferLimitExceededError,
)
from src.gc_common.ids import require_uuid
from src.gc_common.notifier import LogNotifier, Notifier
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_gateway.employee.service import EmployeeService
from src.gc_ledger.application.service import PartyHistory, TransactionService
from src.gc_ledger.domain.models import TransferPair
from src.gc_rewards.domain.limits import PeriodUsage, month_window
from src.gc_rewards.domain.models import PendingTransfer
from src.gc_rewards.domain.repository import PendingTransferRepositoryProtocol
from src.gc_rewards.infrastructure.persistence import PendingTransferRepository

logger = logging.getLogger("gc.rewards")

CANCEL_REASON = "Transfer cancelled by sender"


class TransferService:
    def __init__(
        self,
        ledger: TransactionService | None = None,
        employees: EmployeeService | None = None,
        notifier: Notifier | None = None,
        repo: PendingTransferRepositoryProtocol | None = None,
    ) -> None:
        self._ledger = ledger or TransactionService()
        self._employees = employees or EmployeeService(self._ledger)
        self._notifier: Notifier = notifier or LogNotifier()
        self._repo: PendingTransferRepositoryProtocol = repo or PendingTransferRepository()

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(
        self,
        db: AsyncSession,
        sender: EmployeeModel,
        recipient_email: str,
        amount: object,
        message: str | None = None,
    ) -> TransferPair | PendingTransfer:
        """Transfer coins by email.

        Returns the posted pair when the recipient exists, otherwise the
        pending transfer waiting for them to be provisioned.
        """
        value = positive_amount(amount)
        email = recipient_email.strip().lower()
        if email == sender.email.strip().lower():
            raise SelfTransferError()
        recipient = await self._employees.find_by_email(db, email)
        if recipient is not None and not recipient.is_active:
            raise EmployeeNotFoundError(email)
        if recipient is not None and recipient.id == sender.id:
            raise SelfTransferError()
        sender_account = await self._ledger.get_account_for_employee(db, str(sender.id))
        if recipient is None:
            return await self._send_pending(db, sender, sender_account.id, email, value, message)
        recipient_account = await self._ledger.get_account_for_employee(db, str(recipient.id))

        async with unit_of_work(db) as tx:
            await self._ledger.lock_accounts(tx, [sender_account.id, recipient_account.id])
            await self._check_outflow(tx, sender_account.id, value)
            pair = await self._ledger.create_transfer_pair(
                tx,
                sender_account.id,
                recipient_account.id,
                str(sender.id),
                str(recipient.id),
                value,
                message,
                tx=tx,
            )
            pair = await self._ledger.post_transfer_pair(
                tx, pair.sent.id, pair.received.id, tx=tx
            )

        logger.info(
            "Transfer %s/%s: %s -> %s amount=%s",
            pair.sent.id, pair.received.id, sender.id, recipient.id, value,
        )
        await self._notifier.transfer_sent(sender.email, sender.name, value, recipient.name)
        await self._notifier.transfer_received(
            recipient.email, recipient.name, value, sender.name, message
        )
        return pair

    async def _send_pending(
        self,
        db: AsyncSession,
        sender: EmployeeModel,
        account_id: str,
        email: str,
        value: Decimal,
        message: str | None,
    ) -> PendingTransfer:
        async with unit_of_work(db) as tx:
            await self._ledger.lock_accounts(tx, [account_id])
            await self._check_outflow(tx, account_id, value)
            sent = await self._ledger.create_pending_transaction(
                tx,
                account_id,
                TransactionType.PEER_TRANSFER_SENT,
                value,
                message,
                source_employee_id=str(sender.id),
                tx=tx,
            )
            transfer = await self._repo.insert(
                tx, str(sender.id), email, sent.amount, message, sent.id
            )

        transfer.sender_account_id = account_id
        transfer.sender_name = sender.name
        transfer.sender_email = sender.email
        logger.info(
            "Pending transfer %s: %s -> %s amount=%s", transfer.id, sender.id, email, sent.amount
        )
        await self._notifier.transfer_sent(sender.email, sender.name, sent.amount, email)
        return transfer

    async def _check_outflow(self, tx: AsyncSession, account_id: str, value: Decimal) -> None:
        spendable = await self._ledger.get_spendable_balance(tx, account_id)
        if spendable < value:
            raise InsufficientBalanceError(value, spendable)
        usage = await self._usage(tx, account_id)
        if not usage.allows(value):
            raise TransferLimitExceededError(usage.max_amount, usage.used_amount)

    async def _usage(self, db: AsyncSession, account_id: str) -> PeriodUsage:
        start, end = month_window()
        used = await self._ledger.get_period_total(
            db, TransactionType.PEER_TRANSFER_SENT, start, end, account_id=account_id
        )
        return PeriodUsage(settings.TRANSFER_MONTHLY_LIMIT, used, start, end)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_limits(self, db: AsyncSession, employee: EmployeeModel) -> PeriodUsage:
        account = await self._ledger.get_account_for_employee(db, str(employee.id))
        return await self._usage(db, account.id)

    async def history(
        self,
        db: AsyncSession,
        employee: EmployeeModel,
        limit: int | None = None,
        offset: int = 0,
    ) -> PartyHistory:
        account = await self._ledger.get_account_for_employee(db, str(employee.id))
        return await self._ledger.get_transfer_history(db, account.id, limit, offset)

    async def list_pending(
        self, db: AsyncSession, sender: EmployeeModel
    ) -> list[PendingTransfer]:
        return await self._repo.list_pending_by_sender(db, str(sender.id))

    # ------------------------------------------------------------------
    # Settling pending transfers
    # ------------------------------------------------------------------

    async def cancel(
        self, db: AsyncSession, sender: EmployeeModel, transfer_id: str
    ) -> PendingTransfer:
        """Cancel an unclaimed transfer; its reserved sent leg is rejected."""
        transfer_id = require_uuid(transfer_id, "transfer_id")
        async with unit_of_work(db) as tx:
            transfer = await self._repo.get(tx, transfer_id, for_update=True)
            if transfer is None or transfer.sender_employee_id != str(sender.id):
                raise PendingTransferNotFoundError(transfer_id)
            if transfer.status != PendingTransferStatus.PENDING:
                raise PendingTransferNotPendingError(transfer_id)
            resolved_at = await self._repo.mark_resolved(
                tx, transfer_id, PendingTransferStatus.CANCELLED.value
            )
            if resolved_at is None:
                raise PendingTransferNotPendingError(transfer_id)
            await self._ledger.reject_transaction(
                tx, transfer.transaction_id, CANCEL_REASON, tx=tx
            )

        logger.info("Pending transfer %s cancelled by %s", transfer_id, sender.id)
        return replace(
            transfer, status=PendingTransferStatus.CANCELLED.value, resolved_at=resolved_at
        )

    async def claim_pending(
        self, db: AsyncSession, employee: EmployeeModel
    ) -> list[TransferPair]:
        """Settle every pending transfer addressed to a newly provisioned employee."""
        email = employee.email.strip().lower()
        claimed: list[tuple[PendingTransfer, TransferPair]] = []

        async with unit_of_work(db) as tx:
            transfers = await self._repo.lock_pending_for_email(tx, email)
            if transfers:
                account = await self._ledger.get_account_for_employee(tx, str(employee.id))
                await self._ledger.lock_accounts(
                    tx, [account.id, *(t.sender_account_id for t in transfers)]
                )
                for transfer in transfers:
                    pair = await self._ledger.complete_transfer(
                        tx, transfer.transaction_id, account.id, str(employee.id), tx=tx
                    )
                    await self._repo.mark_resolved(
                        tx, transfer.id, PendingTransferStatus.CLAIMED.value
                    )
                    claimed.append((transfer, pair))

        for transfer, pair in claimed:
            logger.info(
                "Pending transfer %s claimed: %s -> %s amount=%s",
                transfer.id, transfer.sender_employee_id, employee.id, transfer.amount,
            )
            await self._notifier.transfer_received(
                employee.email, employee.name, transfer.amount,
                transfer.sender_name, transfer.message,
            )
        return [pair for _, pair in claimed]
