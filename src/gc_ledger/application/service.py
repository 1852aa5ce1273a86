"""TransactionService — the only sanctioned path to create and finalize balance-affecting records.

Every write method takes the request session ``db`` and an optional ``tx``:
  - tx is None: the service opens its own unit of work on ``db`` and commits
    (or rolls back and re-raises).
  - tx given: the work joins the caller's open unit of work and the caller
    commits. This is how a wellness approval posts its reward atomically with
    the submission update without the ledger knowing about submissions.

Read methods never cache: every balance read goes to the database.
This module performs no logging and sends no notifications.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import NoReturn, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.gc_common.amounts import positive_amount
from src.gc_common.database import unit_of_work
from src.gc_common.enums import TransactionStatus, TransactionType
from src.gc_common.errors import (
    AccountNotFoundError,
    InvalidPaginationError,
    InvalidStatusError,
    InvalidTransactionStateError,
    InvalidTransactionTypeError,
    SelfTransferError,
    TransactionNotFoundError,
    TransferPairMismatchError,
)
from src.gc_common.ids import optional_uuid, require_uuid
from src.gc_ledger.domain.models import (
    Account,
    BalanceSummary,
    LedgerTransaction,
    PartyTransaction,
    PendingTransactionView,
    TransferPair,
)
from src.gc_ledger.domain.repository import LedgerRepositoryProtocol
from src.gc_ledger.domain.rules import pending_debits, pending_total, signed_amount
from src.gc_ledger.infrastructure.persistence import LedgerRepository

T = TypeVar("T")


@dataclass
class TransactionHistory:
    transactions: list[LedgerTransaction]
    total: int
    limit: int
    offset: int


@dataclass
class PartyHistory:
    entries: list[PartyTransaction]
    total: int
    limit: int
    offset: int


def _transaction_type(value: object) -> str:
    try:
        return TransactionType(value).value
    except ValueError:
        raise InvalidTransactionTypeError(value) from None


def _optional_status(value: object | None) -> str | None:
    if value is None:
        return None
    try:
        return TransactionStatus(value).value
    except ValueError:
        raise InvalidStatusError("status", value) from None


def _page(limit: int | None, offset: int) -> tuple[int, int]:
    if limit is None:
        limit = settings.HISTORY_DEFAULT_LIMIT
    if limit < 1 or offset < 0:
        raise InvalidPaginationError()
    return min(limit, settings.HISTORY_MAX_LIMIT), offset


class TransactionService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def _in_scope(
        self,
        db: AsyncSession,
        tx: AsyncSession | None,
        work: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        if tx is not None:
            return await work(tx)
        async with unit_of_work(db) as scoped:
            return await work(scoped)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def open_account(
        self, db: AsyncSession, employee_id: str, *, tx: AsyncSession | None = None
    ) -> Account:
        """Get-or-create the employee's account (balance starts at 0)."""
        employee_id = require_uuid(employee_id, "employee_id")
        return await self._in_scope(
            db, tx, lambda s: self._repo.create_account(s, employee_id)
        )

    async def get_account_for_employee(self, db: AsyncSession, employee_id: str) -> Account:
        employee_id = require_uuid(employee_id, "employee_id")
        account = await self._repo.get_account_by_employee(db, employee_id)
        if account is None:
            raise AccountNotFoundError(f"employee {employee_id}")
        return account

    async def lock_accounts(
        self, tx: AsyncSession, account_ids: list[str]
    ) -> dict[str, Account]:
        """Lock account rows (SELECT ... FOR UPDATE) in ascending id order.

        Every flow that touches more than one account locks them here before
        reading or writing anything else, so two transactions over the same
        pair of accounts always queue in the same order.
        """
        ids = sorted({require_uuid(a, "account_id") for a in account_ids})
        locked: dict[str, Account] = {}
        for account_id in ids:
            account = await self._repo.get_account(tx, account_id, for_update=True)
            if account is None:
                raise AccountNotFoundError(account_id)
            locked[account_id] = account
        return locked

    async def get_spendable_balance(
        self, tx: AsyncSession, account_id: str
    ) -> Decimal:
        """Posted balance minus pending debits, with the account row locked.

        Must run inside the caller's unit of work: the FOR UPDATE lock is held
        until that unit commits, so concurrent spenders on the same account
        queue behind it.
        """
        account_id = require_uuid(account_id, "account_id")
        account = await self._repo.get_account(tx, account_id, for_update=True)
        if account is None:
            raise AccountNotFoundError(account_id)
        pending = await self._repo.list_pending(tx, account_id)
        return account.balance - pending_debits(pending)

    async def get_period_total(
        self,
        db: AsyncSession,
        transaction_type: TransactionType | str,
        since: datetime,
        until: datetime,
        *,
        account_id: str | None = None,
        source_employee_id: str | None = None,
    ) -> Decimal:
        """Amount of one transaction type created in [since, until), rejected ones excluded."""
        return await self._repo.sum_amounts(
            db,
            _transaction_type(transaction_type),
            since,
            until,
            optional_uuid(account_id, "account_id"),
            optional_uuid(source_employee_id, "source_employee_id"),
        )

    # ------------------------------------------------------------------
    # Lifecycle: create -> post | reject
    # ------------------------------------------------------------------

    async def create_pending_transaction(
        self,
        db: AsyncSession,
        account_id: str,
        transaction_type: TransactionType | str,
        amount: object,
        description: str | None = None,
        source_employee_id: str | None = None,
        target_employee_id: str | None = None,
        wellness_submission_id: str | None = None,
        *,
        tx: AsyncSession | None = None,
    ) -> LedgerTransaction:
        """Insert a pending transaction. No balance change happens here."""
        account_id = require_uuid(account_id, "account_id")
        type_value = _transaction_type(transaction_type)
        value = positive_amount(amount)
        source_employee_id = optional_uuid(source_employee_id, "source_employee_id")
        target_employee_id = optional_uuid(target_employee_id, "target_employee_id")
        wellness_submission_id = optional_uuid(wellness_submission_id, "wellness_submission_id")

        async def work(s: AsyncSession) -> LedgerTransaction:
            account = await self._repo.get_account(s, account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            return await self._repo.insert_transaction(
                s,
                account_id,
                type_value,
                value,
                description,
                source_employee_id,
                target_employee_id,
                wellness_submission_id,
            )

        return await self._in_scope(db, tx, work)

    async def post_transaction(
        self, db: AsyncSession, transaction_id: str, *, tx: AsyncSession | None = None
    ) -> LedgerTransaction:
        """Finalize a pending transaction and apply its signed amount exactly once."""
        transaction_id = require_uuid(transaction_id, "transaction_id")
        return await self._in_scope(db, tx, lambda s: self._post(s, transaction_id))

    async def reject_transaction(
        self,
        db: AsyncSession,
        transaction_id: str,
        reason: str | None = None,
        *,
        tx: AsyncSession | None = None,
    ) -> LedgerTransaction:
        """Move a pending transaction to rejected. Never touches the balance."""
        transaction_id = require_uuid(transaction_id, "transaction_id")

        async def work(s: AsyncSession) -> LedgerTransaction:
            rejected = await self._repo.mark_rejected(s, transaction_id, reason)
            if rejected is None:
                await self._raise_not_pending(s, transaction_id)
            return rejected

        return await self._in_scope(db, tx, work)

    async def _post(self, s: AsyncSession, transaction_id: str) -> LedgerTransaction:
        # The conditional status flip is the idempotency guard: of two racing
        # posts only one gets a row back.
        posted = await self._repo.mark_posted(s, transaction_id)
        if posted is None:
            await self._raise_not_pending(s, transaction_id)
        delta = signed_amount(posted.transaction_type, posted.amount)
        account = await self._repo.apply_balance_change(s, posted.account_id, delta)
        if account is None:
            raise AccountNotFoundError(posted.account_id)
        return posted

    async def _raise_not_pending(self, s: AsyncSession, transaction_id: str) -> NoReturn:
        existing = await self._repo.get_transaction(s, transaction_id)
        if existing is None:
            raise TransactionNotFoundError(transaction_id)
        raise InvalidTransactionStateError(transaction_id, existing.status)

    # ------------------------------------------------------------------
    # Paired peer transfers
    # ------------------------------------------------------------------

    async def create_transfer_pair(
        self,
        db: AsyncSession,
        sender_account_id: str,
        recipient_account_id: str,
        sender_employee_id: str,
        recipient_employee_id: str,
        amount: object,
        description: str | None = None,
        *,
        tx: AsyncSession | None = None,
    ) -> TransferPair:
        """Create both pending legs of a transfer in one unit of work."""
        sender_account_id = require_uuid(sender_account_id, "sender_account_id")
        recipient_account_id = require_uuid(recipient_account_id, "recipient_account_id")
        sender_employee_id = require_uuid(sender_employee_id, "sender_employee_id")
        recipient_employee_id = require_uuid(recipient_employee_id, "recipient_employee_id")
        if sender_account_id == recipient_account_id:
            raise SelfTransferError()
        value = positive_amount(amount)

        async def work(s: AsyncSession) -> TransferPair:
            for account_id in (sender_account_id, recipient_account_id):
                if await self._repo.get_account(s, account_id) is None:
                    raise AccountNotFoundError(account_id)
            sent = await self._repo.insert_transaction(
                s,
                sender_account_id,
                TransactionType.PEER_TRANSFER_SENT.value,
                value,
                description,
                sender_employee_id,
                recipient_employee_id,
                None,
            )
            received = await self._repo.insert_transaction(
                s,
                recipient_account_id,
                TransactionType.PEER_TRANSFER_RECEIVED.value,
                value,
                description,
                sender_employee_id,
                recipient_employee_id,
                None,
            )
            return TransferPair(sent=sent, received=received)

        return await self._in_scope(db, tx, work)

    async def post_transfer_pair(
        self,
        db: AsyncSession,
        sent_id: str,
        received_id: str,
        *,
        tx: AsyncSession | None = None,
    ) -> TransferPair:
        """Post both legs together; if either fails neither is committed."""
        sent_id = require_uuid(sent_id, "sent_id")
        received_id = require_uuid(received_id, "received_id")

        async def work(s: AsyncSession) -> TransferPair:
            sent = await self._repo.get_transaction(s, sent_id)
            if sent is None:
                raise TransactionNotFoundError(sent_id)
            received = await self._repo.get_transaction(s, received_id)
            if received is None:
                raise TransactionNotFoundError(received_id)
            return await self._post_pair(s, sent, received)

        return await self._in_scope(db, tx, work)

    async def complete_transfer(
        self,
        db: AsyncSession,
        sent_id: str,
        recipient_account_id: str,
        recipient_employee_id: str,
        *,
        tx: AsyncSession | None = None,
    ) -> TransferPair:
        """Settle a sent leg that was created before its recipient had an account.

        The pending sent leg gets its recipient, the matching received leg is
        created, and both are posted together.
        """
        sent_id = require_uuid(sent_id, "sent_id")
        recipient_account_id = require_uuid(recipient_account_id, "recipient_account_id")
        recipient_employee_id = require_uuid(recipient_employee_id, "recipient_employee_id")

        async def work(s: AsyncSession) -> TransferPair:
            if await self._repo.get_account(s, recipient_account_id) is None:
                raise AccountNotFoundError(recipient_account_id)
            sent = await self._repo.assign_transfer_target(s, sent_id, recipient_employee_id)
            if sent is None:
                existing = await self._repo.get_transaction(s, sent_id)
                if existing is None:
                    raise TransactionNotFoundError(sent_id)
                if existing.status != TransactionStatus.PENDING.value:
                    raise InvalidTransactionStateError(sent_id, existing.status)
                raise TransferPairMismatchError(f"{sent_id} is not an unclaimed sent transfer")
            if sent.account_id == recipient_account_id:
                raise SelfTransferError()
            received = await self._repo.insert_transaction(
                s,
                recipient_account_id,
                TransactionType.PEER_TRANSFER_RECEIVED.value,
                sent.amount,
                sent.description,
                sent.source_employee_id,
                recipient_employee_id,
                None,
            )
            return await self._post_pair(s, sent, received)

        return await self._in_scope(db, tx, work)

    async def _post_pair(
        self, s: AsyncSession, sent: LedgerTransaction, received: LedgerTransaction
    ) -> TransferPair:
        _check_pair(sent, received)
        # Same ascending account order as lock_accounts
        legs = sorted([sent, received], key=lambda t: t.account_id)
        posted = {t.id: await self._post(s, t.id) for t in legs}
        return TransferPair(sent=posted[sent.id], received=posted[received.id])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_account_balance(
        self, db: AsyncSession, account_id: str, include_pending: bool = False
    ) -> BalanceSummary:
        account_id = require_uuid(account_id, "account_id")
        account = await self._repo.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        pending = Decimal("0")
        if include_pending:
            pending = pending_total(await self._repo.list_pending(db, account_id))
        return BalanceSummary(
            posted=account.balance,
            pending=pending,
            total=account.balance + pending,
        )

    async def get_transaction_history(
        self,
        db: AsyncSession,
        account_id: str,
        limit: int | None = None,
        offset: int = 0,
        status: TransactionStatus | str | None = None,
        transaction_type: TransactionType | str | None = None,
    ) -> TransactionHistory:
        account_id = require_uuid(account_id, "account_id")
        limit, offset = _page(limit, offset)
        status_value = _optional_status(status)
        type_value = _transaction_type(transaction_type) if transaction_type is not None else None

        transactions = await self._repo.list_transactions(
            db, account_id, limit, offset, status_value, type_value
        )
        total = await self._repo.count_transactions(db, account_id, status_value, type_value)
        return TransactionHistory(
            transactions=transactions, total=total, limit=limit, offset=offset
        )

    async def get_pending_transactions(
        self, db: AsyncSession, account_id: str
    ) -> list[PendingTransactionView]:
        account_id = require_uuid(account_id, "account_id")
        return await self._repo.list_pending_with_context(db, account_id)

    async def get_award_history(
        self,
        db: AsyncSession,
        manager_employee_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> PartyHistory:
        """Awards issued by one manager, newest first, with each recipient."""
        manager_employee_id = require_uuid(manager_employee_id, "manager_employee_id")
        limit, offset = _page(limit, offset)
        entries = await self._repo.list_awards_issued(db, manager_employee_id, limit, offset)
        total = await self._repo.count_awards_issued(db, manager_employee_id)
        return PartyHistory(entries=entries, total=total, limit=limit, offset=offset)

    async def get_transfer_history(
        self,
        db: AsyncSession,
        account_id: str,
        limit: int | None = None,
        offset: int = 0,
    ) -> PartyHistory:
        """Sent and received transfer legs on one account, newest first."""
        account_id = require_uuid(account_id, "account_id")
        limit, offset = _page(limit, offset)
        entries = await self._repo.list_transfers(db, account_id, limit, offset)
        total = await self._repo.count_transfers(db, account_id)
        return PartyHistory(entries=entries, total=total, limit=limit, offset=offset)


def _check_pair(sent: LedgerTransaction, received: LedgerTransaction) -> None:
    if sent.transaction_type != TransactionType.PEER_TRANSFER_SENT.value:
        raise TransferPairMismatchError(f"{sent.id} is {sent.transaction_type}")
    if received.transaction_type != TransactionType.PEER_TRANSFER_RECEIVED.value:
        raise TransferPairMismatchError(f"{received.id} is {received.transaction_type}")
    if sent.amount != received.amount:
        raise TransferPairMismatchError("amounts differ")
    if (sent.source_employee_id, sent.target_employee_id) != (
        received.source_employee_id,
        received.target_employee_id,
    ):
        raise TransferPairMismatchError("parties differ")
