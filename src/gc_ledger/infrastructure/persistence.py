"""LedgerRepository — concrete implementation of LedgerRepositoryProtocol.

Balance changes are a single atomic ``UPDATE accounts SET balance = balance + :delta``
so concurrent posts on one account serialize on the row lock and never lose an
update. Status transitions are conditional UPDATEs (``WHERE status = 'pending'``):
a result of 0 rows means the transaction is unknown or already terminal.

Transaction ownership: the CALLER (application service) commits or rolls back.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.errors import InternalError
from src.gc_ledger.domain.models import (
    Account,
    EmployeeRef,
    LedgerTransaction,
    PartyTransaction,
    PendingTransactionView,
    SubmissionRef,
)

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "id, employee_id, balance, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :account_id
""")

_GET_ACCOUNT_FOR_UPDATE_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :account_id
    FOR UPDATE
""")

_GET_ACCOUNT_BY_EMPLOYEE_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE employee_id = :employee_id
""")

_CREATE_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (employee_id, balance)
    VALUES (:employee_id, 0)
    ON CONFLICT (employee_id) DO NOTHING
    RETURNING {_ACCOUNT_COLUMNS}
""")

_APPLY_BALANCE_CHANGE_SQL = text(f"""
    UPDATE accounts
    SET balance = balance + :delta,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: ledger_transactions
# ---------------------------------------------------------------------------

_TXN_COLUMNS = """id, account_id, transaction_type, amount, status, description,
              source_employee_id, target_employee_id, wellness_submission_id,
              rejection_reason, created_at, posted_at, rejected_at"""

_INSERT_TXN_SQL = text(f"""
    INSERT INTO ledger_transactions
        (account_id, transaction_type, amount, status, description,
         source_employee_id, target_employee_id, wellness_submission_id)
    VALUES
        (:account_id, :transaction_type, :amount, 'pending', :description,
         :source_employee_id, :target_employee_id, :wellness_submission_id)
    RETURNING {_TXN_COLUMNS}
""")

_GET_TXN_SQL = text(f"""
    SELECT {_TXN_COLUMNS}
    FROM ledger_transactions
    WHERE id = :transaction_id
""")

_MARK_POSTED_SQL = text(f"""
    UPDATE ledger_transactions
    SET status = 'posted',
        posted_at = NOW()
    WHERE id = :transaction_id AND status = 'pending'
    RETURNING {_TXN_COLUMNS}
""")

_MARK_REJECTED_SQL = text(f"""
    UPDATE ledger_transactions
    SET status = 'rejected',
        rejection_reason = :reason,
        rejected_at = NOW()
    WHERE id = :transaction_id AND status = 'pending'
    RETURNING {_TXN_COLUMNS}
""")

_LIST_PENDING_SQL = text(f"""
    SELECT {_TXN_COLUMNS}
    FROM ledger_transactions
    WHERE account_id = :account_id AND status = 'pending'
    ORDER BY created_at DESC, id DESC
""")

_LIST_TXN_SQL = text(f"""
    SELECT {_TXN_COLUMNS}
    FROM ledger_transactions
    WHERE account_id = :account_id
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:transaction_type AS TEXT) IS NULL
           OR transaction_type = CAST(:transaction_type AS TEXT))
    ORDER BY created_at DESC, id DESC
    LIMIT :limit OFFSET :offset
""")

_COUNT_TXN_SQL = text("""
    SELECT COUNT(*) AS total
    FROM ledger_transactions
    WHERE account_id = :account_id
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:transaction_type AS TEXT) IS NULL
           OR transaction_type = CAST(:transaction_type AS TEXT))
""")

_LIST_PENDING_CONTEXT_SQL = text("""
    SELECT t.id, t.account_id, t.transaction_type, t.amount, t.status, t.description,
           t.source_employee_id, t.target_employee_id, t.wellness_submission_id,
           t.rejection_reason, t.created_at, t.posted_at, t.rejected_at,
           e.name  AS source_name,
           e.email AS source_email,
           s.status AS submission_status,
           s.wellness_task_id,
           w.name AS task_name,
           w.coin_value AS task_coin_value
    FROM ledger_transactions t
    LEFT JOIN employees e ON e.id = t.source_employee_id
    LEFT JOIN wellness_submissions s ON s.id = t.wellness_submission_id
    LEFT JOIN wellness_tasks w ON w.id = s.wellness_task_id
    WHERE t.account_id = :account_id AND t.status = 'pending'
    ORDER BY t.created_at DESC, t.id DESC
""")


_SUM_AMOUNTS_SQL = text("""
    SELECT COALESCE(SUM(amount), 0) AS total
    FROM ledger_transactions
    WHERE transaction_type = :transaction_type
      AND status <> 'rejected'
      AND created_at >= :since AND created_at < :until
      AND (CAST(:account_id AS UUID) IS NULL OR account_id = CAST(:account_id AS UUID))
      AND (CAST(:source_employee_id AS UUID) IS NULL
           OR source_employee_id = CAST(:source_employee_id AS UUID))
""")

_ASSIGN_TRANSFER_TARGET_SQL = text(f"""
    UPDATE ledger_transactions
    SET target_employee_id = :target_employee_id
    WHERE id = :transaction_id
      AND status = 'pending'
      AND transaction_type = 'peer_transfer_sent'
      AND target_employee_id IS NULL
    RETURNING {_TXN_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: transactions with the counterparty employee joined
# ---------------------------------------------------------------------------

_PARTY_SELECT = """
    SELECT t.id, t.account_id, t.transaction_type, t.amount, t.status, t.description,
           t.source_employee_id, t.target_employee_id, t.wellness_submission_id,
           t.rejection_reason, t.created_at, t.posted_at, t.rejected_at,
           e.id    AS party_id,
           e.name  AS party_name,
           e.email AS party_email
    FROM ledger_transactions t
"""

_LIST_AWARDS_ISSUED_SQL = text(_PARTY_SELECT + """
    LEFT JOIN employees e ON e.id = t.target_employee_id
    WHERE t.source_employee_id = :manager_id
      AND t.transaction_type = 'manager_award'
    ORDER BY t.created_at DESC, t.id DESC
    LIMIT :limit OFFSET :offset
""")

_COUNT_AWARDS_ISSUED_SQL = text("""
    SELECT COUNT(*) AS total
    FROM ledger_transactions
    WHERE source_employee_id = :manager_id
      AND transaction_type = 'manager_award'
""")

# Counterparty of a sent leg is its target, of a received leg its source.
_LIST_TRANSFERS_SQL = text(_PARTY_SELECT + """
    LEFT JOIN employees e ON e.id = CASE
        WHEN t.transaction_type = 'peer_transfer_sent' THEN t.target_employee_id
        ELSE t.source_employee_id
    END
    WHERE t.account_id = :account_id
      AND t.transaction_type IN ('peer_transfer_sent', 'peer_transfer_received')
    ORDER BY t.created_at DESC, t.id DESC
    LIMIT :limit OFFSET :offset
""")

_COUNT_TRANSFERS_SQL = text("""
    SELECT COUNT(*) AS total
    FROM ledger_transactions
    WHERE account_id = :account_id
      AND transaction_type IN ('peer_transfer_sent', 'peer_transfer_received')
""")


def _opt_str(value: object) -> str | None:
    return str(value) if value is not None else None


def _row_to_account(row: object) -> Account:
    return Account(
        id=str(row.id),  # type: ignore[attr-defined]
        employee_id=str(row.employee_id),  # type: ignore[attr-defined]
        balance=Decimal(row.balance),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_txn(row: object) -> LedgerTransaction:
    return LedgerTransaction(
        id=str(row.id),  # type: ignore[attr-defined]
        account_id=str(row.account_id),  # type: ignore[attr-defined]
        transaction_type=row.transaction_type,  # type: ignore[attr-defined]
        amount=Decimal(row.amount),  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        source_employee_id=_opt_str(row.source_employee_id),  # type: ignore[attr-defined]
        target_employee_id=_opt_str(row.target_employee_id),  # type: ignore[attr-defined]
        wellness_submission_id=_opt_str(row.wellness_submission_id),  # type: ignore[attr-defined]
        rejection_reason=row.rejection_reason,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        posted_at=row.posted_at,  # type: ignore[attr-defined]
        rejected_at=row.rejected_at,  # type: ignore[attr-defined]
    )


def _row_to_pending_view(row: object) -> PendingTransactionView:
    txn = _row_to_txn(row)
    source = None
    if txn.source_employee_id is not None and row.source_name is not None:  # type: ignore[attr-defined]
        source = EmployeeRef(
            id=txn.source_employee_id,
            name=row.source_name,  # type: ignore[attr-defined]
            email=row.source_email,  # type: ignore[attr-defined]
        )
    submission = None
    if txn.wellness_submission_id is not None and row.task_name is not None:  # type: ignore[attr-defined]
        submission = SubmissionRef(
            id=txn.wellness_submission_id,
            status=row.submission_status,  # type: ignore[attr-defined]
            wellness_task_id=str(row.wellness_task_id),  # type: ignore[attr-defined]
            wellness_task_name=row.task_name,  # type: ignore[attr-defined]
            coin_value=Decimal(row.task_coin_value),  # type: ignore[attr-defined]
        )
    return PendingTransactionView(
        transaction=txn, source_employee=source, wellness_submission=submission
    )


def _row_to_party(row: object) -> PartyTransaction:
    txn = _row_to_txn(row)
    party = None
    if row.party_id is not None:  # type: ignore[attr-defined]
        party = EmployeeRef(
            id=str(row.party_id),  # type: ignore[attr-defined]
            name=row.party_name,  # type: ignore[attr-defined]
            email=row.party_email,  # type: ignore[attr-defined]
        )
    return PartyTransaction(transaction=txn, counterparty=party)


class LedgerRepository:
    """Concrete repository — all mutations atomic at the SQL level."""

    async def get_account(
        self, db: AsyncSession, account_id: str, for_update: bool = False
    ) -> Account | None:
        sql = _GET_ACCOUNT_FOR_UPDATE_SQL if for_update else _GET_ACCOUNT_SQL
        result = await db.execute(sql, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_account_by_employee(
        self, db: AsyncSession, employee_id: str
    ) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_BY_EMPLOYEE_SQL, {"employee_id": employee_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def create_account(self, db: AsyncSession, employee_id: str) -> Account:
        result = await db.execute(_CREATE_ACCOUNT_SQL, {"employee_id": employee_id})
        row = result.fetchone()
        if row is not None:
            return _row_to_account(row)
        # Already provisioned
        existing = await self.get_account_by_employee(db, employee_id)
        if existing is None:
            raise InternalError(f"Account insert for employee {employee_id} returned no rows")
        return existing

    async def apply_balance_change(
        self, db: AsyncSession, account_id: str, delta: Decimal
    ) -> Account | None:
        result = await db.execute(
            _APPLY_BALANCE_CHANGE_SQL, {"account_id": account_id, "delta": delta}
        )
        row = result.fetchone()
        return _row_to_account(row) if row else None

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
    ) -> LedgerTransaction:
        result = await db.execute(
            _INSERT_TXN_SQL,
            {
                "account_id": account_id,
                "transaction_type": transaction_type,
                "amount": amount,
                "description": description,
                "source_employee_id": source_employee_id,
                "target_employee_id": target_employee_id,
                "wellness_submission_id": wellness_submission_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_txn(row)

    async def get_transaction(
        self, db: AsyncSession, transaction_id: str
    ) -> LedgerTransaction | None:
        result = await db.execute(_GET_TXN_SQL, {"transaction_id": transaction_id})
        row = result.fetchone()
        return _row_to_txn(row) if row else None

    async def mark_posted(
        self, db: AsyncSession, transaction_id: str
    ) -> LedgerTransaction | None:
        result = await db.execute(_MARK_POSTED_SQL, {"transaction_id": transaction_id})
        row = result.fetchone()
        return _row_to_txn(row) if row else None

    async def mark_rejected(
        self, db: AsyncSession, transaction_id: str, reason: str | None
    ) -> LedgerTransaction | None:
        result = await db.execute(
            _MARK_REJECTED_SQL, {"transaction_id": transaction_id, "reason": reason}
        )
        row = result.fetchone()
        return _row_to_txn(row) if row else None

    async def list_pending(
        self, db: AsyncSession, account_id: str
    ) -> list[LedgerTransaction]:
        result = await db.execute(_LIST_PENDING_SQL, {"account_id": account_id})
        return [_row_to_txn(row) for row in result.fetchall()]

    async def list_transactions(
        self,
        db: AsyncSession,
        account_id: str,
        limit: int,
        offset: int,
        status: str | None,
        transaction_type: str | None,
    ) -> list[LedgerTransaction]:
        result = await db.execute(
            _LIST_TXN_SQL,
            {
                "account_id": account_id,
                "status": status,
                "transaction_type": transaction_type,
                "limit": limit,
                "offset": offset,
            },
        )
        return [_row_to_txn(row) for row in result.fetchall()]

    async def count_transactions(
        self,
        db: AsyncSession,
        account_id: str,
        status: str | None,
        transaction_type: str | None,
    ) -> int:
        result = await db.execute(
            _COUNT_TXN_SQL,
            {
                "account_id": account_id,
                "status": status,
                "transaction_type": transaction_type,
            },
        )
        row = result.fetchone()
        return int(row.total) if row else 0

    async def list_pending_with_context(
        self, db: AsyncSession, account_id: str
    ) -> list[PendingTransactionView]:
        result = await db.execute(_LIST_PENDING_CONTEXT_SQL, {"account_id": account_id})
        return [_row_to_pending_view(row) for row in result.fetchall()]

    async def sum_amounts(
        self,
        db: AsyncSession,
        transaction_type: str,
        since: datetime,
        until: datetime,
        account_id: str | None = None,
        source_employee_id: str | None = None,
    ) -> Decimal:
        """Sum of non-rejected amounts of one type created in [since, until)."""
        result = await db.execute(
            _SUM_AMOUNTS_SQL,
            {
                "transaction_type": transaction_type,
                "since": since,
                "until": until,
                "account_id": account_id,
                "source_employee_id": source_employee_id,
            },
        )
        row = result.fetchone()
        return Decimal(row.total) if row else Decimal("0")

    async def assign_transfer_target(
        self, db: AsyncSession, transaction_id: str, target_employee_id: str
    ) -> LedgerTransaction | None:
        """Attach a recipient to a pending sent leg that has none yet."""
        result = await db.execute(
            _ASSIGN_TRANSFER_TARGET_SQL,
            {"transaction_id": transaction_id, "target_employee_id": target_employee_id},
        )
        row = result.fetchone()
        return _row_to_txn(row) if row else None

    async def list_awards_issued(
        self, db: AsyncSession, manager_id: str, limit: int, offset: int
    ) -> list[PartyTransaction]:
        result = await db.execute(
            _LIST_AWARDS_ISSUED_SQL,
            {"manager_id": manager_id, "limit": limit, "offset": offset},
        )
        return [_row_to_party(row) for row in result.fetchall()]

    async def count_awards_issued(self, db: AsyncSession, manager_id: str) -> int:
        result = await db.execute(_COUNT_AWARDS_ISSUED_SQL, {"manager_id": manager_id})
        row = result.fetchone()
        return int(row.total) if row else 0

    async def list_transfers(
        self, db: AsyncSession, account_id: str, limit: int, offset: int
    ) -> list[PartyTransaction]:
        result = await db.execute(
            _LIST_TRANSFERS_SQL,
            {"account_id": account_id, "limit": limit, "offset": offset},
        )
        return [_row_to_party(row) for row in result.fetchall()]

    async def count_transfers(self, db: AsyncSession, account_id: str) -> int:
        result = await db.execute(_COUNT_TRANSFERS_SQL, {"account_id": account_id})
        row = result.fetchone()
        return int(row.total) if row else 0
