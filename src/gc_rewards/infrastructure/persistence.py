"""PendingTransferRepository — raw SQL for pending_transfers.

A pending transfer leaves the ``pending`` state once, through a conditional
UPDATE (``WHERE status = 'pending'``). Claim and cancel both lock the row
first, so a cancel racing a claim waits and then sees the final status.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.errors import InternalError
from src.gc_rewards.domain.models import PendingTransfer

_COLUMNS = """id, sender_employee_id, recipient_email, amount, message, transaction_id,
              status, created_at, resolved_at"""

_INSERT_SQL = text(f"""
    INSERT INTO pending_transfers
        (sender_employee_id, recipient_email, amount, message, transaction_id, status)
    VALUES
        (:sender_employee_id, :recipient_email, :amount, :message, :transaction_id, 'pending')
    RETURNING {_COLUMNS}
""")

_DETAIL_SELECT = """
    SELECT p.id, p.sender_employee_id, p.recipient_email, p.amount, p.message,
           p.transaction_id, p.status, p.created_at, p.resolved_at,
           t.account_id AS sender_account_id,
           e.name  AS sender_name,
           e.email AS sender_email
    FROM pending_transfers p
    JOIN ledger_transactions t ON t.id = p.transaction_id
    JOIN employees e ON e.id = p.sender_employee_id
"""

_GET_SQL = text(_DETAIL_SELECT + """
    WHERE p.id = :transfer_id
""")

_GET_FOR_UPDATE_SQL = text(_DETAIL_SELECT + """
    WHERE p.id = :transfer_id
    FOR UPDATE OF p
""")

_LIST_PENDING_BY_SENDER_SQL = text(_DETAIL_SELECT + """
    WHERE p.sender_employee_id = :sender_employee_id AND p.status = 'pending'
    ORDER BY p.created_at DESC, p.id DESC
""")

_LOCK_PENDING_FOR_EMAIL_SQL = text(_DETAIL_SELECT + """
    WHERE p.recipient_email = :recipient_email AND p.status = 'pending'
    ORDER BY p.created_at ASC, p.id ASC
    FOR UPDATE OF p
""")

_MARK_RESOLVED_SQL = text("""
    UPDATE pending_transfers
    SET status = :status,
        resolved_at = NOW()
    WHERE id = :transfer_id AND status = 'pending'
    RETURNING resolved_at
""")


def _row_to_pending(row: object, detailed: bool = True) -> PendingTransfer:
    transfer = PendingTransfer(
        id=str(row.id),  # type: ignore[attr-defined]
        sender_employee_id=str(row.sender_employee_id),  # type: ignore[attr-defined]
        recipient_email=row.recipient_email,  # type: ignore[attr-defined]
        amount=Decimal(row.amount),  # type: ignore[attr-defined]
        message=row.message,  # type: ignore[attr-defined]
        transaction_id=str(row.transaction_id),  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
    )
    if detailed:
        transfer.sender_account_id = str(row.sender_account_id)  # type: ignore[attr-defined]
        transfer.sender_name = row.sender_name  # type: ignore[attr-defined]
        transfer.sender_email = row.sender_email  # type: ignore[attr-defined]
    return transfer


class PendingTransferRepository:
    async def insert(
        self,
        db: AsyncSession,
        sender_employee_id: str,
        recipient_email: str,
        amount: Decimal,
        message: str | None,
        transaction_id: str,
    ) -> PendingTransfer:
        result = await db.execute(
            _INSERT_SQL,
            {
                "sender_employee_id": sender_employee_id,
                "recipient_email": recipient_email,
                "amount": amount,
                "message": message,
                "transaction_id": transaction_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Pending transfer insert returned no rows")
        return _row_to_pending(row, detailed=False)

    async def get(
        self, db: AsyncSession, transfer_id: str, for_update: bool = False
    ) -> PendingTransfer | None:
        sql = _GET_FOR_UPDATE_SQL if for_update else _GET_SQL
        result = await db.execute(sql, {"transfer_id": transfer_id})
        row = result.fetchone()
        return _row_to_pending(row) if row else None

    async def list_pending_by_sender(
        self, db: AsyncSession, sender_employee_id: str
    ) -> list[PendingTransfer]:
        result = await db.execute(
            _LIST_PENDING_BY_SENDER_SQL, {"sender_employee_id": sender_employee_id}
        )
        return [_row_to_pending(row) for row in result.fetchall()]

    async def lock_pending_for_email(
        self, db: AsyncSession, recipient_email: str
    ) -> list[PendingTransfer]:
        result = await db.execute(
            _LOCK_PENDING_FOR_EMAIL_SQL, {"recipient_email": recipient_email}
        )
        return [_row_to_pending(row) for row in result.fetchall()]

    async def mark_resolved(
        self, db: AsyncSession, transfer_id: str, status: str
    ) -> datetime | None:
        """Returns resolved_at, or None when the transfer was no longer pending."""
        result = await db.execute(
            _MARK_RESOLVED_SQL, {"transfer_id": transfer_id, "status": status}
        )
        row = result.fetchone()
        return row.resolved_at if row else None
