"""WellnessRepository — raw SQL for wellness_tasks / wellness_submissions.

Review is a conditional UPDATE (``WHERE status = 'pending'``) so a submission
can be approved or rejected at most once. Approvals against a capped task lock
the task row first; concurrent approvals for one task then count sequentially.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.errors import InternalError
from src.gc_wellness.domain.models import WellnessSubmission, WellnessTask

_TASK_COLUMNS = "id, name, description, coin_value, max_rewarded_users, is_active, created_at"

_INSERT_TASK_SQL = text(f"""
    INSERT INTO wellness_tasks (name, description, coin_value, max_rewarded_users)
    VALUES (:name, :description, :coin_value, :max_rewarded_users)
    RETURNING {_TASK_COLUMNS}
""")

_LIST_ACTIVE_TASKS_SQL = text(f"""
    SELECT {_TASK_COLUMNS}
    FROM wellness_tasks
    WHERE is_active = TRUE
    ORDER BY created_at DESC, id DESC
""")

_GET_TASK_SQL = text(f"""
    SELECT {_TASK_COLUMNS}
    FROM wellness_tasks
    WHERE id = :task_id
""")

_GET_TASK_FOR_UPDATE_SQL = text(f"""
    SELECT {_TASK_COLUMNS}
    FROM wellness_tasks
    WHERE id = :task_id
    FOR UPDATE
""")

_SUBMISSION_COLUMNS = """id, employee_id, wellness_task_id, status, rejection_reason,
              reviewed_by_id, reviewed_at, created_at"""

_INSERT_SUBMISSION_SQL = text(f"""
    INSERT INTO wellness_submissions (employee_id, wellness_task_id, status)
    VALUES (:employee_id, :task_id, 'pending')
    RETURNING {_SUBMISSION_COLUMNS}
""")

_SUBMISSION_DETAIL_SELECT = """
    SELECT s.id, s.employee_id, s.wellness_task_id, s.status, s.rejection_reason,
           s.reviewed_by_id, s.reviewed_at, s.created_at,
           e.name  AS employee_name,
           e.email AS employee_email,
           w.name  AS task_name,
           w.coin_value,
           w.max_rewarded_users,
           (SELECT t.id FROM ledger_transactions t
             WHERE t.wellness_submission_id = s.id
             ORDER BY t.created_at
             LIMIT 1) AS transaction_id
    FROM wellness_submissions s
    JOIN employees e ON e.id = s.employee_id
    JOIN wellness_tasks w ON w.id = s.wellness_task_id
"""

_GET_SUBMISSION_SQL = text(_SUBMISSION_DETAIL_SELECT + """
    WHERE s.id = :submission_id
""")

_GET_SUBMISSION_FOR_UPDATE_SQL = text(_SUBMISSION_DETAIL_SELECT + """
    WHERE s.id = :submission_id
    FOR UPDATE OF s
""")

_LIST_PENDING_SUBMISSIONS_SQL = text(_SUBMISSION_DETAIL_SELECT + """
    WHERE s.status = 'pending'
    ORDER BY s.created_at ASC, s.id ASC
""")

_LIST_EMPLOYEE_SUBMISSIONS_SQL = text(_SUBMISSION_DETAIL_SELECT + """
    WHERE s.employee_id = :employee_id
    ORDER BY s.created_at DESC, s.id DESC
""")

_DEACTIVATE_TASK_SQL = text(f"""
    UPDATE wellness_tasks
    SET is_active = FALSE
    WHERE id = :task_id
    RETURNING {_TASK_COLUMNS}
""")

_COUNT_APPROVED_SQL = text("""
    SELECT COUNT(*) AS total
    FROM wellness_submissions
    WHERE wellness_task_id = :task_id AND status = 'approved'
""")

_MARK_REVIEWED_SQL = text("""
    UPDATE wellness_submissions
    SET status = :status,
        rejection_reason = :reason,
        reviewed_by_id = :reviewer_id,
        reviewed_at = NOW()
    WHERE id = :submission_id AND status = 'pending'
    RETURNING reviewed_at
""")


def _row_to_task(row: object) -> WellnessTask:
    return WellnessTask(
        id=str(row.id),  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        coin_value=Decimal(row.coin_value),  # type: ignore[attr-defined]
        max_rewarded_users=row.max_rewarded_users,  # type: ignore[attr-defined]
        is_active=bool(row.is_active),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_submission(row: object, detailed: bool = True) -> WellnessSubmission:
    submission = WellnessSubmission(
        id=str(row.id),  # type: ignore[attr-defined]
        employee_id=str(row.employee_id),  # type: ignore[attr-defined]
        wellness_task_id=str(row.wellness_task_id),  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        rejection_reason=row.rejection_reason,  # type: ignore[attr-defined]
        reviewed_by_id=str(row.reviewed_by_id) if row.reviewed_by_id else None,  # type: ignore[attr-defined]
        reviewed_at=row.reviewed_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )
    if detailed:
        submission.employee_name = row.employee_name  # type: ignore[attr-defined]
        submission.employee_email = row.employee_email  # type: ignore[attr-defined]
        submission.task_name = row.task_name  # type: ignore[attr-defined]
        submission.coin_value = Decimal(row.coin_value)  # type: ignore[attr-defined]
        submission.max_rewarded_users = row.max_rewarded_users  # type: ignore[attr-defined]
        txn_id = row.transaction_id  # type: ignore[attr-defined]
        submission.transaction_id = str(txn_id) if txn_id else None
    return submission


class WellnessRepository:
    async def create_task(
        self,
        db: AsyncSession,
        name: str,
        description: str | None,
        coin_value: Decimal,
        max_rewarded_users: int | None,
    ) -> WellnessTask:
        result = await db.execute(
            _INSERT_TASK_SQL,
            {
                "name": name,
                "description": description,
                "coin_value": coin_value,
                "max_rewarded_users": max_rewarded_users,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Wellness task insert returned no rows")
        return _row_to_task(row)

    async def list_active_tasks(self, db: AsyncSession) -> list[WellnessTask]:
        result = await db.execute(_LIST_ACTIVE_TASKS_SQL)
        return [_row_to_task(row) for row in result.fetchall()]

    async def get_task(
        self, db: AsyncSession, task_id: str, for_update: bool = False
    ) -> WellnessTask | None:
        sql = _GET_TASK_FOR_UPDATE_SQL if for_update else _GET_TASK_SQL
        result = await db.execute(sql, {"task_id": task_id})
        row = result.fetchone()
        return _row_to_task(row) if row else None

    async def insert_submission(
        self, db: AsyncSession, employee_id: str, task_id: str
    ) -> WellnessSubmission:
        result = await db.execute(
            _INSERT_SUBMISSION_SQL, {"employee_id": employee_id, "task_id": task_id}
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Wellness submission insert returned no rows")
        return _row_to_submission(row, detailed=False)

    async def get_submission(
        self, db: AsyncSession, submission_id: str, for_update: bool = False
    ) -> WellnessSubmission | None:
        sql = _GET_SUBMISSION_FOR_UPDATE_SQL if for_update else _GET_SUBMISSION_SQL
        result = await db.execute(sql, {"submission_id": submission_id})
        row = result.fetchone()
        return _row_to_submission(row) if row else None

    async def list_pending_submissions(self, db: AsyncSession) -> list[WellnessSubmission]:
        result = await db.execute(_LIST_PENDING_SUBMISSIONS_SQL)
        return [_row_to_submission(row) for row in result.fetchall()]

    async def list_submissions_by_employee(
        self, db: AsyncSession, employee_id: str
    ) -> list[WellnessSubmission]:
        result = await db.execute(_LIST_EMPLOYEE_SUBMISSIONS_SQL, {"employee_id": employee_id})
        return [_row_to_submission(row) for row in result.fetchall()]

    async def deactivate_task(self, db: AsyncSession, task_id: str) -> WellnessTask | None:
        result = await db.execute(_DEACTIVATE_TASK_SQL, {"task_id": task_id})
        row = result.fetchone()
        return _row_to_task(row) if row else None

    async def count_approved(self, db: AsyncSession, task_id: str) -> int:
        result = await db.execute(_COUNT_APPROVED_SQL, {"task_id": task_id})
        row = result.fetchone()
        return int(row.total) if row else 0

    async def mark_reviewed(
        self,
        db: AsyncSession,
        submission_id: str,
        status: str,
        reviewer_id: str,
        reason: str | None,
    ) -> datetime | None:
        """Returns reviewed_at, or None when the submission was no longer pending."""
        result = await db.execute(
            _MARK_REVIEWED_SQL,
            {
                "submission_id": submission_id,
                "status": status,
                "reviewer_id": reviewer_id,
                "reason": reason,
            },
        )
        row = result.fetchone()
        return row.reviewed_at if row else None
