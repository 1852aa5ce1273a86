"""Wellness tasks, submissions and their review.

A submission is created together with a pending ``wellness_reward`` on the
submitter's account. Review settles both sides in one unit of work: approval
posts the reward, rejection rejects it. The submission row is locked
(``FOR UPDATE``) during review so a second reviewer waits and then sees a
non-pending status.
"""

import logging
from dataclasses import replace

from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_common.amounts import positive_amount
from src.gc_common.database import unit_of_work
from src.gc_common.enums import SubmissionStatus, TransactionType
from src.gc_common.errors import (
    InvalidRewardCapError,
    RewardLimitReachedError,
    SubmissionNotPendingError,
    WellnessSubmissionNotFoundError,
    WellnessTaskNotFoundError,
)
from src.gc_common.ids import require_uuid
from src.gc_common.notifier import LogNotifier, Notifier
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_ledger.application.service import TransactionService
from src.gc_ledger.domain.models import LedgerTransaction
from src.gc_wellness.domain.models import WellnessSubmission, WellnessTask
from src.gc_wellness.domain.repository import WellnessRepositoryProtocol
from src.gc_wellness.infrastructure.persistence import WellnessRepository

logger = logging.getLogger("gc.rewards")

REWARD_LIMIT_REASON = "Maximum rewards reached for this task"


class WellnessService:
    def __init__(
        self,
        repo: WellnessRepositoryProtocol | None = None,
        ledger: TransactionService | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._repo: WellnessRepositoryProtocol = repo or WellnessRepository()
        self._ledger = ledger or TransactionService()
        self._notifier: Notifier = notifier or LogNotifier()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def list_tasks(self, db: AsyncSession) -> list[WellnessTask]:
        return await self._repo.list_active_tasks(db)

    async def create_task(
        self,
        db: AsyncSession,
        name: str,
        coin_value: object,
        description: str | None = None,
        max_rewarded_users: int | None = None,
    ) -> WellnessTask:
        value = positive_amount(coin_value)
        if max_rewarded_users is not None and max_rewarded_users < 1:
            raise InvalidRewardCapError(max_rewarded_users)
        async with unit_of_work(db) as tx:
            task = await self._repo.create_task(
                tx, name, description, value, max_rewarded_users
            )
        logger.info("Wellness task %s created: %s coin_value=%s", task.id, name, value)
        return task

    async def deactivate_task(self, db: AsyncSession, task_id: str) -> WellnessTask:
        """Hide a task from the catalogue. Existing submissions keep their review flow."""
        task_id = require_uuid(task_id, "wellness_task_id")
        async with unit_of_work(db) as tx:
            task = await self._repo.deactivate_task(tx, task_id)
            if task is None:
                raise WellnessTaskNotFoundError(task_id)
        logger.info("Wellness task %s deactivated", task_id)
        return task

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------

    async def submit(
        self, db: AsyncSession, employee: EmployeeModel, task_id: str
    ) -> tuple[WellnessSubmission, LedgerTransaction]:
        """Record a completed task and queue its reward as pending."""
        task_id = require_uuid(task_id, "wellness_task_id")
        task = await self._repo.get_task(db, task_id)
        if task is None or not task.is_active:
            raise WellnessTaskNotFoundError(task_id)
        account = await self._ledger.get_account_for_employee(db, str(employee.id))

        async with unit_of_work(db) as tx:
            submission = await self._repo.insert_submission(tx, str(employee.id), task.id)
            reward = await self._ledger.create_pending_transaction(
                tx,
                account.id,
                TransactionType.WELLNESS_REWARD,
                task.coin_value,
                f"Wellness reward: {task.name}",
                target_employee_id=str(employee.id),
                wellness_submission_id=submission.id,
                tx=tx,
            )

        submission.employee_name = employee.name
        submission.employee_email = employee.email
        submission.task_name = task.name
        submission.coin_value = task.coin_value
        submission.max_rewarded_users = task.max_rewarded_users
        submission.transaction_id = reward.id
        logger.info(
            "Wellness submission %s: employee=%s task=%s", submission.id, employee.id, task.id
        )
        return submission, reward

    async def list_pending(self, db: AsyncSession) -> list[WellnessSubmission]:
        return await self._repo.list_pending_submissions(db)

    async def list_submissions_for(
        self, db: AsyncSession, employee: EmployeeModel
    ) -> list[WellnessSubmission]:
        return await self._repo.list_submissions_by_employee(db, str(employee.id))

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    async def approve(
        self, db: AsyncSession, reviewer: EmployeeModel, submission_id: str
    ) -> WellnessSubmission:
        """Approve a pending submission and post its reward.

        Raises RewardLimitReachedError after committing the rejection of both
        the submission and its reward when the task's cap is already filled.
        """
        submission_id = require_uuid(submission_id, "submission_id")
        reviewer_id = str(reviewer.id)
        limit_reached = False

        async with unit_of_work(db) as tx:
            submission = await self._lock_pending(tx, submission_id)
            if submission.max_rewarded_users is not None:
                # Serializes approvals for the task so the count below is exact.
                await self._repo.get_task(tx, submission.wellness_task_id, for_update=True)
                approved = await self._repo.count_approved(tx, submission.wellness_task_id)
                limit_reached = approved >= submission.max_rewarded_users

            if limit_reached:
                reviewed_at = await self._repo.mark_reviewed(
                    tx, submission_id, SubmissionStatus.REJECTED.value, reviewer_id,
                    REWARD_LIMIT_REASON,
                )
                if submission.transaction_id is not None:
                    await self._ledger.reject_transaction(
                        tx, submission.transaction_id, REWARD_LIMIT_REASON, tx=tx
                    )
            else:
                reviewed_at = await self._repo.mark_reviewed(
                    tx, submission_id, SubmissionStatus.APPROVED.value, reviewer_id, None
                )
                if submission.transaction_id is not None:
                    await self._ledger.post_transaction(
                        tx, submission.transaction_id, tx=tx
                    )

        if limit_reached:
            logger.info(
                "Wellness submission %s auto-rejected: task %s at cap",
                submission_id, submission.wellness_task_id,
            )
            await self._notifier.wellness_rejected(
                submission.employee_email, submission.employee_name,
                submission.task_name, REWARD_LIMIT_REASON,
            )
            raise RewardLimitReachedError()

        logger.info(
            "Wellness submission %s approved by %s amount=%s",
            submission_id, reviewer_id, submission.coin_value,
        )
        await self._notifier.wellness_approved(
            submission.employee_email, submission.employee_name,
            submission.task_name, submission.coin_value,
        )
        return replace(
            submission,
            status=SubmissionStatus.APPROVED.value,
            reviewed_by_id=reviewer_id,
            reviewed_at=reviewed_at,
        )

    async def reject(
        self,
        db: AsyncSession,
        reviewer: EmployeeModel,
        submission_id: str,
        reason: str | None = None,
    ) -> WellnessSubmission:
        """Reject a pending submission and its reward. No balance change."""
        submission_id = require_uuid(submission_id, "submission_id")
        reviewer_id = str(reviewer.id)

        async with unit_of_work(db) as tx:
            submission = await self._lock_pending(tx, submission_id)
            reviewed_at = await self._repo.mark_reviewed(
                tx, submission_id, SubmissionStatus.REJECTED.value, reviewer_id, reason
            )
            if submission.transaction_id is not None:
                await self._ledger.reject_transaction(
                    tx, submission.transaction_id, reason, tx=tx
                )

        logger.info("Wellness submission %s rejected by %s", submission_id, reviewer_id)
        await self._notifier.wellness_rejected(
            submission.employee_email, submission.employee_name, submission.task_name, reason
        )
        return replace(
            submission,
            status=SubmissionStatus.REJECTED.value,
            rejection_reason=reason,
            reviewed_by_id=reviewer_id,
            reviewed_at=reviewed_at,
        )

    async def _lock_pending(
        self, tx: AsyncSession, submission_id: str
    ) -> WellnessSubmission:
        submission = await self._repo.get_submission(tx, submission_id, for_update=True)
        if submission is None:
            raise WellnessSubmissionNotFoundError(submission_id)
        if submission.status != SubmissionStatus.PENDING:
            raise SubmissionNotPendingError(submission_id)
        return submission
