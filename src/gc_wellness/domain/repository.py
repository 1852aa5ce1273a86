"""Repository Protocol for wellness tasks and submissions."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gc_wellness.domain.models import WellnessSubmission, WellnessTask


class WellnessRepositoryProtocol(Protocol):
    async def create_task(
        self,
        db: AsyncSession,
        name: str,
        description: str | None,
        coin_value: Decimal,
        max_rewarded_users: int | None,
    ) -> WellnessTask: ...

    async def list_active_tasks(self, db: AsyncSession) -> list[WellnessTask]: ...

    async def get_task(
        self, db: AsyncSession, task_id: str, for_update: bool = False
    ) -> WellnessTask | None: ...

    async def insert_submission(
        self, db: AsyncSession, employee_id: str, task_id: str
    ) -> WellnessSubmission: ...

    async def get_submission(
        self, db: AsyncSession, submission_id: str, for_update: bool = False
    ) -> WellnessSubmission | None: ...

    async def list_pending_submissions(self, db: AsyncSession) -> list[WellnessSubmission]: ...

    async def list_submissions_by_employee(
        self, db: AsyncSession, employee_id: str
    ) -> list[WellnessSubmission]: ...

    async def deactivate_task(self, db: AsyncSession, task_id: str) -> WellnessTask | None: ...

    async def count_approved(self, db: AsyncSession, task_id: str) -> int: ...

    async def mark_reviewed(
        self,
        db: AsyncSession,
        submission_id: str,
        status: str,
        reviewer_id: str,
        reason: str | None,
    ) -> datetime | None: ...
