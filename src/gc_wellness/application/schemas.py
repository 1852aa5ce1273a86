"""Pydantic schemas for gc_wellness API."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.gc_common.amounts import amount_to_number
from src.gc_ledger.application.schemas import TransactionItem
from src.gc_ledger.domain.models import LedgerTransaction
from src.gc_wellness.domain.models import WellnessSubmission, WellnessTask


def _iso(value: object) -> str | None:
    return value.isoformat() if value is not None else None  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateTaskRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    coin_value: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    max_rewarded_users: int | None = Field(None, ge=1)


class SubmitRequest(BaseModel):
    wellness_task_id: str


class RejectSubmissionRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TaskItem(BaseModel):
    id: str
    name: str
    description: str | None
    coin_value: float
    max_rewarded_users: int | None
    is_active: bool
    created_at: str | None

    @classmethod
    def from_domain(cls, task: WellnessTask) -> "TaskItem":
        return cls(
            id=task.id,
            name=task.name,
            description=task.description,
            coin_value=amount_to_number(task.coin_value),
            max_rewarded_users=task.max_rewarded_users,
            is_active=task.is_active,
            created_at=_iso(task.created_at),
        )


class SubmissionItem(BaseModel):
    id: str
    employee_id: str
    employee_name: str
    employee_email: str
    wellness_task_id: str
    task_name: str
    coin_value: float
    status: str
    rejection_reason: str | None
    reviewed_by_id: str | None
    reviewed_at: str | None
    created_at: str | None
    transaction_id: str | None

    @classmethod
    def from_domain(cls, s: WellnessSubmission) -> "SubmissionItem":
        return cls(
            id=s.id,
            employee_id=s.employee_id,
            employee_name=s.employee_name,
            employee_email=s.employee_email,
            wellness_task_id=s.wellness_task_id,
            task_name=s.task_name,
            coin_value=amount_to_number(s.coin_value),
            status=s.status,
            rejection_reason=s.rejection_reason,
            reviewed_by_id=s.reviewed_by_id,
            reviewed_at=_iso(s.reviewed_at),
            created_at=_iso(s.created_at),
            transaction_id=s.transaction_id,
        )


class SubmitResponse(BaseModel):
    submission: SubmissionItem
    transaction: TransactionItem

    @classmethod
    def from_domain(
        cls, submission: WellnessSubmission, reward: LedgerTransaction
    ) -> "SubmitResponse":
        return cls(
            submission=SubmissionItem.from_domain(submission),
            transaction=TransactionItem.from_domain(reward),
        )
