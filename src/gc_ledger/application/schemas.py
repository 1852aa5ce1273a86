"""Pydantic schemas for gc_ledger API.

Amounts leave the service as Decimal and are serialized here as plain JSON
numbers for the presentation layer.
"""

from pydantic import BaseModel

from src.gc_common.amounts import amount_to_number
from src.gc_ledger.application.service import PartyHistory, TransactionHistory
from src.gc_ledger.domain.models import (
    BalanceSummary,
    EmployeeRef,
    LedgerTransaction,
    PartyTransaction,
    PendingTransactionView,
    SubmissionRef,
)


def _iso(value: object) -> str | None:
    return value.isoformat() if value is not None else None  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    posted: float
    pending: float
    total: float

    @classmethod
    def from_domain(cls, summary: BalanceSummary) -> "BalanceResponse":
        return cls(
            posted=amount_to_number(summary.posted),
            pending=amount_to_number(summary.pending),
            total=amount_to_number(summary.total),
        )


class TransactionItem(BaseModel):
    id: str
    account_id: str
    transaction_type: str
    amount: float
    status: str
    description: str | None
    source_employee_id: str | None
    target_employee_id: str | None
    wellness_submission_id: str | None
    rejection_reason: str | None
    created_at: str | None  # ISO8601 string
    posted_at: str | None
    rejected_at: str | None

    @classmethod
    def from_domain(cls, t: LedgerTransaction) -> "TransactionItem":
        return cls(
            id=t.id,
            account_id=t.account_id,
            transaction_type=t.transaction_type,
            amount=amount_to_number(t.amount),
            status=t.status,
            description=t.description,
            source_employee_id=t.source_employee_id,
            target_employee_id=t.target_employee_id,
            wellness_submission_id=t.wellness_submission_id,
            rejection_reason=t.rejection_reason,
            created_at=_iso(t.created_at),
            posted_at=_iso(t.posted_at),
            rejected_at=_iso(t.rejected_at),
        )


class TransactionHistoryResponse(BaseModel):
    transactions: list[TransactionItem]
    total: int
    limit: int
    offset: int

    @classmethod
    def from_domain(cls, history: TransactionHistory) -> "TransactionHistoryResponse":
        return cls(
            transactions=[TransactionItem.from_domain(t) for t in history.transactions],
            total=history.total,
            limit=history.limit,
            offset=history.offset,
        )


class EmployeeSummary(BaseModel):
    id: str
    name: str
    email: str

    @classmethod
    def from_domain(cls, ref: EmployeeRef) -> "EmployeeSummary":
        return cls(id=ref.id, name=ref.name, email=ref.email)


class SubmissionSummary(BaseModel):
    id: str
    status: str
    wellness_task_id: str
    wellness_task_name: str
    coin_value: float

    @classmethod
    def from_domain(cls, ref: SubmissionRef) -> "SubmissionSummary":
        return cls(
            id=ref.id,
            status=ref.status,
            wellness_task_id=ref.wellness_task_id,
            wellness_task_name=ref.wellness_task_name,
            coin_value=amount_to_number(ref.coin_value),
        )


class PendingTransactionItem(TransactionItem):
    source_employee: EmployeeSummary | None = None
    wellness_submission: SubmissionSummary | None = None

    @classmethod
    def from_view(cls, view: PendingTransactionView) -> "PendingTransactionItem":
        base = TransactionItem.from_domain(view.transaction)
        return cls(
            **base.model_dump(),
            source_employee=(
                EmployeeSummary.from_domain(view.source_employee)
                if view.source_employee
                else None
            ),
            wellness_submission=(
                SubmissionSummary.from_domain(view.wellness_submission)
                if view.wellness_submission
                else None
            ),
        )


class PartyTransactionItem(TransactionItem):
    counterparty: EmployeeSummary | None = None

    @classmethod
    def from_party(cls, entry: PartyTransaction) -> "PartyTransactionItem":
        base = TransactionItem.from_domain(entry.transaction)
        return cls(
            **base.model_dump(),
            counterparty=(
                EmployeeSummary.from_domain(entry.counterparty)
                if entry.counterparty
                else None
            ),
        )


class PartyHistoryResponse(BaseModel):
    transactions: list[PartyTransactionItem]
    total: int
    limit: int
    offset: int

    @classmethod
    def from_domain(cls, history: PartyHistory) -> "PartyHistoryResponse":
        return cls(
            transactions=[PartyTransactionItem.from_party(e) for e in history.entries],
            total=history.total,
            limit=history.limit,
            offset=history.offset,
        )
