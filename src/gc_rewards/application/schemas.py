"""Pydantic schemas for award and transfer endpoints."""

from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field

from src.gc_common.amounts import amount_to_number
from src.gc_ledger.application.schemas import TransactionItem
from src.gc_ledger.domain.models import TransferPair
from src.gc_rewards.domain.limits import PeriodUsage
from src.gc_rewards.domain.models import PendingTransfer


def _iso(value: object) -> str | None:
    return value.isoformat() if value is not None else None  # type: ignore[attr-defined]


class AwardRequest(BaseModel):
    recipient_employee_id: str
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str | None = Field(None, max_length=500)


class TransferRequest(BaseModel):
    recipient_email: EmailStr
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    message: str | None = Field(None, max_length=500)


class AwardResponse(BaseModel):
    transaction: TransactionItem


class PendingTransferItem(BaseModel):
    id: str
    recipient_email: str
    amount: float
    message: str | None
    transaction_id: str
    status: str
    created_at: str | None
    resolved_at: str | None

    @classmethod
    def from_domain(cls, t: PendingTransfer) -> "PendingTransferItem":
        return cls(
            id=t.id,
            recipient_email=t.recipient_email,
            amount=amount_to_number(t.amount),
            message=t.message,
            transaction_id=t.transaction_id,
            status=t.status,
            created_at=_iso(t.created_at),
            resolved_at=_iso(t.resolved_at),
        )


class TransferResponse(BaseModel):
    status: str                      # "completed" | "pending"
    sent: TransactionItem | None = None
    received: TransactionItem | None = None
    pending_transfer: PendingTransferItem | None = None

    @classmethod
    def from_domain(cls, pair: TransferPair) -> "TransferResponse":
        return cls(
            status="completed",
            sent=TransactionItem.from_domain(pair.sent),
            received=TransactionItem.from_domain(pair.received),
        )

    @classmethod
    def from_pending(cls, transfer: PendingTransfer) -> "TransferResponse":
        return cls(status="pending", pending_transfer=PendingTransferItem.from_domain(transfer))


class PeriodUsageResponse(BaseModel):
    max_amount: float
    used_amount: float
    remaining: float
    period_start: str
    period_end: str

    @classmethod
    def from_domain(cls, usage: PeriodUsage) -> "PeriodUsageResponse":
        return cls(
            max_amount=amount_to_number(usage.max_amount),
            used_amount=amount_to_number(usage.used_amount),
            remaining=amount_to_number(usage.remaining),
            period_start=usage.period_start.isoformat(),
            period_end=usage.period_end.isoformat(),
        )
