"""Domain models for gc_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Account:
    id: str
    employee_id: str
    balance: Decimal            # posted balance only
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerTransaction:
    id: str
    account_id: str
    transaction_type: str        # TransactionType value
    amount: Decimal              # always >= 0, direction comes from transaction_type
    status: str                  # TransactionStatus value
    description: str | None = None
    source_employee_id: str | None = None
    target_employee_id: str | None = None
    wellness_submission_id: str | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None
    posted_at: datetime | None = None
    rejected_at: datetime | None = None


@dataclass
class EmployeeRef:
    id: str
    name: str
    email: str


@dataclass
class SubmissionRef:
    id: str
    status: str
    wellness_task_id: str
    wellness_task_name: str
    coin_value: Decimal


@dataclass
class PendingTransactionView:
    """A pending transaction with the context the UI needs to display it."""

    transaction: LedgerTransaction
    source_employee: EmployeeRef | None = None
    wellness_submission: SubmissionRef | None = None


@dataclass
class BalanceSummary:
    posted: Decimal
    pending: Decimal
    total: Decimal


@dataclass
class TransferPair:
    sent: LedgerTransaction
    received: LedgerTransaction


@dataclass
class PartyTransaction:
    """A transaction with the other employee involved (recipient or sender)."""

    transaction: LedgerTransaction
    counterparty: EmployeeRef | None = None
