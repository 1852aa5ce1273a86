"""Domain models for gc_wellness — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class WellnessTask:
    id: str
    name: str
    description: str | None
    coin_value: Decimal
    max_rewarded_users: int | None   # None = unlimited approvals
    is_active: bool
    created_at: datetime | None = None


@dataclass
class WellnessSubmission:
    id: str
    employee_id: str
    wellness_task_id: str
    status: str                      # SubmissionStatus value
    rejection_reason: str | None = None
    reviewed_by_id: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime | None = None
    # Joined context
    employee_name: str = ""
    employee_email: str = ""
    task_name: str = ""
    coin_value: Decimal = Decimal("0")
    max_rewarded_users: int | None = None
    transaction_id: str | None = None   # the wellness_reward ledger entry
