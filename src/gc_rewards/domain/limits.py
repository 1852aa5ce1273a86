"""Monthly caps on coins leaving a person: manager allotments and transfer limits.

Usage is derived from the ledger itself (pending and posted transactions
created in the current calendar month, UTC), so there is no counter to drift
out of step with the balances.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal


@dataclass
class PeriodUsage:
    max_amount: Decimal
    used_amount: Decimal
    period_start: datetime
    period_end: datetime            # exclusive

    @property
    def remaining(self) -> Decimal:
        return max(self.max_amount - self.used_amount, Decimal("0"))

    def allows(self, amount: Decimal) -> bool:
        return self.used_amount + amount <= self.max_amount


def month_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """[first instant of this month, first instant of next month) in UTC."""
    now = (now or datetime.now(UTC)).astimezone(UTC)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end
