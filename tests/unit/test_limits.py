"""Tests for monthly usage windows and caps."""

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from src.gc_rewards.domain.limits import PeriodUsage, month_window


class TestMonthWindow:
    def test_mid_month(self) -> None:
        start, end = month_window(datetime(2026, 10, 19, 15, 30, tzinfo=UTC))
        assert start == datetime(2026, 10, 1, tzinfo=UTC)
        assert end == datetime(2026, 11, 1, tzinfo=UTC)

    def test_december_rolls_year(self) -> None:
        start, end = month_window(datetime(2026, 12, 31, 23, 59, tzinfo=UTC))
        assert start == datetime(2026, 12, 1, tzinfo=UTC)
        assert end == datetime(2027, 1, 1, tzinfo=UTC)

    def test_converts_to_utc_first(self) -> None:
        # 00:30 on Nov 1 in UTC+2 is still October in UTC
        local = datetime(2026, 11, 1, 0, 30, tzinfo=timezone(timedelta(hours=2)))
        start, _ = month_window(local)
        assert start == datetime(2026, 10, 1, tzinfo=UTC)


class TestPeriodUsage:
    def _usage(self, used: str) -> PeriodUsage:
        start, end = month_window(datetime(2026, 10, 19, tzinfo=UTC))
        return PeriodUsage(Decimal("500"), Decimal(used), start, end)

    @pytest.mark.parametrize(
        "used,amount,allowed",
        [("0", "500", True), ("480", "20", True), ("480", "20.01", False), ("500", "0.01", False)],
    )
    def test_allows(self, used: str, amount: str, allowed: bool) -> None:
        assert self._usage(used).allows(Decimal(amount)) is allowed

    def test_remaining_never_negative(self) -> None:
        assert self._usage("120").remaining == Decimal("380")
        assert self._usage("650").remaining == Decimal("0")
