"""Unit tests for LedgerRepository using MagicMock AsyncSession."""

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.gc_common.errors import InternalError
from src.gc_ledger.infrastructure.persistence import LedgerRepository


def _txn_row(**kwargs):  # type: ignore[no-untyped-def]
    row = MagicMock()
    row.id = kwargs.get("id", uuid.uuid4())
    row.account_id = kwargs.get("account_id", uuid.uuid4())
    row.transaction_type = kwargs.get("transaction_type", "wellness_reward")
    row.amount = kwargs.get("amount", Decimal("20.00"))
    row.status = kwargs.get("status", "pending")
    row.description = None
    row.source_employee_id = kwargs.get("source_employee_id")
    row.target_employee_id = None
    row.wellness_submission_id = kwargs.get("wellness_submission_id")
    row.rejection_reason = None
    row.created_at = datetime.now(UTC)
    row.posted_at = None
    row.rejected_at = None
    return row


def _result(one=None, many=None):  # type: ignore[no-untyped-def]
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = many or []
    return result


@pytest.fixture
def db():  # type: ignore[no-untyped-def]
    return MagicMock()


class TestMarkPosted:
    async def test_returns_transaction_when_pending(self, db) -> None:  # type: ignore[no-untyped-def]
        row = _txn_row(status="posted")
        db.execute = AsyncMock(return_value=_result(one=row))

        txn = await LedgerRepository().mark_posted(db, str(row.id))

        assert txn is not None
        assert txn.id == str(row.id)
        assert txn.amount == Decimal("20.00")
        sql = str(db.execute.await_args.args[0])
        assert "status = 'pending'" in sql

    async def test_none_when_not_pending(self, db) -> None:  # type: ignore[no-untyped-def]
        db.execute = AsyncMock(return_value=_result(one=None))
        assert await LedgerRepository().mark_posted(db, str(uuid.uuid4())) is None


class TestBalanceChange:
    async def test_is_additive_update(self, db) -> None:  # type: ignore[no-untyped-def]
        row = MagicMock(
            id=uuid.uuid4(), employee_id=uuid.uuid4(), balance=Decimal("70.00"),
            created_at=None, updated_at=None,
        )
        db.execute = AsyncMock(return_value=_result(one=row))

        account = await LedgerRepository().apply_balance_change(db, str(row.id), Decimal("-30"))

        assert account is not None
        assert account.balance == Decimal("70.00")
        assert "balance = balance + :delta" in str(db.execute.await_args.args[0])
        assert db.execute.await_args.args[1]["delta"] == Decimal("-30")


class TestInsert:
    async def test_insert_without_row_raises(self, db) -> None:  # type: ignore[no-untyped-def]
        db.execute = AsyncMock(return_value=_result(one=None))
        with pytest.raises(InternalError):
            await LedgerRepository().insert_transaction(
                db, str(uuid.uuid4()), "manager_award", Decimal("1"), None, None, None, None
            )


class TestPendingContext:
    async def test_joins_source_and_submission(self, db) -> None:  # type: ignore[no-untyped-def]
        source_id = uuid.uuid4()
        submission_id = uuid.uuid4()
        row = _txn_row(source_employee_id=source_id, wellness_submission_id=submission_id)
        row.source_name = "Grace"
        row.source_email = "grace@example.com"
        row.submission_status = "pending"
        row.wellness_task_id = uuid.uuid4()
        row.task_name = "10k steps"
        row.task_coin_value = Decimal("20.00")
        db.execute = AsyncMock(return_value=_result(many=[row]))

        views = await LedgerRepository().list_pending_with_context(db, str(uuid.uuid4()))

        assert len(views) == 1
        assert views[0].source_employee is not None
        assert views[0].source_employee.name == "Grace"
        assert views[0].wellness_submission is not None
        assert views[0].wellness_submission.wellness_task_name == "10k steps"

    async def test_plain_row_has_no_context(self, db) -> None:  # type: ignore[no-untyped-def]
        row = _txn_row()
        row.source_name = None
        row.task_name = None
        db.execute = AsyncMock(return_value=_result(many=[row]))

        views = await LedgerRepository().list_pending_with_context(db, str(uuid.uuid4()))

        assert views[0].source_employee is None
        assert views[0].wellness_submission is None


class TestCount:
    async def test_count_passes_null_filters(self, db) -> None:  # type: ignore[no-untyped-def]
        db.execute = AsyncMock(return_value=_result(one=MagicMock(total=7)))

        total = await LedgerRepository().count_transactions(db, str(uuid.uuid4()), None, None)

        assert total == 7
        params = db.execute.await_args.args[1]
        assert params["status"] is None
        assert params["transaction_type"] is None


class TestPeriodSum:
    async def test_sum_binds_window_and_null_filters(self, db) -> None:  # type: ignore[no-untyped-def]
        db.execute = AsyncMock(return_value=_result(one=MagicMock(total=Decimal("45.50"))))
        since = datetime(2026, 10, 1, tzinfo=UTC)
        until = datetime(2026, 11, 1, tzinfo=UTC)

        total = await LedgerRepository().sum_amounts(db, "manager_award", since, until)

        assert total == Decimal("45.50")
        sql = str(db.execute.await_args.args[0])
        assert "status <> 'rejected'" in sql
        params = db.execute.await_args.args[1]
        assert params["since"] == since and params["until"] == until
        assert params["account_id"] is None
        assert params["source_employee_id"] is None


class TestTransferTarget:
    async def test_only_unclaimed_sent_legs(self, db) -> None:  # type: ignore[no-untyped-def]
        db.execute = AsyncMock(return_value=_result(one=None))

        txn = await LedgerRepository().assign_transfer_target(
            db, str(uuid.uuid4()), str(uuid.uuid4())
        )

        assert txn is None
        sql = str(db.execute.await_args.args[0])
        assert "target_employee_id IS NULL" in sql
        assert "transaction_type = 'peer_transfer_sent'" in sql


class TestPartyHistory:
    async def test_maps_counterparty(self, db) -> None:  # type: ignore[no-untyped-def]
        named = _txn_row(transaction_type="peer_transfer_received")
        named.party_id = uuid.uuid4()
        named.party_name = "Ada"
        named.party_email = "ada@example.com"
        unclaimed = _txn_row(transaction_type="peer_transfer_sent")
        unclaimed.party_id = None
        db.execute = AsyncMock(return_value=_result(many=[named, unclaimed]))

        entries = await LedgerRepository().list_transfers(db, str(uuid.uuid4()), 50, 0)

        assert entries[0].counterparty is not None
        assert entries[0].counterparty.email == "ada@example.com"
        assert entries[1].counterparty is None
        assert db.execute.await_args.args[1]["limit"] == 50
