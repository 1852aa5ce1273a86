"""Unit tests for TransactionService against the in-memory ledger repository."""

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.gc_common.enums import TransactionStatus, TransactionType
from src.gc_common.errors import (
    AccountNotFoundError,
    InvalidAmountError,
    InvalidIdentifierError,
    InvalidPaginationError,
    InvalidStateError,
    InvalidStatusError,
    InvalidTransactionStateError,
    InvalidTransactionTypeError,
    NotFoundError,
    SelfTransferError,
    TransactionNotFoundError,
    TransferPairMismatchError,
    ValidationError,
)
from src.gc_ledger.application.service import TransactionService
from tests.fakes import InMemoryLedgerRepository, make_db, new_id


@pytest.fixture
def repo() -> InMemoryLedgerRepository:
    return InMemoryLedgerRepository()


@pytest.fixture
def svc(repo: InMemoryLedgerRepository) -> TransactionService:
    return TransactionService(repo=repo)


class TestCreatePending:
    async def test_creates_pending_without_balance_change(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        db = make_db()

        txn = await svc.create_pending_transaction(
            db, account.id, TransactionType.MANAGER_AWARD, 50, "Great work"
        )

        assert txn.status == "pending"
        assert txn.amount == Decimal("50.00")
        assert txn.transaction_type == "manager_award"
        assert repo.balance(account.id) == Decimal("0")
        db.commit.assert_awaited_once()

    async def test_accepts_string_type(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        txn = await svc.create_pending_transaction(make_db(), account.id, "adjustment", "1.5")
        assert txn.transaction_type == "adjustment"
        assert txn.amount == Decimal("1.50")

    @pytest.mark.parametrize("amount", [0, -5, "abc", None, True, float("nan")])
    async def test_invalid_amount_rejected(
        self, svc: TransactionService, repo: InMemoryLedgerRepository, amount: object
    ) -> None:
        account = repo.add_account()
        with pytest.raises(InvalidAmountError):
            await svc.create_pending_transaction(
                make_db(), account.id, TransactionType.MANAGER_AWARD, amount
            )
        assert repo.transactions == {}

    async def test_unknown_account(self, svc: TransactionService) -> None:
        with pytest.raises(AccountNotFoundError):
            await svc.create_pending_transaction(
                make_db(), new_id(), TransactionType.MANAGER_AWARD, 10
            )

    async def test_malformed_account_id(self, svc: TransactionService) -> None:
        with pytest.raises(InvalidIdentifierError) as exc_info:
            await svc.create_pending_transaction(
                make_db(), "not-a-uuid", TransactionType.MANAGER_AWARD, 10
            )
        assert isinstance(exc_info.value, ValidationError)

    async def test_unknown_type(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        with pytest.raises(InvalidTransactionTypeError):
            await svc.create_pending_transaction(make_db(), account.id, "bonus", 10)


class TestPostTransaction:
    async def test_award_scenario(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        db = make_db()
        txn = await svc.create_pending_transaction(
            db, account.id, TransactionType.MANAGER_AWARD, 50
        )

        posted = await svc.post_transaction(db, txn.id)

        assert posted.status == "posted"
        assert posted.posted_at is not None
        assert repo.balance(account.id) == Decimal("50")

    async def test_debit_subtracts(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account(balance=100)
        txn = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.STORE_PURCHASE, 30
        )
        await svc.post_transaction(make_db(), txn.id)
        assert repo.balance(account.id) == Decimal("70")

    async def test_double_post_is_rejected_and_balance_changes_once(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        txn = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.MANAGER_AWARD, 50
        )
        await svc.post_transaction(make_db(), txn.id)

        with pytest.raises(InvalidTransactionStateError) as exc_info:
            await svc.post_transaction(make_db(), txn.id)

        assert isinstance(exc_info.value, InvalidStateError)
        assert exc_info.value.http_status == 409
        assert repo.balance(account.id) == Decimal("50")
        assert len(repo.balance_changes) == 1

    async def test_concurrent_posts_apply_once(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        txn = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.WELLNESS_REWARD, 20
        )

        results = await asyncio.gather(
            svc.post_transaction(make_db(), txn.id),
            svc.post_transaction(make_db(), txn.id),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], InvalidStateError)
        assert repo.balance(account.id) == Decimal("20")

    async def test_unknown_transaction(self, svc: TransactionService) -> None:
        db = make_db()
        with pytest.raises(TransactionNotFoundError) as exc_info:
            await svc.post_transaction(db, new_id())
        assert isinstance(exc_info.value, NotFoundError)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_post_after_reject(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        txn = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.WELLNESS_REWARD, 20
        )
        await svc.reject_transaction(make_db(), txn.id, "incomplete")

        with pytest.raises(InvalidStateError):
            await svc.post_transaction(make_db(), txn.id)
        assert repo.balance(account.id) == Decimal("0")

    async def test_joins_caller_unit_of_work(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        db = make_db()
        txn = await svc.create_pending_transaction(
            db, account.id, TransactionType.MANAGER_AWARD, 5, tx=db
        )
        await svc.post_transaction(db, txn.id, tx=db)
        db.commit.assert_not_awaited()


class TestRejectTransaction:
    async def test_reject_scenario(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        txn = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.WELLNESS_REWARD, 20
        )

        rejected = await svc.reject_transaction(make_db(), txn.id, "incomplete")

        assert rejected.status == "rejected"
        assert rejected.rejection_reason == "incomplete"
        assert rejected.rejected_at is not None
        assert repo.balance(account.id) == Decimal("0")
        assert repo.balance_changes == []

    async def test_reject_after_post(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        txn = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.MANAGER_AWARD, 50
        )
        await svc.post_transaction(make_db(), txn.id)

        with pytest.raises(InvalidTransactionStateError):
            await svc.reject_transaction(make_db(), txn.id, "too late")
        assert repo.transactions[txn.id].status == "posted"
        assert repo.balance(account.id) == Decimal("50")

    async def test_reject_unknown(self, svc: TransactionService) -> None:
        with pytest.raises(TransactionNotFoundError):
            await svc.reject_transaction(make_db(), new_id())


class TestBalance:
    async def test_posted_only(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account(balance=100)
        await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.WELLNESS_REWARD, 20
        )

        summary = await svc.get_account_balance(make_db(), account.id)

        assert summary.posted == Decimal("100")
        assert summary.pending == Decimal("0")
        assert summary.total == Decimal("100")

    async def test_include_pending_scenario(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account(balance=100)
        await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.WELLNESS_REWARD, 20
        )

        summary = await svc.get_account_balance(make_db(), account.id, include_pending=True)

        assert summary.posted == Decimal("100")
        assert summary.pending == Decimal("20")
        assert summary.total == Decimal("120")

    async def test_pending_debits_are_signed(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account(balance=100)
        await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.WELLNESS_REWARD, 20
        )
        await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.STORE_PURCHASE, 45
        )

        summary = await svc.get_account_balance(make_db(), account.id, include_pending=True)

        assert summary.pending == Decimal("-25")
        assert summary.total == summary.posted + summary.pending

    async def test_unknown_account(self, svc: TransactionService) -> None:
        with pytest.raises(AccountNotFoundError):
            await svc.get_account_balance(make_db(), new_id())

    async def test_spendable_subtracts_pending_debits_only(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account(balance=100)
        await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.WELLNESS_REWARD, 20
        )
        await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.PEER_TRANSFER_SENT, 30
        )

        assert await svc.get_spendable_balance(make_db(), account.id) == Decimal("70")


class TestConservation:
    async def test_balance_equals_sum_of_posted(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        plan = [
            (TransactionType.MANAGER_AWARD, 50, "post"),
            (TransactionType.WELLNESS_REWARD, 20, "reject"),
            (TransactionType.STORE_PURCHASE, 15, "post"),
            (TransactionType.ADJUSTMENT, 5, "leave"),
            (TransactionType.PEER_TRANSFER_RECEIVED, 7, "post"),
        ]
        for txn_type, amount, action in plan:
            txn = await svc.create_pending_transaction(make_db(), account.id, txn_type, amount)
            if action == "post":
                await svc.post_transaction(make_db(), txn.id)
            elif action == "reject":
                await svc.reject_transaction(make_db(), txn.id)

        assert repo.balance(account.id) == Decimal("42")
        statuses = sorted(t.status for t in repo.transactions.values())
        assert statuses == ["pending", "posted", "posted", "posted", "rejected"]


class TestTransferPair:
    async def test_transfer_scenario(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        sender = repo.add_account(balance=100)
        recipient = repo.add_account()
        db = make_db()

        pair = await svc.create_transfer_pair(
            db, sender.id, recipient.id, sender.employee_id, recipient.employee_id, 30, "thanks"
        )
        assert pair.sent.status == pair.received.status == "pending"
        assert repo.balance(sender.id) == Decimal("100")

        posted = await svc.post_transfer_pair(db, pair.sent.id, pair.received.id)

        assert posted.sent.status == posted.received.status == "posted"
        assert repo.balance(sender.id) == Decimal("70")
        assert repo.balance(recipient.id) == Decimal("30")

    async def test_same_account_rejected(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account(balance=100)
        with pytest.raises(SelfTransferError):
            await svc.create_transfer_pair(
                make_db(), account.id, account.id, account.employee_id, new_id(), 10
            )

    async def test_mismatched_legs_post_nothing(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        a = repo.add_account(balance=100)
        b = repo.add_account()
        sent = await svc.create_pending_transaction(
            make_db(), a.id, TransactionType.PEER_TRANSFER_SENT, 30
        )
        award = await svc.create_pending_transaction(
            make_db(), b.id, TransactionType.MANAGER_AWARD, 30
        )

        with pytest.raises(TransferPairMismatchError):
            await svc.post_transfer_pair(make_db(), sent.id, award.id)
        assert repo.balance_changes == []

    async def test_already_posted_leg_fails(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        a = repo.add_account(balance=100)
        b = repo.add_account()
        pair = await svc.create_transfer_pair(
            make_db(), a.id, b.id, a.employee_id, b.employee_id, 10
        )
        await svc.post_transfer_pair(make_db(), pair.sent.id, pair.received.id)

        with pytest.raises(InvalidStateError):
            await svc.post_transfer_pair(make_db(), pair.sent.id, pair.received.id)

    async def test_legs_post_in_account_order(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        a = repo.add_account(balance=100)
        b = repo.add_account(balance=100)
        for sender, recipient in ((a, b), (b, a)):
            repo.balance_changes.clear()
            pair = await svc.create_transfer_pair(
                make_db(), sender.id, recipient.id, sender.employee_id, recipient.employee_id, 5
            )
            await svc.post_transfer_pair(make_db(), pair.sent.id, pair.received.id)
            assert [c[0] for c in repo.balance_changes] == sorted([a.id, b.id])


class TestCompleteTransfer:
    async def _unclaimed(self, svc: TransactionService, repo: InMemoryLedgerRepository):  # type: ignore[no-untyped-def]
        sender = repo.add_account(balance=100)
        sent = await svc.create_pending_transaction(
            make_db(), sender.id, TransactionType.PEER_TRANSFER_SENT, 25, "welcome",
            source_employee_id=sender.employee_id,
        )
        return sender, sent

    async def test_settles_both_legs(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        sender, sent = await self._unclaimed(svc, repo)
        recipient = repo.add_account()

        pair = await svc.complete_transfer(
            make_db(), sent.id, recipient.id, recipient.employee_id
        )

        assert pair.sent.id == sent.id
        assert pair.sent.target_employee_id == recipient.employee_id
        assert pair.received.transaction_type == "peer_transfer_received"
        assert pair.received.source_employee_id == sender.employee_id
        assert pair.received.description == "welcome"
        assert pair.sent.status == pair.received.status == "posted"
        assert repo.balance(sender.id) == Decimal("75")
        assert repo.balance(recipient.id) == Decimal("25")

    async def test_second_completion_fails(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        _, sent = await self._unclaimed(svc, repo)
        recipient = repo.add_account()
        await svc.complete_transfer(make_db(), sent.id, recipient.id, recipient.employee_id)

        with pytest.raises(InvalidTransactionStateError):
            await svc.complete_transfer(make_db(), sent.id, recipient.id, recipient.employee_id)
        assert repo.balance(recipient.id) == Decimal("25")

    async def test_rejects_other_types(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        award = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.MANAGER_AWARD, 10
        )
        recipient = repo.add_account()

        with pytest.raises(TransferPairMismatchError):
            await svc.complete_transfer(make_db(), award.id, recipient.id, recipient.employee_id)

    async def test_unknown_sent_leg(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        recipient = repo.add_account()
        with pytest.raises(TransactionNotFoundError):
            await svc.complete_transfer(make_db(), new_id(), recipient.id, recipient.employee_id)

    async def test_to_sender_account(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        sender, sent = await self._unclaimed(svc, repo)
        db = make_db()
        with pytest.raises(SelfTransferError):
            await svc.complete_transfer(db, sent.id, sender.id, sender.employee_id)
        db.rollback.assert_awaited_once()


class TestLocking:
    async def test_lock_accounts_sorts_and_dedupes(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        ids = [repo.add_account().id for _ in range(3)]

        locked = await svc.lock_accounts(make_db(), [ids[2], ids[0], ids[2], ids[1]])

        assert repo.locks == sorted(ids)
        assert set(locked) == set(ids)

    async def test_lock_unknown_account(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        with pytest.raises(AccountNotFoundError):
            await svc.lock_accounts(make_db(), [repo.add_account().id, new_id()])


class TestPeriodTotal:
    async def test_excludes_rejected_and_other_windows(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account(balance=100)
        kept = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.PEER_TRANSFER_SENT, 10
        )
        await svc.post_transaction(make_db(), kept.id)
        await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.PEER_TRANSFER_SENT, 5
        )
        dropped = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.PEER_TRANSFER_SENT, 20
        )
        await svc.reject_transaction(make_db(), dropped.id, "no")
        old = await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.PEER_TRANSFER_SENT, 40
        )
        repo.transactions[old.id].created_at -= timedelta(days=2)
        await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.STORE_PURCHASE, 7
        )
        now = datetime.now(UTC)

        total = await svc.get_period_total(
            make_db(),
            TransactionType.PEER_TRANSFER_SENT,
            now - timedelta(days=1),
            now + timedelta(days=1),
            account_id=account.id,
        )

        assert total == Decimal("15")

    async def test_unknown_type(self, svc: TransactionService) -> None:
        now = datetime.now(UTC)
        with pytest.raises(InvalidTransactionTypeError):
            await svc.get_period_total(make_db(), "bonus", now, now)


class TestPartyHistory:
    async def test_transfer_history_pages(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        a = repo.add_account(balance=100)
        b = repo.add_account()
        for _ in range(3):
            pair = await svc.create_transfer_pair(
                make_db(), a.id, b.id, a.employee_id, b.employee_id, 1
            )
            await svc.post_transfer_pair(make_db(), pair.sent.id, pair.received.id)
        await svc.create_pending_transaction(make_db(), a.id, TransactionType.STORE_PURCHASE, 1)

        history = await svc.get_transfer_history(make_db(), a.id, limit=2)

        assert history.total == 3
        assert len(history.entries) == 2
        assert all(
            e.transaction.transaction_type == "peer_transfer_sent" for e in history.entries
        )

    async def test_award_history_invalid_page(self, svc: TransactionService) -> None:
        with pytest.raises(InvalidPaginationError):
            await svc.get_award_history(make_db(), new_id(), limit=0)


class TestHistory:
    async def test_filters_and_totals(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        for _ in range(3):
            txn = await svc.create_pending_transaction(
                make_db(), account.id, TransactionType.MANAGER_AWARD, 10
            )
            await svc.post_transaction(make_db(), txn.id)
        await svc.create_pending_transaction(
            make_db(), account.id, TransactionType.WELLNESS_REWARD, 5
        )

        history = await svc.get_transaction_history(
            make_db(), account.id, limit=2, status=TransactionStatus.POSTED
        )

        assert history.total == 3
        assert len(history.transactions) == 2
        assert history.limit == 2
        assert all(t.status == "posted" for t in history.transactions)

    async def test_default_and_clamped_limit(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        history = await svc.get_transaction_history(make_db(), account.id)
        assert history.limit == 50
        history = await svc.get_transaction_history(make_db(), account.id, limit=10_000)
        assert history.limit == 200

    @pytest.mark.parametrize("limit,offset", [(0, 0), (-1, 0), (10, -1)])
    async def test_invalid_pagination(
        self, svc: TransactionService, repo: InMemoryLedgerRepository, limit: int, offset: int
    ) -> None:
        account = repo.add_account()
        with pytest.raises(InvalidPaginationError):
            await svc.get_transaction_history(make_db(), account.id, limit=limit, offset=offset)

    async def test_unknown_status_filter(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        account = repo.add_account()
        with pytest.raises(InvalidStatusError) as exc:
            await svc.get_transaction_history(make_db(), account.id, status="done")
        assert isinstance(exc.value, ValidationError)
        assert exc.value.code == 2010
        assert "status" in exc.value.message


class TestAccounts:
    async def test_open_account_is_idempotent(
        self, svc: TransactionService, repo: InMemoryLedgerRepository
    ) -> None:
        employee_id = new_id()
        first = await svc.open_account(make_db(), employee_id)
        second = await svc.open_account(make_db(), employee_id)
        assert first.id == second.id
        assert first.balance == Decimal("0")
        assert len(repo.accounts) == 1

    async def test_account_for_unknown_employee(self, svc: TransactionService) -> None:
        with pytest.raises(AccountNotFoundError):
            await svc.get_account_for_employee(make_db(), new_id())
