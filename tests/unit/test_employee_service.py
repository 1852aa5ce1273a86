"""Unit tests for EmployeeService provisioning and lookups."""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.gc_common.errors import EmailExistsError, EmployeeNotFoundError, InvalidIdentifierError
from src.gc_gateway.employee.db_models import EmployeeModel
from src.gc_gateway.employee.service import EmployeeService
from src.gc_ledger.application.service import TransactionService
from tests.fakes import InMemoryLedgerRepository


def _session(existing: object | None = None) -> MagicMock:
    """Session double whose SELECT returns ``existing`` and whose flush assigns an id."""
    db = MagicMock()
    result = MagicMock()
    result.scalar_one_or_none.return_value = existing
    db.execute = AsyncMock(return_value=result)
    db.commit = AsyncMock()
    db.rollback = AsyncMock()

    added: list[EmployeeModel] = []
    db.add.side_effect = added.append

    async def flush() -> None:
        for obj in added:
            obj.id = uuid.uuid4()

    db.flush = AsyncMock(side_effect=flush)
    return db


class TestProvision:
    async def test_creates_employee_and_account(self) -> None:
        ledger_repo = InMemoryLedgerRepository()
        svc = EmployeeService(TransactionService(ledger_repo))
        db = _session()

        employee, account = await svc.provision(db, "  Ada@Example.com ", "Ada", is_manager=True)

        assert employee.email == "ada@example.com"
        assert employee.is_manager is True
        assert account.employee_id == str(employee.id)
        assert account.balance == Decimal("0")
        assert len(ledger_repo.accounts) == 1
        db.commit.assert_awaited_once()

    async def test_duplicate_email(self) -> None:
        ledger_repo = InMemoryLedgerRepository()
        svc = EmployeeService(TransactionService(ledger_repo))
        db = _session(existing=MagicMock())

        with pytest.raises(EmailExistsError):
            await svc.provision(db, "ada@example.com", "Ada")

        db.rollback.assert_awaited_once()
        assert ledger_repo.accounts == {}


class TestLookup:
    async def test_get_by_id_inactive(self) -> None:
        inactive = MagicMock(is_active=False)
        svc = EmployeeService(TransactionService(InMemoryLedgerRepository()))
        with pytest.raises(EmployeeNotFoundError):
            await svc.get_by_id(_session(existing=inactive), str(uuid.uuid4()))

    async def test_get_by_id_malformed(self) -> None:
        svc = EmployeeService(TransactionService(InMemoryLedgerRepository()))
        with pytest.raises(InvalidIdentifierError):
            await svc.get_by_id(_session(), "nope")

    async def test_find_by_email_normalizes(self) -> None:
        found = MagicMock(is_active=True)
        db = _session(existing=found)
        svc = EmployeeService(TransactionService(InMemoryLedgerRepository()))
        assert await svc.find_by_email(db, " ADA@example.com") is found
        statement = db.execute.await_args.args[0]
        assert list(statement.compile().params.values()) == ["ada@example.com"]

    async def test_find_by_email_missing(self) -> None:
        svc = EmployeeService(TransactionService(InMemoryLedgerRepository()))
        assert await svc.find_by_email(_session(), "nobody@example.com") is None
