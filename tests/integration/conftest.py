"""Integration-test fixtures (requires a migrated PostgreSQL).

Pre-condition: alembic upgrade head

All integration tests share a single event loop so that the module-level
SQLAlchemy async engine pool (created at import time) stays valid across the
session. Rate limiting is disabled by tests/conftest.py, so Redis is not needed.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError

from src.gc_common.database import engine
from src.main import app


@pytest_asyncio.fixture(loop_scope="session", scope="session", autouse=True)
async def _database() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM ledger_transactions LIMIT 1"))
    except (OSError, OperationalError, DBAPIError) as exc:
        pytest.skip(f"PostgreSQL with migrated schema not available: {exc}")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
