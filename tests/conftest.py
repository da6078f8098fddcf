"""
Pytest fixtures for the ledger import test suite.

Provides:
- Structured logging configured once per session, plus a log capture fixture
- A DeterministicClock pinned to 2024-06-15 12:00 UTC
- A sample EntityCatalog (two accounts, income/expense/transfer categories,
  one holding) and a resolver over it
- A recording in-memory PersistenceGateway
- An in-memory SQLite session for the SQLAlchemy gateway
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.exceptions import HoldingCreationError, PersistenceError
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_ingestion.domain.types import (
    AccountType,
    CatalogAccount,
    CatalogCategory,
    CatalogHolding,
    CategoryType,
    EntityCatalog,
)
from ledger_ingestion.resolution.resolver import EntityResolver


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ...):
            ...
            assert any(r["message"] == "batch_submitted" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def sample_catalog() -> EntityCatalog:
    return EntityCatalog(
        accounts=(
            CatalogAccount(id=1, name="Main Checking", type=AccountType.CHECKING),
            CatalogAccount(id=2, name="Savings", type=AccountType.SAVINGS),
        ),
        categories=(
            CatalogCategory(id=10, name="Salary", type=CategoryType.INCOME),
            CatalogCategory(id=11, name="Groceries", type=CategoryType.EXPENSE),
            CatalogCategory(id=12, name="Refunds", type=CategoryType.EXPENSE),
            CatalogCategory(id=13, name="Refunds", type=CategoryType.INCOME),
            CatalogCategory(id=14, name="Transfer", type=CategoryType.TRANSFER),
        ),
        holdings=(
            CatalogHolding(id=50, ticker="VWCE", name="Vanguard FTSE All-World", asset_type="etf", currency="EUR"),
        ),
    )


@pytest.fixture
def resolver(sample_catalog) -> EntityResolver:
    return EntityResolver(sample_catalog)


# =============================================================================
# Fake persistence gateway
# =============================================================================


class RecordingGateway:
    """
    In-memory PersistenceGateway that records every call.

    ``failing_tickers`` makes create_holding raise HoldingCreationError for
    those tickers; ``fail_bulk`` makes every bulk call raise PersistenceError;
    ``on_create_holding`` is called with the request before each creation.
    """

    def __init__(self, catalog: EntityCatalog):
        self.catalog = catalog
        self.failing_tickers: set[str] = set()
        self.fail_bulk = False
        self.on_create_holding = None
        self.holding_requests: list = []
        self.transactions: list = []
        self.trades: list = []
        self.accounts: list = []
        self.categories: list = []
        self.bulk_calls: list[str] = []
        self._next_id = 100

    async def fetch_catalog(self) -> EntityCatalog:
        return self.catalog

    async def create_holding(self, request) -> int:
        self.holding_requests.append(request)
        if self.on_create_holding is not None:
            self.on_create_holding(request)
        await asyncio.sleep(0)
        if request.ticker in self.failing_tickers:
            raise HoldingCreationError(request.ticker, "rejected by test gateway")
        self._next_id += 1
        return self._next_id

    async def _bulk(self, name: str, sink: list, requests) -> int:
        self.bulk_calls.append(name)
        if self.fail_bulk:
            raise PersistenceError(name, "rejected by test gateway")
        sink.extend(requests)
        return len(requests)

    async def bulk_create_transactions(self, requests) -> int:
        return await self._bulk("transactions", self.transactions, requests)

    async def bulk_create_trades(self, requests) -> int:
        return await self._bulk("trades", self.trades, requests)

    async def bulk_create_accounts(self, requests) -> int:
        return await self._bulk("accounts", self.accounts, requests)

    async def bulk_create_categories(self, requests) -> int:
        return await self._bulk("categories", self.categories, requests)


@pytest.fixture
def gateway(sample_catalog) -> RecordingGateway:
    return RecordingGateway(sample_catalog)


@pytest.fixture
def make_gateway():
    """Factory for a RecordingGateway over an arbitrary catalog."""
    return RecordingGateway


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory SQLite database with all tables created."""
    init_engine_from_url("sqlite://")
    create_tables()
    session = get_session()
    try:
        yield session
    finally:
        session.close()
        drop_tables()
        reset_engine()
