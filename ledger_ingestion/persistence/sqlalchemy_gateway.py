"""
SQLAlchemy-backed persistence gateway.

Reference implementation of ``PersistenceGateway`` over the kernel ORM
models.  The coroutine methods run their work synchronously on the given
``Session``; the async signatures are the contract, not a promise of
non-blocking I/O.

Guarantees:
    - Each bulk call adds every record then commits once; any database
      error rolls the whole call back and raises ``PersistenceError``.
    - ``create_holding`` is create-or-reuse on the uppercased ticker.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import (
    CatalogUnavailableError,
    HoldingCreationError,
    PersistenceError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models import Account, Category, Holding, LedgerTransaction, Trade

from ledger_ingestion.domain.types import (
    AccountType,
    CatalogAccount,
    CatalogCategory,
    CatalogHolding,
    CategoryType,
    EntityCatalog,
)
from ledger_ingestion.persistence.requests import (
    AccountRequest,
    CategoryRequest,
    HoldingRequest,
    TradeRequest,
    TransactionRequest,
)

logger = get_logger("ingestion.persistence")


class SqlAlchemyGateway:
    """Persists import results through a SQLAlchemy session."""

    def __init__(self, session: Session):
        self._session = session

    async def fetch_catalog(self) -> EntityCatalog:
        try:
            accounts = self._session.scalars(select(Account).order_by(Account.id)).all()
            categories = self._session.scalars(select(Category).order_by(Category.id)).all()
            holdings = self._session.scalars(select(Holding).order_by(Holding.id)).all()
            catalog = EntityCatalog(
                accounts=tuple(
                    CatalogAccount(id=a.id, name=a.name, type=AccountType(a.type))
                    for a in accounts
                ),
                categories=tuple(
                    CatalogCategory(id=c.id, name=c.name, type=CategoryType(c.type))
                    for c in categories
                ),
                holdings=tuple(
                    CatalogHolding(
                        id=h.id,
                        ticker=h.ticker,
                        name=h.name,
                        asset_type=h.asset_type,
                        currency=h.currency,
                    )
                    for h in holdings
                ),
            )
        except (SQLAlchemyError, ValueError) as exc:
            raise CatalogUnavailableError(str(exc)) from exc

        logger.debug(
            "catalog_fetched",
            extra={
                "accounts": len(catalog.accounts),
                "categories": len(catalog.categories),
                "holdings": len(catalog.holdings),
            },
        )
        return catalog

    async def create_holding(self, request: HoldingRequest) -> int:
        ticker = request.ticker.upper()
        try:
            existing = self._session.scalar(
                select(Holding).where(func.upper(Holding.ticker) == ticker)
            )
            if existing is not None:
                return existing.id
            holding = Holding(
                ticker=ticker,
                name=request.name,
                asset_type=request.asset_type,
                currency=request.currency,
            )
            self._session.add(holding)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise HoldingCreationError(ticker, str(exc)) from exc
        return holding.id

    def _bulk_add(self, operation: str, rows: list) -> int:
        if not rows:
            return 0
        try:
            self._session.add_all(rows)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistenceError(operation, str(exc)) from exc
        logger.debug("bulk_insert_committed", extra={"operation": operation, "count": len(rows)})
        return len(rows)

    async def bulk_create_transactions(self, requests: Sequence[TransactionRequest]) -> int:
        return self._bulk_add(
            "bulk_create_transactions",
            [
                LedgerTransaction(
                    date=r.date,
                    amount=r.amount,
                    description=r.description,
                    account_id=r.account_id,
                    category_id=r.category_id,
                    type=r.direction,
                )
                for r in requests
            ],
        )

    async def bulk_create_trades(self, requests: Sequence[TradeRequest]) -> int:
        return self._bulk_add(
            "bulk_create_trades",
            [
                Trade(
                    holding_id=r.holding_id,
                    date=r.date,
                    quantity=r.quantity,
                    price_per_unit=r.price_per_unit,
                    total_amount=r.total_amount,
                    fees=r.fees,
                    type=r.direction,
                )
                for r in requests
            ],
        )

    async def bulk_create_accounts(self, requests: Sequence[AccountRequest]) -> int:
        return self._bulk_add(
            "bulk_create_accounts",
            [
                Account(
                    name=r.name,
                    type=r.type,
                    starting_balance=r.starting_balance,
                    currency=r.currency,
                    color=r.color,
                    credit_limit=r.credit_limit,
                )
                for r in requests
            ],
        )

    async def bulk_create_categories(self, requests: Sequence[CategoryRequest]) -> int:
        return self._bulk_add(
            "bulk_create_categories",
            [
                Category(
                    name=r.name,
                    type=r.type,
                    color=r.color,
                    icon=r.icon,
                    budget=r.budget,
                )
                for r in requests
            ],
        )
