"""
Entity resolver: turn account / category / ticker text into catalog ids.

Contract:
    Account and category resolution are synchronous, side-effect free and
    driven only by the EntityCatalog and the session's default account.
    Holding resolution is the single asynchronous, side-effecting path:
    a ticker absent from the catalog is created through the persistence
    gateway exactly once per resolver, however many rows reference it.

Account fallback chain (first success wins):
    1. account column mapped, cell non-empty -> case-insensitive name match,
       otherwise UNRESOLVED.  An explicit but unknown account never lands
       on another account.
    2. account column mapped, cell empty -> session default account,
       otherwise UNRESOLVED.
    3. account column unmapped -> session default account, otherwise the
       first catalog account, otherwise UNRESOLVED (empty catalog).

Category fallback chain (never fails while the catalog has a category):
    name + direction, name only, numeric catalog id, first category with
    the row's direction, first category.

Holding resolution:
    ticker -> id cache plus one asyncio.Lock per uppercased ticker.  The
    cache only ever receives ids from completed resolutions, so a cancelled
    or failed creation leaves no entry behind.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from ledger_kernel.domain.dtos import ValidationError
from ledger_kernel.exceptions import HoldingCreationError, PersistenceError
from ledger_kernel.logging_config import get_logger

from ledger_ingestion.domain.types import (
    CatalogHolding,
    CategoryType,
    Direction,
    EntityCatalog,
)
from ledger_ingestion.persistence.requests import HoldingRequest

if TYPE_CHECKING:
    from ledger_ingestion.persistence.base import PersistenceGateway

logger = get_logger("ingestion.resolver")


class ResolutionOutcome(str, Enum):
    """How a reference was resolved."""

    MATCHED_NAME = "matched_name"
    MATCHED_NAME_AND_DIRECTION = "matched_name_and_direction"
    MATCHED_ID = "matched_id"
    SESSION_DEFAULT = "session_default"
    DIRECTION_DEFAULT = "direction_default"
    FIRST_IN_CATALOG = "first_in_catalog"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Resolution:
    entity_id: int | None
    outcome: ResolutionOutcome
    warning: ValidationError | None = None

    @property
    def resolved(self) -> bool:
        return self.entity_id is not None


def _cell_text(raw: Any) -> str:
    return "" if raw is None else str(raw).strip()


class EntityResolver:
    """
    Resolves references for one import session.

    One resolver instance owns one holding cache.  Share it across the
    preview and commit of a session; build a new one for a new session.
    """

    def __init__(
        self,
        catalog: EntityCatalog,
        default_account_id: int | None = None,
        asset_type: str = "stock",
        currency: str = "EUR",
    ):
        self._catalog = catalog
        self._default_account_id = default_account_id
        self._asset_type = asset_type
        self._currency = currency
        self._holding_cache: dict[str, int] = {}
        self._holding_locks: dict[str, asyncio.Lock] = {}
        self._created_tickers: list[str] = []

    @property
    def catalog(self) -> EntityCatalog:
        return self._catalog

    @property
    def created_tickers(self) -> tuple[str, ...]:
        """Tickers this resolver created through the gateway, in creation order."""
        return tuple(self._created_tickers)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def resolve_account(self, raw: Any, column_mapped: bool) -> Resolution:
        text = _cell_text(raw)
        if column_mapped and text:
            account = self._catalog.account_by_name(text)
            if account is not None:
                return Resolution(account.id, ResolutionOutcome.MATCHED_NAME)
            return Resolution(
                None,
                ResolutionOutcome.UNRESOLVED,
                ValidationError(
                    code="ACCOUNT_UNRESOLVED",
                    message=f"Account '{text}' does not exist",
                    field="account",
                    details={"raw": text},
                ),
            )

        if self._default_account_id is not None:
            return Resolution(self._default_account_id, ResolutionOutcome.SESSION_DEFAULT)

        if not column_mapped and self._catalog.accounts:
            return Resolution(self._catalog.accounts[0].id, ResolutionOutcome.FIRST_IN_CATALOG)

        message = (
            "Account cell is empty and no default account was selected"
            if column_mapped
            else "No account is available to post to"
        )
        return Resolution(
            None,
            ResolutionOutcome.UNRESOLVED,
            ValidationError(code="ACCOUNT_UNRESOLVED", message=message, field="account"),
        )

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def _default_category(self, direction: Direction) -> Resolution | None:
        wanted = CategoryType(direction.value)
        for category in self._catalog.categories:
            if category.type is wanted:
                return Resolution(category.id, ResolutionOutcome.DIRECTION_DEFAULT)
        if self._catalog.categories:
            return Resolution(self._catalog.categories[0].id, ResolutionOutcome.FIRST_IN_CATALOG)
        return None

    def resolve_category(self, raw: Any, direction: Direction, column_mapped: bool) -> Resolution:
        text = _cell_text(raw)
        if column_mapped and text:
            by_name = self._catalog.categories_by_name(text)
            for category in by_name:
                if category.type.value == direction.value:
                    return Resolution(category.id, ResolutionOutcome.MATCHED_NAME_AND_DIRECTION)
            if by_name:
                return Resolution(by_name[0].id, ResolutionOutcome.MATCHED_NAME)
            if text.isdigit():
                category = self._catalog.category_by_id(int(text))
                if category is not None:
                    return Resolution(category.id, ResolutionOutcome.MATCHED_ID)

            fallback = self._default_category(direction)
            if fallback is not None:
                return Resolution(
                    fallback.entity_id,
                    fallback.outcome,
                    ValidationError(
                        code="CATEGORY_DEFAULTED",
                        message=f"Category '{text}' does not exist; using a default",
                        field="category",
                        details={"raw": text, "category_id": fallback.entity_id},
                    ),
                )
        else:
            fallback = self._default_category(direction)
            if fallback is not None:
                return fallback

        return Resolution(
            None,
            ResolutionOutcome.UNRESOLVED,
            ValidationError(
                code="NO_CATEGORY",
                message="The catalog has no categories; transaction left uncategorized",
                field="category",
            ),
        )

    # ------------------------------------------------------------------
    # Holdings
    # ------------------------------------------------------------------

    def lookup_holding(self, ticker: str) -> int | None:
        """Cached or catalog id for ``ticker``; never creates anything."""
        key = ticker.strip().upper()
        if key in self._holding_cache:
            return self._holding_cache[key]
        holding = self._catalog.holding_by_ticker(key)
        return holding.id if holding is not None else None

    async def resolve_holding(
        self,
        ticker: str,
        name: str,
        gateway: PersistenceGateway,
    ) -> int:
        """
        Resolve ``ticker`` to a holding id, creating the holding if needed.

        Concurrent calls for the same ticker are serialized on that
        ticker's lock; only the first one may reach the gateway.

        Raises:
            HoldingCreationError: the gateway could not create the holding.
        """
        key = ticker.strip().upper()
        cached = self._holding_cache.get(key)
        if cached is not None:
            return cached

        lock = self._holding_locks.setdefault(key, asyncio.Lock())
        async with lock:
            cached = self._holding_cache.get(key)
            if cached is not None:
                return cached

            existing = self._catalog.holding_by_ticker(key)
            if existing is not None:
                self._holding_cache[key] = existing.id
                return existing.id

            request = HoldingRequest(
                ticker=key,
                name=name.strip() or key,
                asset_type=self._asset_type,
                currency=self._currency,
            )
            try:
                holding_id = await gateway.create_holding(request)
            except HoldingCreationError:
                raise
            except PersistenceError as exc:
                raise HoldingCreationError(key, exc.reason) from exc

            self._holding_cache[key] = holding_id
            self._created_tickers.append(key)
            self._catalog = self._catalog.with_holding(
                CatalogHolding(
                    id=holding_id,
                    ticker=key,
                    name=request.name,
                    asset_type=request.asset_type,
                    currency=request.currency,
                )
            )
            logger.info(
                "holding_created",
                extra={"ticker": key, "holding_id": holding_id},
            )
            return holding_id
