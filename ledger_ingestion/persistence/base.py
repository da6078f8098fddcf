"""
Persistence gateway protocol.

The import engine never writes to storage itself.  Everything it persists
goes through an object implementing ``PersistenceGateway``: one catalog
fetch before materialization, create-or-reuse calls for holdings, and one
bulk-create call per record shape.

Implementations raise ``PersistenceError`` (``HoldingCreationError`` for
holdings, ``CatalogUnavailableError`` for the catalog fetch).  Each bulk
call is all-or-nothing and returns the number of records created.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from ledger_ingestion.domain.types import EntityCatalog
from ledger_ingestion.persistence.requests import (
    AccountRequest,
    CategoryRequest,
    HoldingRequest,
    TradeRequest,
    TransactionRequest,
)


@runtime_checkable
class PersistenceGateway(Protocol):
    """Asynchronous boundary to whatever stores ledger records."""

    async def fetch_catalog(self) -> EntityCatalog:
        ...

    async def create_holding(self, request: HoldingRequest) -> int:
        """Return the id of the holding for ``request.ticker``, creating it if absent."""
        ...

    async def bulk_create_transactions(self, requests: Sequence[TransactionRequest]) -> int:
        ...

    async def bulk_create_trades(self, requests: Sequence[TradeRequest]) -> int:
        ...

    async def bulk_create_accounts(self, requests: Sequence[AccountRequest]) -> int:
        ...

    async def bulk_create_categories(self, requests: Sequence[CategoryRequest]) -> int:
        ...
