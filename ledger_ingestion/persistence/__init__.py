"""Persistence boundary: request shapes, the gateway protocol, and a SQLAlchemy gateway."""

from ledger_ingestion.persistence.base import PersistenceGateway
from ledger_ingestion.persistence.requests import (
    AccountRequest,
    CategoryRequest,
    HoldingRequest,
    TradeRequest,
    TransactionRequest,
)

__all__ = [
    "AccountRequest",
    "CategoryRequest",
    "HoldingRequest",
    "PersistenceGateway",
    "TradeRequest",
    "TransactionRequest",
]
