"""Row materializers: raw row + mapping -> candidate record + verdict."""

from ledger_ingestion.domain.types import ImportMode
from ledger_ingestion.materializers.account import AccountMaterializer
from ledger_ingestion.materializers.base import RowMaterializer, materialize_rows
from ledger_ingestion.materializers.category import CategoryMaterializer
from ledger_ingestion.materializers.trade import TradeMaterializer
from ledger_ingestion.materializers.transaction import TransactionMaterializer


def default_materializer_registry(
    fallback_description: str = "Imported Transaction",
    default_currency: str = "EUR",
) -> dict[ImportMode, RowMaterializer]:
    """Return a dict of import mode -> materializer for every supported shape."""
    return {
        ImportMode.TRANSACTIONS: TransactionMaterializer(fallback_description),
        ImportMode.TRADES: TradeMaterializer(),
        ImportMode.ACCOUNTS: AccountMaterializer(default_currency),
        ImportMode.CATEGORIES: CategoryMaterializer(),
    }


__all__ = [
    "AccountMaterializer",
    "CategoryMaterializer",
    "RowMaterializer",
    "TradeMaterializer",
    "TransactionMaterializer",
    "default_materializer_registry",
    "materialize_rows",
]
