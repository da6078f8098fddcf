"""
Header classifier: propose a column mapping from header text alone.

For every column (in file order) the lower-cased header is tested against a
bilingual (English / Italian) keyword list per role.  The first column that
matches a role claims it; later matches never overwrite.  A single column may
claim several roles; the operator resolves such overlaps before commit (see
``ledger_ingestion.domain.validators``).

For ledger transactions, finding both an income-keyword column and an
expense-keyword column switches the proposal to dual-amount mode.

Pure and deterministic: the same header list always yields the same mapping.
"""

from __future__ import annotations

from typing import Sequence

from ledger_kernel.logging_config import get_logger

from ledger_ingestion.domain.types import (
    MAPPING_TYPES,
    ColumnMapping,
    ImportMode,
    TransactionMapping,
)

logger = get_logger("ingestion.classifier")

RoleKeywords = tuple[tuple[str, tuple[str, ...]], ...]

TRANSACTION_KEYWORDS: RoleKeywords = (
    ("date", ("date", "data")),
    ("description", ("description", "descrizione", "memo")),
    ("type", ("type", "tipo")),
    ("account", ("account", "conto")),
    ("category", ("category", "categoria")),
    ("income_amount", ("income", "entrata", "credit")),
    ("expense_amount", ("expense", "uscita", "debit")),
    ("amount", ("amount", "importo", "value")),
)

TRADE_KEYWORDS: RoleKeywords = (
    ("date", ("date", "data")),
    ("ticker", ("ticker", "symbol", "isin", "codice")),
    ("name", ("name", "nome", "titolo", "descrizione")),
    ("type", ("type", "tipo", "operazione", "side")),
    ("quantity", ("quantity", "quantità", "qty", "shares", "azioni")),
    ("price_per_unit", ("price", "prezzo", "unit")),
    ("total_amount", ("total", "amount", "importo", "controvalore")),
    ("fees", ("fee", "commissione", "commission", "costo")),
)

ACCOUNT_KEYWORDS: RoleKeywords = (
    ("name", ("name", "nome", "account", "conto")),
    ("type", ("type", "tipo")),
    ("balance", ("balance", "saldo")),
    ("currency", ("currency", "valuta")),
)

CATEGORY_KEYWORDS: RoleKeywords = (
    ("name", ("name", "nome", "category", "categoria")),
    ("type", ("type", "tipo")),
    ("budget", ("budget",)),
)

KEYWORDS_BY_MODE: dict[ImportMode, RoleKeywords] = {
    ImportMode.TRANSACTIONS: TRANSACTION_KEYWORDS,
    ImportMode.TRADES: TRADE_KEYWORDS,
    ImportMode.ACCOUNTS: ACCOUNT_KEYWORDS,
    ImportMode.CATEGORIES: CATEGORY_KEYWORDS,
}


def classify_columns(columns: Sequence[str], keywords: RoleKeywords) -> dict[str, str]:
    """Return role -> column for every role some column matched."""
    assigned: dict[str, str] = {}
    for column in columns:
        lower = column.lower()
        for role, words in keywords:
            if role in assigned:
                continue
            if any(word in lower for word in words):
                assigned[role] = column
    return assigned


def propose_mapping(columns: Sequence[str], mode: ImportMode | str) -> ColumnMapping:
    """Propose the column mapping for one import mode."""
    mode = ImportMode.parse(mode)
    assigned = classify_columns(columns, KEYWORDS_BY_MODE[mode])
    mapping_type = MAPPING_TYPES[mode]
    if mapping_type is TransactionMapping:
        dual = "income_amount" in assigned and "expense_amount" in assigned
        mapping = TransactionMapping(**assigned, dual_amount=dual)
    else:
        mapping = mapping_type(**assigned)

    logger.debug(
        "mapping_proposed",
        extra={
            "mode": mode.value,
            "column_count": len(columns),
            "assigned": assigned,
        },
    )
    return mapping


def propose_mappings(columns: Sequence[str]) -> dict[ImportMode, ColumnMapping]:
    """Propose one mapping per import mode."""
    return {mode: propose_mapping(columns, mode) for mode in ImportMode}
