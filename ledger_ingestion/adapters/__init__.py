"""Source adapters: uploaded file -> header + raw rows."""

from ledger_ingestion.adapters.base import SourceAdapter, SourceTable
from ledger_ingestion.adapters.csv_adapter import CsvSourceAdapter
from ledger_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter


def default_adapters() -> dict[str, SourceAdapter]:
    """Return a dict of file suffix -> adapter."""
    csv_adapter = CsvSourceAdapter()
    return {
        ".csv": csv_adapter,
        ".txt": csv_adapter,
        ".tsv": csv_adapter,
        ".xlsx": XlsxSourceAdapter(),
    }


__all__ = [
    "CsvSourceAdapter",
    "SourceAdapter",
    "SourceTable",
    "XlsxSourceAdapter",
    "default_adapters",
]
