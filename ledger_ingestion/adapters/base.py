"""
Source adapter protocol and the table DTO it returns.

Contract:
    SourceAdapter.read() turns one uploaded file into a SourceTable: the
    header as column names plus one raw row (column -> cell) per data line.
    Quoting, escaping and delimiters are handled here, never by the engine.
    Unreadable input raises SourceReadError.

Architecture: ledger_ingestion/adapters. File I/O only, no DB imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class SourceTable:
    """Header plus raw rows of one file; fully materialized, do not mutate."""

    columns: tuple[str, ...]
    rows: tuple[dict[str, Any], ...]
    detected_delimiter: str | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for reading uploaded files into raw rows."""

    def read(self, source_path: Path, options: dict[str, Any]) -> SourceTable:
        ...


def dedupe_headers(raw_headers: list[str]) -> list[str]:
    """Make header names unique (``Amount``, ``Amount_1``...) and fill blanks."""
    headers: list[str] = []
    for index, raw in enumerate(raw_headers):
        key = raw or f"Column_{index + 1}"
        base = key
        count = 0
        while key in headers:
            count += 1
            key = f"{base}_{count}"
        headers.append(key)
    return headers


def is_blank_row(values: list[Any]) -> bool:
    return not any(v not in ("", None) for v in values)
