"""
XLSX source adapter for spreadsheet exports.

Supports:
  - sheet by index (0-based) or name
  - header row by index or auto-detect (scans the first rows for a row whose
    cells match at least 2 header keywords of any import mode)
  - skip_rows before header

Cell values keep their spreadsheet type where the engine can use it: date
cells stay ``date`` / ``datetime`` (the date parser accepts them as-is) and
numbers stay numbers; text is stripped.
"""

from __future__ import annotations

import re
import zipfile
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from ledger_kernel.exceptions import SourceReadError

from ledger_ingestion.adapters.base import SourceTable, dedupe_headers, is_blank_row
from ledger_ingestion.mapping.classifier import KEYWORDS_BY_MODE

_HEADER_KEYWORDS = frozenset(
    word for keywords in KEYWORDS_BY_MODE.values() for _, words in keywords for word in words
)
_HEADER_SEARCH_ROWS = 15
_MIN_HEADER_KEYWORDS = 2
_MAX_ROWS = 100_000


def _normalize_header_cell(value: Any) -> str:
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return value.strip()
    return value


def _header_score(values: tuple[Any, ...]) -> int:
    matched: set[str] = set()
    for value in values:
        text = _normalize_header_cell(value).lower()
        if not text:
            continue
        matched.update(kw for kw in _HEADER_KEYWORDS if kw in text)
    return len(matched)


def _detect_header_row(rows: list[tuple[Any, ...]]) -> int:
    """0-based index of the first row that looks like a header; 0 if none does."""
    for index, row in enumerate(rows[:_HEADER_SEARCH_ROWS]):
        if _header_score(row) >= _MIN_HEADER_KEYWORDS:
            return index
    return 0


def _column_count(row: tuple[Any, ...]) -> int:
    count = 0
    for index, value in enumerate(row):
        if _cell_value(value) != "":
            count = index + 1
    return max(count, 1)


class XlsxSourceAdapter:
    """
    Read .xlsx files into a SourceTable.

    source_options:
      sheet: 0-based sheet index (int) or sheet name (str). Default: active sheet.
      skip_rows: rows to skip at the top of the sheet. Default: 0.
      header_row: 0-based row index (after skip_rows) of the header; disables
        auto-detection.
    """

    def read(self, source_path: Path, options: dict[str, Any]) -> SourceTable:
        try:
            wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        except (OSError, InvalidFileException, zipfile.BadZipFile) as exc:
            raise SourceReadError(str(source_path), str(exc)) from exc

        try:
            sheet = self._get_sheet(wb, options, source_path)
            skip_rows = int(options.get("skip_rows", 0))
            rows = list(
                sheet.iter_rows(min_row=1 + skip_rows, max_row=_MAX_ROWS, values_only=True)
            )
        finally:
            wb.close()

        if not rows:
            return SourceTable(columns=(), rows=())

        header_row = options.get("header_row")
        hi = int(header_row) if header_row is not None else _detect_header_row(rows)

        ncols = _column_count(rows[hi])
        columns = dedupe_headers(
            [_normalize_header_cell(rows[hi][c] if c < len(rows[hi]) else None) for c in range(ncols)]
        )

        records = []
        for row in rows[hi + 1 :]:
            values = [_cell_value(row[c]) if c < len(row) else "" for c in range(ncols)]
            if is_blank_row(values):
                continue
            records.append(dict(zip(columns, values)))
        return SourceTable(columns=tuple(columns), rows=tuple(records))

    def _get_sheet(self, wb: Any, options: dict[str, Any], source_path: Path) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.active
        try:
            if isinstance(sheet_ref, int):
                return wb.worksheets[sheet_ref]
            return wb[sheet_ref]
        except (IndexError, KeyError) as exc:
            raise SourceReadError(str(source_path), f"no sheet {sheet_ref!r}") from exc
