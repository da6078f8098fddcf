"""
CSV source adapter.

Uses csv.reader.  Configurable: delimiter (sniffed among ``, ; TAB |`` when
not given), encoding, skip_rows.  Handles BOM via utf-8-sig when encoding
is utf-8.  Blank lines are dropped; short rows are padded with empty cells
and surplus cells beyond the header are ignored.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Any

from ledger_kernel.exceptions import SourceReadError

from ledger_ingestion.adapters.base import SourceTable, dedupe_headers, is_blank_row

_SNIFF_DELIMITERS = ",;\t|"
_SNIFF_CHARS = 64 * 1024


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() == "utf-8":
        return "utf-8-sig"  # Strip BOM if present
    return enc


def _sniff_delimiter(sample: str) -> str:
    try:
        return csv.Sniffer().sniff(sample, delimiters=_SNIFF_DELIMITERS).delimiter
    except csv.Error:
        return ","


class CsvSourceAdapter:
    """Read a delimited text file into a SourceTable."""

    def read(self, source_path: Path, options: dict[str, Any]) -> SourceTable:
        encoding = _get_encoding(options)
        skip_rows = int(options.get("skip_rows", 0))
        try:
            with source_path.open("r", encoding=encoding, newline="") as f:
                buffer = io.StringIO(f.read())
            for _ in range(skip_rows):
                buffer.readline()
            body = buffer.read()
            delimiter = options.get("delimiter") or _sniff_delimiter(body[:_SNIFF_CHARS])
            records = list(csv.reader(io.StringIO(body), delimiter=delimiter))
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise SourceReadError(str(source_path), str(exc)) from exc

        records = [r for r in records if not is_blank_row(r)]
        if not records:
            return SourceTable(columns=(), rows=(), detected_delimiter=delimiter)

        columns = dedupe_headers([h.strip() for h in records[0]])
        rows = []
        for record in records[1:]:
            padded = record + [""] * (len(columns) - len(record))
            rows.append(dict(zip(columns, padded)))
        return SourceTable(columns=tuple(columns), rows=tuple(rows), detected_delimiter=delimiter)
