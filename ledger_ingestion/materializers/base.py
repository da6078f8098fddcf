"""
RowMaterializer protocol and shared cell helpers.

A materializer turns one raw row plus its shape's column mapping into a
MaterializedRow: the candidate record, a verdict, the reasons for an
INVALID verdict and any non-fatal parse warnings.  Materialization is
synchronous and has no side effects; holding creation is deferred to the
batch committer.
"""

from __future__ import annotations

import hashlib
from typing import Any, Iterable, Protocol, Sequence

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import ValidationError
from ledger_kernel.logging_config import get_logger

from ledger_ingestion.domain.types import (
    Candidate,
    ColumnMapping,
    ImportMode,
    MaterializedRow,
    RawRow,
    Verdict,
)
from ledger_ingestion.resolution.resolver import EntityResolver

logger = get_logger("ingestion.materializer")


class RowMaterializer(Protocol):
    """Protocol for turning raw rows of one shape into candidate records."""

    @property
    def mode(self) -> ImportMode:
        """Import mode this materializer handles."""
        ...

    def materialize(
        self,
        row: RawRow,
        source_row: int,
        mapping: ColumnMapping,
        resolver: EntityResolver,
        clock: Clock,
    ) -> MaterializedRow:
        ...


def cell(row: RawRow, column: str | None) -> Any:
    """Raw cell for ``column``, or None when the role is unset or the column absent."""
    if not column:
        return None
    return row.get(column)


def cell_text(row: RawRow, column: str | None) -> str:
    value = cell(row, column)
    return "" if value is None else str(value).strip()


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(k in lowered for k in keywords)


def derive_color(name: str) -> str:
    """Stable ``#rrggbb`` display colour for an imported entity name."""
    digest = hashlib.sha1(name.strip().lower().encode("utf-8")).hexdigest()
    return f"#{digest[:6]}"


def build_row(
    source_row: int,
    candidate: Candidate,
    reasons: Sequence[ValidationError],
    warnings: Sequence[ValidationError | None],
) -> MaterializedRow:
    return MaterializedRow(
        source_row=source_row,
        candidate=candidate,
        verdict=Verdict.INVALID if reasons else Verdict.VALID,
        reasons=tuple(reasons),
        warnings=tuple(w for w in warnings if w is not None),
    )


def materialize_rows(
    rows: Iterable[RawRow],
    mapping: ColumnMapping,
    materializer: RowMaterializer,
    resolver: EntityResolver,
    clock: Clock,
) -> list[MaterializedRow]:
    """Materialize every row; ``source_row`` numbering starts at 1."""
    results: list[MaterializedRow] = []
    for index, row in enumerate(rows, start=1):
        result = materializer.materialize(row, index, mapping, resolver, clock)
        if not result.is_valid:
            logger.debug(
                "row_rejected",
                extra={
                    "source_row": index,
                    "reasons": [r.code for r in result.reasons],
                },
            )
        results.append(result)
    return results
