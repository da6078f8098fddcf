"""Category materializer (bulk category import)."""

from __future__ import annotations

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import ValidationError

from ledger_ingestion.domain.numbers import coerce_number
from ledger_ingestion.domain.types import (
    CategoryCandidate,
    CategoryMapping,
    CategoryType,
    ImportMode,
    MaterializedRow,
    RawRow,
)
from ledger_ingestion.materializers.base import (
    build_row,
    cell,
    cell_text,
    contains_any,
    derive_color,
)
from ledger_ingestion.resolution.resolver import EntityResolver

INCOME_KEYWORDS = ("income", "entrata")
TRANSFER_KEYWORDS = ("transfer", "trasferimento", "giroconto")


def parse_category_type(raw: str) -> CategoryType:
    if contains_any(raw, INCOME_KEYWORDS):
        return CategoryType.INCOME
    if contains_any(raw, TRANSFER_KEYWORDS):
        return CategoryType.TRANSFER
    return CategoryType.EXPENSE


class CategoryMaterializer:
    """Materializes category rows."""

    @property
    def mode(self) -> ImportMode:
        return ImportMode.CATEGORIES

    def materialize(
        self,
        row: RawRow,
        source_row: int,
        mapping: CategoryMapping,
        resolver: EntityResolver,
        clock: Clock,
    ) -> MaterializedRow:
        name = cell_text(row, mapping.name)
        budget = None
        warnings = []
        if cell_text(row, mapping.budget):
            parsed = coerce_number(cell(row, mapping.budget), "budget", preserve_sign=False)
            budget = parsed.value
            warnings.append(parsed.warning)

        candidate = CategoryCandidate(
            name=name,
            type=parse_category_type(cell_text(row, mapping.type)),
            color=derive_color(name),
            budget=budget,
        )

        reasons = []
        if not name:
            reasons.append(
                ValidationError(code="MISSING_NAME", message="Category name is empty", field="name")
            )
        return build_row(source_row, candidate, reasons, warnings)
