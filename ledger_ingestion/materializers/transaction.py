"""
Ledger transaction materializer.

Direction and magnitude:
    dual-amount mode   -- a positive income cell gives ``income``, else a
                          positive expense cell gives ``expense``; with
                          neither the magnitude is 0 and the row is invalid.
    single-amount mode -- a non-empty type cell decides the direction
                          (``income`` / ``credit`` / ``entrata`` -> income,
                          anything else -> expense); with no type cell the
                          sign decides (negative -> expense).  The stored
                          amount is always the absolute value.

Valid only with a resolved account and an amount strictly above zero.
"""

from __future__ import annotations

from decimal import Decimal

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import ValidationError

from ledger_ingestion.domain.dates import coerce_date
from ledger_ingestion.domain.numbers import coerce_number
from ledger_ingestion.domain.types import (
    Direction,
    ImportMode,
    MaterializedRow,
    RawRow,
    TransactionCandidate,
    TransactionMapping,
)
from ledger_ingestion.materializers.base import build_row, cell, cell_text, contains_any
from ledger_ingestion.resolution.resolver import EntityResolver

INCOME_TYPE_KEYWORDS = ("income", "credit", "entrata")

_ZERO = Decimal("0")


class TransactionMaterializer:
    """Materializes ledger transactions."""

    def __init__(self, fallback_description: str = "Imported Transaction"):
        self._fallback_description = fallback_description

    @property
    def mode(self) -> ImportMode:
        return ImportMode.TRANSACTIONS

    def _dual_amount(
        self,
        row: RawRow,
        mapping: TransactionMapping,
        warnings: list,
    ) -> tuple[Decimal, Direction]:
        income = coerce_number(cell(row, mapping.income_amount), "income_amount")
        expense = coerce_number(cell(row, mapping.expense_amount), "expense_amount")
        warnings.extend([income.warning, expense.warning])
        if income.value > 0:
            return income.value, Direction.INCOME
        if expense.value > 0:
            return expense.value, Direction.EXPENSE
        return _ZERO, Direction.EXPENSE

    def _single_amount(
        self,
        row: RawRow,
        mapping: TransactionMapping,
        warnings: list,
    ) -> tuple[Decimal, Direction]:
        parsed = coerce_number(cell(row, mapping.amount), "amount")
        warnings.append(parsed.warning)
        type_text = cell_text(row, mapping.type)
        if type_text:
            if contains_any(type_text, INCOME_TYPE_KEYWORDS):
                direction = Direction.INCOME
            else:
                direction = Direction.EXPENSE
        elif parsed.value < 0:
            direction = Direction.EXPENSE
        else:
            direction = Direction.INCOME
        return abs(parsed.value), direction

    def materialize(
        self,
        row: RawRow,
        source_row: int,
        mapping: TransactionMapping,
        resolver: EntityResolver,
        clock: Clock,
    ) -> MaterializedRow:
        warnings: list[ValidationError | None] = []
        if mapping.dual_amount:
            amount, direction = self._dual_amount(row, mapping, warnings)
        else:
            amount, direction = self._single_amount(row, mapping, warnings)

        parsed_date = coerce_date(cell(row, mapping.date), clock)
        warnings.append(parsed_date.warning)

        account = resolver.resolve_account(cell(row, mapping.account), bool(mapping.account))
        category = resolver.resolve_category(
            cell(row, mapping.category), direction, bool(mapping.category)
        )
        warnings.append(category.warning)

        candidate = TransactionCandidate(
            date=parsed_date.value,
            amount=amount,
            description=cell_text(row, mapping.description) or self._fallback_description,
            account_id=account.entity_id,
            category_id=category.entity_id,
            direction=direction,
        )

        reasons: list[ValidationError] = []
        if not account.resolved and account.warning is not None:
            reasons.append(account.warning)
        if amount <= 0:
            reasons.append(
                ValidationError(
                    code="NON_POSITIVE_AMOUNT",
                    message="Amount must be greater than zero",
                    field="amount",
                    details={"amount": str(amount)},
                )
            )
        return build_row(source_row, candidate, reasons, warnings)
