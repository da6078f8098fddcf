"""
Account materializer (bulk account import).

Type keywords: ``save`` / ``saving`` / ``risparmio`` / ``deposito`` -> savings,
``credit`` / ``credito`` -> credit, ``invest`` -> investment,
``cash`` / ``contanti`` -> cash, anything else -> checking.
Credit accounts start with a credit limit of 0.
"""

from __future__ import annotations

from decimal import Decimal

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import ValidationError

from ledger_ingestion.domain.numbers import coerce_number
from ledger_ingestion.domain.types import (
    AccountCandidate,
    AccountMapping,
    AccountType,
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

_ACCOUNT_TYPE_KEYWORDS: tuple[tuple[AccountType, tuple[str, ...]], ...] = (
    (AccountType.SAVINGS, ("save", "saving", "risparmio", "deposito")),
    (AccountType.CREDIT, ("credit", "credito")),
    (AccountType.INVESTMENT, ("invest",)),
    (AccountType.CASH, ("cash", "contanti")),
)


def parse_account_type(raw: str) -> AccountType:
    for account_type, keywords in _ACCOUNT_TYPE_KEYWORDS:
        if contains_any(raw, keywords):
            return account_type
    return AccountType.CHECKING


class AccountMaterializer:
    """Materializes account rows."""

    def __init__(self, default_currency: str = "EUR"):
        self._default_currency = default_currency

    @property
    def mode(self) -> ImportMode:
        return ImportMode.ACCOUNTS

    def materialize(
        self,
        row: RawRow,
        source_row: int,
        mapping: AccountMapping,
        resolver: EntityResolver,
        clock: Clock,
    ) -> MaterializedRow:
        name = cell_text(row, mapping.name)
        account_type = parse_account_type(cell_text(row, mapping.type))
        balance = coerce_number(cell(row, mapping.balance), "balance")

        candidate = AccountCandidate(
            name=name,
            type=account_type,
            starting_balance=balance.value,
            currency=cell_text(row, mapping.currency).upper() or self._default_currency,
            color=derive_color(name),
            credit_limit=Decimal("0") if account_type is AccountType.CREDIT else None,
        )

        reasons = []
        if not name:
            reasons.append(
                ValidationError(code="MISSING_NAME", message="Account name is empty", field="name")
            )
        return build_row(source_row, candidate, reasons, [balance.warning])
