"""
Trade materializer.

The ticker is uppercased and is the holding's resolution key; the holding
id itself is resolved later by the batch committer.  Quantity, price, total
and fees are magnitudes (sign discarded).  A total that is unmapped or reads
as zero is recomputed as quantity x price.

Valid only with a non-empty ticker and a positive quantity and price.
"""

from __future__ import annotations

from ledger_kernel.domain.clock import Clock
from ledger_kernel.domain.dtos import ValidationError

from ledger_ingestion.domain.dates import coerce_date
from ledger_ingestion.domain.numbers import coerce_number
from ledger_ingestion.domain.types import (
    ImportMode,
    MaterializedRow,
    RawRow,
    TradeCandidate,
    TradeDirection,
    TradeMapping,
)
from ledger_ingestion.materializers.base import build_row, cell, cell_text, contains_any
from ledger_ingestion.resolution.resolver import EntityResolver

SELL_KEYWORDS = ("sell", "vendita", "vend", "uscita", "debit")
SELL_CODES = frozenset({"s", "v"})
SELL_PREFIXES = ("-",)
BUY_KEYWORDS = ("buy", "acquisto", "acq")
BUY_CODES = frozenset({"b", "a"})


def parse_trade_direction(raw: str) -> TradeDirection:
    """
    Sell tokens are checked first; anything unrecognised is a buy.

    A leading minus (``-1``, ``-``) marks an outflow of units, i.e. a sell.
    """
    text = raw.strip().lower()
    if (
        text in SELL_CODES
        or text.startswith(SELL_PREFIXES)
        or contains_any(text, SELL_KEYWORDS)
    ):
        return TradeDirection.SELL
    if text in BUY_CODES or contains_any(text, BUY_KEYWORDS):
        return TradeDirection.BUY
    return TradeDirection.BUY


class TradeMaterializer:
    """Materializes brokerage trades."""

    @property
    def mode(self) -> ImportMode:
        return ImportMode.TRADES

    def materialize(
        self,
        row: RawRow,
        source_row: int,
        mapping: TradeMapping,
        resolver: EntityResolver,
        clock: Clock,
    ) -> MaterializedRow:
        ticker = cell_text(row, mapping.ticker).upper()
        name = cell_text(row, mapping.name) or ticker

        quantity = coerce_number(cell(row, mapping.quantity), "quantity", preserve_sign=False)
        price = coerce_number(cell(row, mapping.price_per_unit), "price_per_unit", preserve_sign=False)
        total = coerce_number(cell(row, mapping.total_amount), "total_amount", preserve_sign=False)
        fees = coerce_number(cell(row, mapping.fees), "fees", preserve_sign=False)
        parsed_date = coerce_date(cell(row, mapping.date), clock)

        total_amount = total.value
        if total_amount == 0:
            total_amount = quantity.value * price.value

        candidate = TradeCandidate(
            ticker=ticker,
            name=name,
            date=parsed_date.value,
            direction=parse_trade_direction(cell_text(row, mapping.type)),
            quantity=quantity.value,
            price_per_unit=price.value,
            total_amount=total_amount,
            fees=fees.value,
        )

        reasons: list[ValidationError] = []
        if not ticker:
            reasons.append(
                ValidationError(code="MISSING_TICKER", message="Ticker is empty", field="ticker")
            )
        if quantity.value <= 0:
            reasons.append(
                ValidationError(
                    code="NON_POSITIVE_QUANTITY",
                    message="Quantity must be greater than zero",
                    field="quantity",
                )
            )
        if price.value <= 0:
            reasons.append(
                ValidationError(
                    code="NON_POSITIVE_PRICE",
                    message="Price per unit must be greater than zero",
                    field="price_per_unit",
                )
            )
        warnings = [quantity.warning, price.warning, total.warning, fees.warning, parsed_date.warning]
        return build_row(source_row, candidate, reasons, warnings)
