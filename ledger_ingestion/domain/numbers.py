"""
Locale-ambiguous number parsing.

Turns free-text numeric cells (currency symbols, spaces, thousands
separators, a leading sign) into ``Decimal`` without being told the locale.

Separator rules, applied to the token after every character other than a
digit, comma, period or minus has been stripped:

    ``,dd`` / ``,d`` at the end   -> European: periods are thousands
                                     separators, the last comma is decimal
    ``.dd`` / ``.d`` at the end
    and a comma anywhere          -> US: commas are thousands separators
    a comma and no period         -> the comma is decimal
    otherwise                     -> parse as-is

Parsing never raises.  An empty cell is ``0``; a non-empty cell that still
is not a number after cleaning is ``0`` with an ``AMOUNT_UNPARSEABLE``
warning (see ``coerce_number``).

The sign is decided once, from the original token: a token beginning with
``-`` is negative; otherwise the cleaned value keeps whatever sign it parsed
with.  A negative cleaned value is never negated a second time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from ledger_kernel.domain.dtos import ValidationError

_ZERO = Decimal("0")

_NON_NUMERIC = re.compile(r"[^\d,.\-]")
_EU_DECIMAL_TAIL = re.compile(r",\d{1,2}$")
_US_DECIMAL_TAIL = re.compile(r"\.\d{1,2}$")


@dataclass(frozen=True)
class ParsedNumber:
    """A parsed value plus the warning raised while degrading it, if any."""

    value: Decimal
    warning: ValidationError | None = None


def normalize_numeric(token: str) -> str:
    """Strip decoration and rewrite separators into a ``Decimal``-parseable string."""
    cleaned = _NON_NUMERIC.sub("", token)
    if _EU_DECIMAL_TAIL.search(cleaned):
        head, _, tail = cleaned.replace(".", "").rpartition(",")
        return head.replace(",", "") + "." + tail
    if _US_DECIMAL_TAIL.search(cleaned) and "," in cleaned:
        return cleaned.replace(",", "")
    if "," in cleaned and "." not in cleaned:
        return cleaned.replace(",", ".")
    return cleaned


def _parse(raw: Any) -> tuple[Decimal, bool]:
    """Return (signed value, parsed_ok).  Empty input counts as parsed."""
    if raw is None or isinstance(raw, bool):
        return _ZERO, raw is None
    if isinstance(raw, Decimal):
        return (raw, True) if raw.is_finite() else (_ZERO, False)
    if isinstance(raw, (int, float)):
        try:
            value = Decimal(str(raw))
        except InvalidOperation:
            return _ZERO, False
        return (value, True) if value.is_finite() else (_ZERO, False)

    token = str(raw).strip()
    if not token:
        return _ZERO, True

    cleaned = normalize_numeric(token)
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return _ZERO, False

    if token.startswith("-") and value > 0:
        value = -value
    return value, True


def parse_amount(raw: Any) -> Decimal:
    """Parse a signed amount.  ``"1.234,56"`` and ``"1,234.56"`` both give ``1234.56``."""
    return _parse(raw)[0]


def parse_magnitude(raw: Any, preserve_sign: bool = False) -> Decimal:
    """
    Parse a quantity-like value.

    With ``preserve_sign`` the result equals ``parse_amount``; without it
    the absolute value is returned.
    """
    value = parse_amount(raw)
    return value if preserve_sign else abs(value)


def coerce_number(
    raw: Any,
    field: str,
    preserve_sign: bool = True,
) -> ParsedNumber:
    """Parse ``raw`` and report an ``AMOUNT_UNPARSEABLE`` warning when it degraded to 0."""
    value, ok = _parse(raw)
    if not preserve_sign:
        value = abs(value)
    if ok:
        return ParsedNumber(value)
    return ParsedNumber(
        _ZERO,
        ValidationError(
            code="AMOUNT_UNPARSEABLE",
            message=f"Could not read a number from {raw!r}; using 0",
            field=field,
            details={"raw": str(raw)},
        ),
    )
