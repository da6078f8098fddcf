"""
Date disambiguation for free-text date cells.

Order of interpretation (first success wins):

1. ``date`` / ``datetime`` values (spreadsheet cells) are taken as-is.
2. Surrounding quotes are stripped.  A bare 5-digit token, optionally with
   a fraction, is an Excel day serial (epoch 1899-12-30).
3. Three all-digit parts split on ``-``, ``/`` or ``.``:
     - third part 4 digits  -> day / month / year
     - third part 2 digits  -> day / month / 20yy
     - first part 4 digits  -> year / month / day
   each accepted only when day is in 1..31 and month in 1..12.  Day/month
   order is preferred over month/day whenever both are plausible, so
   ``03/04/2024`` is 3 April.  There is no per-month day-count check: a day
   beyond the month's end rolls forward (``31/02/2024`` is 2 March).
4. ``dateutil`` free-form parse, accepted only for years >= 2000.  Day
   first, except for tokens that open with a 4-digit year (ISO stamps
   with a time part), which are read year/month/day.
5. Today, from the injected clock.

Every result is a naive ``datetime`` at 12:00 so that later conversion to a
timestamp in any timezone keeps the calendar day.  Parsing never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any

from dateutil import parser as dateutil_parser

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import ValidationError

MIDDAY = 12

_EXCEL_EPOCH = date(1899, 12, 30)
_EXCEL_SERIAL = re.compile(r"\d{5}(\.\d+)?")
_PART_SEPARATORS = re.compile(r"[-/.]")
_QUOTES = "\"'"

_MIN_FREEFORM_YEAR = 2000
_YEAR_FIRST = re.compile(r"\d{4}[-/.]")


@dataclass(frozen=True)
class ParsedDate:
    value: datetime
    warning: ValidationError | None = None


def _at_midday(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, MIDDAY)


def _from_parts(year: int, month: int, day: int) -> date | None:
    if not (1 <= day <= 31 and 1 <= month <= 12) or year < 1:
        return None
    try:
        return date(year, month, 1) + timedelta(days=day - 1)
    except OverflowError:
        return None


def _three_part(token: str) -> date | None:
    parts = _PART_SEPARATORS.split(token)
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return None
    first, second, third = parts

    attempts: list[tuple[int, int, int]] = []
    if len(third) == 4:
        attempts.append((int(third), int(second), int(first)))
    elif len(third) == 2:
        attempts.append((2000 + int(third), int(second), int(first)))
    if len(first) == 4:
        attempts.append((int(first), int(second), int(third)))

    for year, month, day in attempts:
        result = _from_parts(year, month, day)
        if result is not None:
            return result
    return None


def _freeform(token: str, clock: Clock) -> date | None:
    default = datetime.combine(clock.today(), datetime.min.time())
    # ISO-style stamps (2024-03-05T10:30) are year/month/day
    year_first = bool(_YEAR_FIRST.match(token))
    try:
        parsed = dateutil_parser.parse(
            token, dayfirst=not year_first, yearfirst=year_first, default=default
        )
    except (ValueError, OverflowError):
        return None
    if parsed.year < _MIN_FREEFORM_YEAR:
        return None
    return parsed.date()


def _interpret(raw: Any, clock: Clock) -> date | None:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw

    token = str(raw).strip().strip(_QUOTES).strip()
    if not token:
        return None

    if _EXCEL_SERIAL.fullmatch(token):
        return _EXCEL_EPOCH + timedelta(days=int(float(token)))

    return _three_part(token) or _freeform(token, clock)


def coerce_date(raw: Any, clock: Clock | None = None, field: str = "date") -> ParsedDate:
    """Parse a date cell, reporting ``DATE_MISSING`` / ``DATE_UNPARSEABLE`` on fallback."""
    clock = clock or SystemClock()
    if raw is None or (isinstance(raw, str) and not raw.strip().strip(_QUOTES).strip()):
        return ParsedDate(
            _at_midday(clock.today()),
            ValidationError(
                code="DATE_MISSING",
                message="No date given; using today",
                field=field,
            ),
        )

    result = _interpret(raw, clock)
    if result is not None:
        return ParsedDate(_at_midday(result))
    return ParsedDate(
        _at_midday(clock.today()),
        ValidationError(
            code="DATE_UNPARSEABLE",
            message=f"Could not read a date from {raw!r}; using today",
            field=field,
            details={"raw": str(raw)},
        ),
    )


def parse_date(raw: Any, clock: Clock | None = None) -> datetime:
    """Parse a date cell to midday of the resolved calendar day (today on failure)."""
    return coerce_date(raw, clock).value
