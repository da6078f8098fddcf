"""
Clock -- Deterministic time abstraction.

Responsibility:
    Provides an injectable clock so that parsing and service code never call
    ``datetime.now()`` or ``date.today()`` directly. The Date Disambiguator
    falls back to "today" on unparseable input; with a DeterministicClock
    that fallback is reproducible in tests.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        - ``now()`` returns a timezone-aware ``datetime``.
        - ``today()`` returns the calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def today(self) -> date:
        """Get the current calendar date."""
        return self.now().date()


class SystemClock(Clock):
    """Production clock that returns actual system time (local timezone)."""

    def now(self) -> datetime:
        """Get current system time with timezone."""
        return datetime.now(timezone.utc).astimezone()


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on every call.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(
            2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc
        )

    def now(self) -> datetime:
        """Get the fixed/controlled time."""
        return self._fixed_time
