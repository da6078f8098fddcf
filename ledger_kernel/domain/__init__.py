"""
ledger_kernel.domain -- Pure values shared by every layer.

ZERO I/O (except SystemClock, the sanctioned boundary for time).
"""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.dtos import ValidationError

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ValidationError",
]
