"""Data transfer objects shared across the import engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation finding.

    Contract:
        Carries a machine-readable code, human-readable message, optional field
        (semantic role or column name), and optional details dict. Used for
        mapping readiness errors, per-row rejection reasons and per-row
        non-fatal parse warnings alike.

    Non-goals:
        - Does NOT raise exceptions -- it IS the error representation.
    """

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None
