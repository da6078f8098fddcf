"""
Configuration schema (``ledger_config.schema``).

Responsibility
--------------
Frozen dataclass describing the tunable knobs of the import engine.  The
loader produces exactly one ``ImportSettings`` per process; every field has
a default so an absent configuration file is a valid configuration.

Architecture position
---------------------
**Config layer** -- pure data.  No I/O, no imports from the engine.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ImportSettings:
    """Settings consumed by the import service, committer and CLI."""

    default_currency: str = "EUR"
    default_asset_type: str = "stock"
    fallback_description: str = "Imported Transaction"
    preview_rows: int = 5
    holding_concurrency: int = 1
    database_url: str = "sqlite:///ledger.db"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.preview_rows < 0:
            raise ValueError(f"preview_rows must be >= 0, got {self.preview_rows}")
        if self.holding_concurrency < 1:
            raise ValueError(
                f"holding_concurrency must be >= 1, got {self.holding_concurrency}"
            )
        if len(self.default_currency) != 3:
            raise ValueError(
                f"default_currency must be a 3-letter code, got {self.default_currency!r}"
            )
