"""
Typed exception hierarchy for the ledger import engine.

Every error has a typed class and a machine-readable ``code`` so callers
catch by type and report by code, never by message text.

    LedgerImportError (base)
    |
    +-- ConfigurationError
    |   +-- UnknownImportModeError
    |   +-- MappingNotReadyError
    |
    +-- SourceReadError
    |
    +-- PersistenceError
    |   +-- CatalogUnavailableError
    |   +-- HoldingCreationError
    |
    +-- ImportCancelledError

Parsers (numbers, dates) never raise: malformed cells degrade to a default
and are reported as row warnings. Only misuse of the engine (an unknown
mode, a mapping that is not ready for commit) and collaborator failures are
raised, and the Batch Committer converts collaborator failures into a
report instead of letting them escape.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from ledger_kernel.domain.dtos import ValidationError


class LedgerImportError(Exception):
    """
    Base exception for all import engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_IMPORT_ERROR"


# Configuration / mapping misuse


class ConfigurationError(LedgerImportError):
    """Base exception for invalid engine or session configuration."""

    code: str = "CONFIGURATION_ERROR"


class UnknownImportModeError(ConfigurationError):
    """No materializer or committer path exists for the requested mode."""

    code: str = "UNKNOWN_IMPORT_MODE"

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"Unknown import mode: {mode!r}")


class MappingNotReadyError(ConfigurationError):
    """The column mapping fails commit-readiness checks."""

    code: str = "MAPPING_NOT_READY"

    def __init__(self, errors: Sequence[ValidationError]):
        self.errors = tuple(errors)
        summary = "; ".join(e.message for e in self.errors) or "mapping is incomplete"
        super().__init__(f"Column mapping is not ready: {summary}")


# Upstream reader


class SourceReadError(LedgerImportError):
    """The upstream reader could not turn a file into raw rows."""

    code: str = "SOURCE_READ_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot read {source}: {reason}")


# Persistence collaborator


class PersistenceError(LedgerImportError):
    """The persistence collaborator rejected a request."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class CatalogUnavailableError(PersistenceError):
    """The entity catalog could not be fetched."""

    code: str = "CATALOG_UNAVAILABLE"

    def __init__(self, reason: str):
        super().__init__("fetch_catalog", reason)


class HoldingCreationError(PersistenceError):
    """A holding could not be resolved or created for a ticker."""

    code: str = "HOLDING_CREATION_FAILED"

    def __init__(self, ticker: str, reason: str):
        self.ticker = ticker
        super().__init__(f"create_holding({ticker})", reason)


# Cancellation


class ImportCancelledError(LedgerImportError):
    """The import was cancelled between ticker cohorts or before submit."""

    code: str = "IMPORT_CANCELLED"

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Import cancelled before {stage}")
