"""
Import service: read -> open session -> preview -> commit.

Orchestrates source adapters, the header classifier, row materializers and
the batch committer around one immutable ImportSession.  Uses structured
logging (LogContext, get_logger("ingestion.*")).

Side effects happen at exactly two points: fetching the entity catalog when
a session is opened, and ``commit``.  ``preview`` never touches the gateway.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence
from uuid import uuid4

from ledger_config.schema import ImportSettings
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import ValidationError
from ledger_kernel.exceptions import MappingNotReadyError, SourceReadError
from ledger_kernel.logging_config import LogContext, get_logger

from ledger_ingestion.adapters import SourceAdapter, SourceTable, default_adapters
from ledger_ingestion.domain.types import (
    ImportMode,
    ImportSession,
    MaterializedRow,
    RawRow,
)
from ledger_ingestion.domain.validators import validate_mapping
from ledger_ingestion.mapping.classifier import propose_mapping
from ledger_ingestion.materializers import (
    RowMaterializer,
    default_materializer_registry,
    materialize_rows,
)
from ledger_ingestion.persistence.base import PersistenceGateway
from ledger_ingestion.resolution.resolver import EntityResolver
from ledger_ingestion.services.batch_committer import (
    BatchCommitter,
    CancellationToken,
    CommitReport,
)

logger = get_logger("ingestion.import_service")


@dataclass(frozen=True)
class ImportPreview:
    """First rows of a session plus its accept / skip counts."""

    rows: tuple[MaterializedRow, ...]
    total_rows: int
    valid_rows: int
    mapping_errors: tuple[ValidationError, ...] = ()

    @property
    def skipped_rows(self) -> int:
        return self.total_rows - self.valid_rows

    @property
    def ready(self) -> bool:
        return not self.mapping_errors


class ImportService:
    """Runs import sessions against one persistence gateway."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        settings: ImportSettings | None = None,
        clock: Clock | None = None,
        adapters: dict[str, SourceAdapter] | None = None,
        materializers: dict[ImportMode, RowMaterializer] | None = None,
    ):
        self._gateway = gateway
        self._settings = settings or ImportSettings()
        self._clock = clock or SystemClock()
        self._adapters = adapters if adapters is not None else default_adapters()
        self._materializers = (
            materializers
            if materializers is not None
            else default_materializer_registry(
                fallback_description=self._settings.fallback_description,
                default_currency=self._settings.default_currency,
            )
        )

    @property
    def settings(self) -> ImportSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read_source(self, source_path: Path, options: dict[str, Any] | None = None) -> SourceTable:
        """Read a file with the adapter registered for its suffix."""
        adapter = self._adapters.get(source_path.suffix.lower())
        if adapter is None:
            raise SourceReadError(str(source_path), f"unsupported file type {source_path.suffix!r}")
        table = adapter.read(source_path, options or {})
        logger.info(
            "source_read",
            extra={
                "source": source_path.name,
                "columns": list(table.columns),
                "row_count": table.row_count,
            },
        )
        return table

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def open_session(
        self,
        columns: Sequence[str],
        rows: Sequence[RawRow],
        mode: ImportMode | str,
        default_account_id: int | None = None,
    ) -> ImportSession:
        """
        Fetch the catalog and build a session with the proposed mapping.

        Raises:
            UnknownImportModeError: ``mode`` is not an import mode.
            CatalogUnavailableError: the gateway could not supply the catalog.
        """
        mode = ImportMode.parse(mode)
        session_id = str(uuid4())
        with LogContext.bind(session_id=session_id, import_mode=mode.value):
            catalog = await self._gateway.fetch_catalog()
            mapping = propose_mapping(columns, mode)
            session = ImportSession(
                mode=mode,
                columns=tuple(columns),
                rows=tuple(rows),
                mapping=mapping,
                catalog=catalog,
                default_account_id=default_account_id,
                session_id=session_id,
            )
            logger.info(
                "session_opened",
                extra={
                    "row_count": len(session.rows),
                    "mapping": mapping.assigned(),
                    "accounts": len(catalog.accounts),
                    "categories": len(catalog.categories),
                    "holdings": len(catalog.holdings),
                },
            )
        return session

    async def open_file(
        self,
        source_path: Path,
        mode: ImportMode | str,
        options: dict[str, Any] | None = None,
        default_account_id: int | None = None,
    ) -> ImportSession:
        table = self.read_source(source_path, options)
        return await self.open_session(table.columns, table.rows, mode, default_account_id)

    # ------------------------------------------------------------------
    # Materialization
    # ------------------------------------------------------------------

    def _resolver_for(self, session: ImportSession) -> EntityResolver:
        return EntityResolver(
            session.catalog,
            default_account_id=session.default_account_id,
            asset_type=self._settings.default_asset_type,
            currency=self._settings.default_currency,
        )

    def materialize(
        self,
        session: ImportSession,
        resolver: EntityResolver | None = None,
    ) -> list[MaterializedRow]:
        """Materialize every row of the session.  Pure with respect to the gateway."""
        return materialize_rows(
            session.rows,
            session.mapping,
            self._materializers[session.mode],
            resolver or self._resolver_for(session),
            self._clock,
        )

    def preview(self, session: ImportSession, limit: int | None = None) -> ImportPreview:
        """First ``limit`` rows (default from settings) plus valid / skipped counts."""
        limit = self._settings.preview_rows if limit is None else limit
        with LogContext.bind(session_id=session.session_id, import_mode=session.mode.value):
            rows = self.materialize(session)
            valid = sum(1 for r in rows if r.is_valid)
            preview = ImportPreview(
                rows=tuple(rows[:limit]),
                total_rows=len(rows),
                valid_rows=valid,
                mapping_errors=tuple(validate_mapping(session.mapping, session.columns)),
            )
            logger.info(
                "preview_computed",
                extra={
                    "total_rows": preview.total_rows,
                    "valid_rows": preview.valid_rows,
                    "mapping_errors": [e.code for e in preview.mapping_errors],
                },
            )
        return preview

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    async def commit(
        self,
        session: ImportSession,
        cancellation: CancellationToken | None = None,
    ) -> CommitReport:
        """
        Materialize and submit the session.

        Raises:
            MappingNotReadyError: the mapping fails readiness checks; nothing
                is submitted.
        """
        with LogContext.bind(session_id=session.session_id, import_mode=session.mode.value):
            errors = validate_mapping(session.mapping, session.columns)
            if errors:
                logger.warning("mapping_not_ready", extra={"errors": [e.code for e in errors]})
                raise MappingNotReadyError(errors)

            resolver = self._resolver_for(session)
            rows = self.materialize(session, resolver)
            committer = BatchCommitter(
                self._gateway,
                resolver,
                holding_concurrency=self._settings.holding_concurrency,
                cancellation=cancellation,
            )
            report = await committer.commit(session.mode, rows)
            logger.info(
                "commit_completed",
                extra={
                    "submitted": report.submitted,
                    "skipped": report.skipped,
                    "duplicates": report.duplicates,
                    "failed_tickers": list(report.failed_tickers),
                    "cancelled": report.cancelled,
                },
            )
        return report
