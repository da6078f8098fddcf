"""
BatchCommitter: materialized rows -> persistence gateway calls.

Contract:
    1. Invalid rows are dropped and counted (``skipped``).
    2. Trades are grouped by ticker; each distinct holding is resolved or
       created exactly once, then trades are submitted with its id.  A
       ticker whose holding cannot be created is reported in
       ``failed_tickers`` and its trades are excluded; the other tickers'
       trades still go through.
    3. Account / category rows whose name already exists in the catalog, or
       repeats an earlier row, are counted as ``duplicates`` and not sent.
    4. One bulk-create call per shape.

Cancellation:
    The CancellationToken is checked before every ticker cohort and before
    the bulk submit.  A cancelled commit submits nothing further and returns
    a report with ``cancelled=True``.  Holdings already created stay created
    and are listed in ``created_holdings``.

Failure modes:
    Collaborator failures never escape: a failed bulk call yields a report
    with ``submitted == 0`` and the error in ``errors``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Sequence

from ledger_kernel.domain.dtos import ValidationError
from ledger_kernel.exceptions import ImportCancelledError
from ledger_kernel.logging_config import get_logger

from ledger_ingestion.domain.types import (
    AccountCandidate,
    CategoryCandidate,
    ImportMode,
    MaterializedRow,
    TradeCandidate,
)
from ledger_ingestion.persistence.base import PersistenceGateway
from ledger_ingestion.persistence.requests import (
    AccountRequest,
    CategoryRequest,
    TradeRequest,
    TransactionRequest,
)
from ledger_ingestion.resolution.resolver import EntityResolver

logger = get_logger("ingestion.committer")


class CancellationToken:
    """Cooperative cancellation flag shared between the caller and a commit."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, stage: str) -> None:
        if self._cancelled:
            raise ImportCancelledError(stage)


@dataclass(frozen=True)
class CommitReport:
    """Outcome of one commit, suitable for an operator-facing summary."""

    mode: ImportMode
    total_rows: int
    submitted: int = 0
    skipped: int = 0
    duplicates: int = 0
    failed_tickers: tuple[str, ...] = ()
    excluded_rows: int = 0
    created_holdings: tuple[str, ...] = ()
    cancelled: bool = False
    errors: tuple[ValidationError, ...] = ()

    @property
    def succeeded(self) -> bool:
        return not self.cancelled and not self.errors

    def summary(self) -> str:
        text = f"{self.submitted} imported, {self.skipped} of {self.total_rows} rows skipped"
        if self.duplicates:
            text += f", {self.duplicates} duplicates"
        if self.failed_tickers:
            text += f", holdings failed for {', '.join(self.failed_tickers)}"
        if self.cancelled:
            text += " (cancelled)"
        return text


def _persistence_error(operation: str, exc: Exception) -> ValidationError:
    return ValidationError(
        code=getattr(exc, "code", "PERSISTENCE_ERROR"),
        message=f"{operation} failed: {exc}",
        details={"operation": operation},
    )


class BatchCommitter:
    """
    Submits one shape's materialized rows through a PersistenceGateway.

    ``holding_concurrency`` > 1 resolves distinct tickers concurrently under
    an ``asyncio.Semaphore``; same-ticker resolution is always serialized by
    the resolver.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        resolver: EntityResolver,
        holding_concurrency: int = 1,
        cancellation: CancellationToken | None = None,
    ):
        self._gateway = gateway
        self._resolver = resolver
        self._holding_concurrency = max(1, holding_concurrency)
        self._cancellation = cancellation or CancellationToken()

    @property
    def cancellation(self) -> CancellationToken:
        return self._cancellation

    async def commit(
        self,
        mode: ImportMode | str,
        rows: Sequence[MaterializedRow],
    ) -> CommitReport:
        mode = ImportMode.parse(mode)
        valid = [r for r in rows if r.is_valid]
        base = CommitReport(mode=mode, total_rows=len(rows), skipped=len(rows) - len(valid))
        logger.info(
            "commit_started",
            extra={"mode": mode.value, "total_rows": len(rows), "valid_rows": len(valid)},
        )

        if mode is ImportMode.TRANSACTIONS:
            return await self._commit_transactions(base, valid)
        if mode is ImportMode.TRADES:
            return await self._commit_trades(base, valid)
        return await self._commit_entities(base, valid)

    async def _submit(self, report: CommitReport, operation: str, submit, requests: list) -> CommitReport:
        """Cancellation check, one bulk call, and the resulting report."""
        try:
            self._cancellation.raise_if_cancelled(operation)
        except ImportCancelledError as exc:
            logger.warning("commit_cancelled", extra={"stage": exc.stage})
            return replace(report, cancelled=True)

        if not requests:
            logger.info("batch_empty", extra={"operation": operation})
            return report

        try:
            created = await submit(requests)
        except Exception as exc:
            logger.error(
                "batch_submit_failed",
                extra={"operation": operation, "count": len(requests)},
                exc_info=True,
            )
            return replace(report, errors=report.errors + (_persistence_error(operation, exc),))

        logger.info("batch_submitted", extra={"operation": operation, "count": created})
        return replace(report, submitted=created)

    async def _commit_transactions(
        self,
        report: CommitReport,
        valid: list[MaterializedRow],
    ) -> CommitReport:
        requests = [TransactionRequest.from_candidate(r.candidate) for r in valid]
        return await self._submit(
            report, "bulk_create_transactions", self._gateway.bulk_create_transactions, requests
        )

    # ------------------------------------------------------------------
    # Trades
    # ------------------------------------------------------------------

    async def _resolve_cohort(self, ticker: str, name: str) -> int | None:
        self._cancellation.raise_if_cancelled(f"holding resolution for {ticker}")
        try:
            return await self._resolver.resolve_holding(ticker, name, self._gateway)
        except Exception as exc:
            logger.warning(
                "holding_creation_failed",
                extra={
                    "ticker": ticker,
                    "error_code": getattr(exc, "code", type(exc).__name__),
                    "error_msg": str(exc),
                },
            )
            return None

    async def _resolve_tickers(self, cohorts: dict[str, list[TradeCandidate]]) -> dict[str, int | None]:
        if self._holding_concurrency == 1:
            return {
                ticker: await self._resolve_cohort(ticker, trades[0].name)
                for ticker, trades in cohorts.items()
            }

        semaphore = asyncio.Semaphore(self._holding_concurrency)

        async def bounded(ticker: str, name: str) -> int | None:
            async with semaphore:
                return await self._resolve_cohort(ticker, name)

        results = await asyncio.gather(
            *(bounded(ticker, trades[0].name) for ticker, trades in cohorts.items()),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return dict(zip(cohorts, results))

    async def _commit_trades(
        self,
        report: CommitReport,
        valid: list[MaterializedRow],
    ) -> CommitReport:
        cohorts: dict[str, list[TradeCandidate]] = {}
        for row in valid:
            cohorts.setdefault(row.candidate.ticker, []).append(row.candidate)

        created_before = set(self._resolver.created_tickers)
        try:
            holding_ids = await self._resolve_tickers(cohorts)
        except ImportCancelledError as exc:
            logger.warning("commit_cancelled", extra={"stage": exc.stage})
            return replace(
                report,
                cancelled=True,
                created_holdings=self._created_since(created_before),
            )

        failed = tuple(t for t, holding_id in holding_ids.items() if holding_id is None)
        requests = [
            TradeRequest.from_candidate(trade, holding_ids[ticker])
            for ticker, trades in cohorts.items()
            if holding_ids[ticker] is not None
            for trade in trades
        ]
        report = replace(
            report,
            failed_tickers=failed,
            excluded_rows=sum(len(cohorts[t]) for t in failed),
            created_holdings=self._created_since(created_before),
        )
        if failed:
            logger.warning("trades_excluded", extra={"failed_tickers": list(failed), "count": report.excluded_rows})
        return await self._submit(report, "bulk_create_trades", self._gateway.bulk_create_trades, requests)

    def _created_since(self, before: set[str]) -> tuple[str, ...]:
        return tuple(t for t in self._resolver.created_tickers if t not in before)

    # ------------------------------------------------------------------
    # Accounts and categories
    # ------------------------------------------------------------------

    def _is_known(self, candidate: AccountCandidate | CategoryCandidate) -> bool:
        catalog = self._resolver.catalog
        if isinstance(candidate, AccountCandidate):
            return catalog.account_by_name(candidate.name) is not None
        return bool(catalog.categories_by_name(candidate.name))

    async def _commit_entities(
        self,
        report: CommitReport,
        valid: list[MaterializedRow],
    ) -> CommitReport:
        seen: set[str] = set()
        fresh = []
        for row in valid:
            key = row.candidate.name.strip().lower()
            if key in seen or self._is_known(row.candidate):
                logger.info("record_skipped", extra={"source_row": row.source_row, "reason": "duplicate"})
                continue
            seen.add(key)
            fresh.append(row.candidate)
        report = replace(report, duplicates=len(valid) - len(fresh))

        if report.mode is ImportMode.ACCOUNTS:
            requests = [AccountRequest.from_candidate(c) for c in fresh]
            return await self._submit(report, "bulk_create_accounts", self._gateway.bulk_create_accounts, requests)
        requests = [CategoryRequest.from_candidate(c) for c in fresh]
        return await self._submit(report, "bulk_create_categories", self._gateway.bulk_create_categories, requests)
