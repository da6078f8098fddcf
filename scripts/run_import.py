#!/usr/bin/env python3
"""
Import a bank statement, trade log, or account/category list into the ledger.

Reads the file, proposes a column mapping from its header, prints the
mapping and a preview, then commits unless --preview-only is given.

Usage:
    python3 scripts/run_import.py --file <path> --mode <mode> [options]

Examples:
    # Preview a bank statement without writing anything
    python3 scripts/run_import.py --file statement.csv --mode transactions --preview-only

    # Separate income / expense columns, posting to one account
    python3 scripts/run_import.py --file statement.csv --mode transactions \\
        --dual-amount --map income_amount=Entrate --map expense_amount=Uscite \\
        --default-account "Main Checking"

    # Broker trade log
    python3 scripts/run_import.py --file trades.xlsx --mode trades
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

MODES = ("transactions", "trades", "accounts", "categories")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import a tabular export: propose mapping -> preview -> [commit].",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--file", required=True, type=Path, help="Path to a .csv / .tsv / .txt / .xlsx file.")
    parser.add_argument("--mode", required=True, choices=MODES, help="Record shape to import.")
    parser.add_argument("--db-url", default=None, help="Database URL (default: from settings).")
    parser.add_argument("--config", type=Path, default=None, help="YAML settings file.")
    parser.add_argument(
        "--delimiter",
        default=None,
        help="CSV delimiter; use '\\t' for tab (default: sniffed).",
    )
    parser.add_argument(
        "--default-account",
        default=None,
        help="Account name or id used when a row names no account.",
    )
    parser.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="ROLE=COLUMN",
        help="Override one role of the proposed mapping; an empty COLUMN unsets it. Repeatable.",
    )
    amounts = parser.add_mutually_exclusive_group()
    amounts.add_argument(
        "--dual-amount",
        dest="dual_amount",
        action="store_true",
        default=None,
        help="Separate income and expense columns (transactions only).",
    )
    amounts.add_argument(
        "--single-amount",
        dest="dual_amount",
        action="store_false",
        help="One signed amount column (transactions only).",
    )
    parser.add_argument(
        "--preview-only",
        action="store_true",
        help="Print mapping and preview, then exit. No writes.",
    )
    return parser.parse_args(argv)


def _parse_overrides(pairs: list[str]) -> dict[str, str | None]:
    overrides: dict[str, str | None] = {}
    for pair in pairs:
        role, sep, column = pair.partition("=")
        if not sep or not role.strip():
            raise ValueError(f"--map expects ROLE=COLUMN, got {pair!r}")
        overrides[role.strip()] = column.strip() or None
    return overrides


def _apply_overrides(session, overrides: dict[str, str | None], dual_amount: bool | None):
    changes: dict[str, object] = dict(overrides)
    if dual_amount is not None:
        changes["dual_amount"] = dual_amount
    if not changes:
        return session
    valid = {f.name for f in dataclasses.fields(session.mapping)}
    unknown = sorted(set(changes) - valid)
    if unknown:
        raise ValueError(
            f"Unknown role(s) for {session.mode.value}: {', '.join(unknown)} "
            f"(valid: {', '.join(sorted(valid))})"
        )
    return session.with_mapping(dataclasses.replace(session.mapping, **changes))


def _resolve_default_account(session, ref: str | None) -> int | None:
    if ref is None:
        return None
    if ref.isdigit() and session.catalog.account_by_id(int(ref)) is not None:
        return int(ref)
    account = session.catalog.account_by_name(ref)
    if account is None:
        raise ValueError(f"Default account {ref!r} does not exist")
    return account.id


def _print_preview(session, preview) -> None:
    print(f"Mode: {session.mode.value}")
    print("Mapping:")
    for role, column in session.mapping.roles().items():
        print(f"  {role:<16} {column or '-'}")
    if hasattr(session.mapping, "dual_amount"):
        print(f"  {'dual_amount':<16} {session.mapping.dual_amount}")
    for error in preview.mapping_errors:
        print(f"  ! {error.code}: {error.message}")
    print(f"Rows: {preview.total_rows}  valid: {preview.valid_rows}  skipped: {preview.skipped_rows}")
    print(f"Preview (first {len(preview.rows)}):")
    for row in preview.rows:
        status = "ok " if row.is_valid else "SKIP"
        notes = ", ".join(e.code for e in row.reasons + row.warnings)
        print(f"  {row.source_row:>4} {status} {row.candidate}" + (f"  [{notes}]" if notes else ""))


async def _run(args: argparse.Namespace, settings) -> int:
    from ledger_kernel.db.engine import create_tables, init_engine_from_url, session_scope
    from ledger_ingestion.persistence.sqlalchemy_gateway import SqlAlchemyGateway
    from ledger_ingestion.services import ImportService

    init_engine_from_url(settings.database_url)
    create_tables()
    with session_scope() as db_session:
        service = ImportService(SqlAlchemyGateway(db_session), settings)
        options = {}
        if args.delimiter:
            options["delimiter"] = "\t" if args.delimiter in ("\\t", "tab") else args.delimiter

        session = await service.open_file(args.file.resolve(), args.mode, options)
        session = _apply_overrides(session, _parse_overrides(args.map), args.dual_amount)
        session = session.with_default_account(_resolve_default_account(session, args.default_account))

        preview = service.preview(session)
        _print_preview(session, preview)
        if args.preview_only:
            return 0
        if not preview.ready:
            print("ERROR: Mapping is not ready; fix it with --map and retry.", file=sys.stderr)
            return 1

        report = await service.commit(session)
        print(report.summary())
        for error in report.errors:
            print(f"ERROR: {error.message}", file=sys.stderr)
        return 0 if report.succeeded else 1


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if not args.file.is_file():
        print(f"ERROR: File not found: {args.file}", file=sys.stderr)
        return 1

    # Lazy imports so we fail fast on args first
    from ledger_config import get_settings
    from ledger_kernel.exceptions import LedgerImportError
    from ledger_kernel.logging_config import configure_logging

    try:
        settings = get_settings(args.config)
    except (OSError, ValueError) as e:
        print(f"ERROR: Failed to load settings: {e}", file=sys.stderr)
        return 1
    if args.db_url:
        settings = dataclasses.replace(settings, database_url=args.db_url)
    configure_logging(level=settings.log_level)

    try:
        return asyncio.run(_run(args, settings))
    except (LedgerImportError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
