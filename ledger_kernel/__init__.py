"""
ledger_kernel -- Shared kernel for the ledger import engine.

Provides structured logging, the typed exception hierarchy, the injectable
clock, validation DTOs, and the database layer used by the reference
persistence collaborator.

Architecture:
    ledger_kernel imports nothing from ledger_ingestion or ledger_config.
"""
