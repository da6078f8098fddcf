"""Services: import orchestration and batch commit."""

from ledger_ingestion.services.batch_committer import (
    BatchCommitter,
    CancellationToken,
    CommitReport,
)
from ledger_ingestion.services.import_service import ImportPreview, ImportService

__all__ = [
    "BatchCommitter",
    "CancellationToken",
    "CommitReport",
    "ImportPreview",
    "ImportService",
]
