"""Reference resolution against the entity catalog."""

from ledger_ingestion.resolution.resolver import EntityResolver, Resolution, ResolutionOutcome

__all__ = ["EntityResolver", "Resolution", "ResolutionOutcome"]
