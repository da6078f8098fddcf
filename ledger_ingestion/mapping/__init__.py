"""Header classification: guess column roles from header text."""

from ledger_ingestion.mapping.classifier import propose_mapping, propose_mappings

__all__ = ["propose_mapping", "propose_mappings"]
