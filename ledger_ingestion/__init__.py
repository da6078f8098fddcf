"""
ledger_ingestion -- import engine for tabular ledger exports.

Pipeline: adapters (file -> raw rows) -> mapping.classifier (header ->
column mapping) -> materializers (row -> candidate + verdict, using
domain.numbers, domain.dates and resolution.resolver) ->
services.batch_committer (valid candidates -> persistence gateway).
services.import_service ties the steps to one ImportSession.
"""
