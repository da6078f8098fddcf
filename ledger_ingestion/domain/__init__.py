"""Pure domain layer of the import engine: types, parsers, readiness checks."""
