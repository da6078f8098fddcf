"""
Commit-readiness checks for a column mapping.

The header classifier is allowed to propose an incomplete or overlapping
mapping; these checks are the gate between proposal and commit.

Architecture: ledger_ingestion/domain. ZERO I/O. Imports only from
ledger_kernel/domain/ and ledger_ingestion/domain/types.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Sequence

from ledger_kernel.domain.dtos import ValidationError

from ledger_ingestion.domain.types import ColumnMapping


def validate_required_roles(mapping: ColumnMapping) -> list[ValidationError]:
    """Every role the shape requires must be assigned a column."""
    assigned = mapping.assigned()
    return [
        ValidationError(
            code="MISSING_REQUIRED_ROLE",
            message=f"No column selected for required role '{role}'",
            field=role,
        )
        for role in mapping.required_roles()
        if role not in assigned
    ]


def validate_known_columns(
    mapping: ColumnMapping,
    columns: Sequence[str],
) -> list[ValidationError]:
    """Columns of the roles the mapping reads must exist in the uploaded header."""
    known = set(columns)
    return [
        ValidationError(
            code="UNKNOWN_COLUMN",
            message=f"Role '{role}' refers to column '{column}', which is not in the file",
            field=role,
            details={"column": column},
        )
        for role, column in mapping.active_assigned().items()
        if column not in known
    ]


def validate_distinct_columns(mapping: ColumnMapping) -> list[ValidationError]:
    """
    No column may serve two roles at once.

    Only roles the mapping reads count: a dual-amount mapping ignores a
    leftover ``amount`` assignment, a single-amount one ignores
    ``income_amount`` and ``expense_amount``.
    """
    roles_by_column: dict[str, list[str]] = defaultdict(list)
    for role, column in mapping.active_assigned().items():
        roles_by_column[column].append(role)

    errors: list[ValidationError] = []
    for column, roles in roles_by_column.items():
        if len(roles) > 1:
            errors.append(
                ValidationError(
                    code="DUPLICATE_COLUMN",
                    message=f"Column '{column}' is assigned to several roles: {', '.join(roles)}",
                    field=column,
                    details={"roles": roles},
                )
            )
    return errors


def validate_mapping(
    mapping: ColumnMapping,
    columns: Sequence[str],
) -> list[ValidationError]:
    """Run every readiness check; an empty list means the mapping may be committed."""
    return (
        validate_required_roles(mapping)
        + validate_known_columns(mapping, columns)
        + validate_distinct_columns(mapping)
    )
