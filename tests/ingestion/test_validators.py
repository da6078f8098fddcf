"""Tests for mapping commit-readiness checks."""

from ledger_ingestion.domain.types import TradeMapping, TransactionMapping
from ledger_ingestion.domain.validators import (
    validate_distinct_columns,
    validate_known_columns,
    validate_mapping,
    validate_required_roles,
)
from ledger_ingestion.mapping.classifier import propose_mapping

COLUMNS = ["Date", "Description", "Amount", "In", "Out"]


class TestRequiredRoles:
    def test_single_amount_requires_amount(self):
        errors = validate_required_roles(TransactionMapping(date="Date"))
        assert [(e.code, e.field) for e in errors] == [
            ("MISSING_REQUIRED_ROLE", "description"),
            ("MISSING_REQUIRED_ROLE", "amount"),
        ]

    def test_dual_amount_requires_both_columns(self):
        mapping = TransactionMapping(date="Date", description="Description", income_amount="In", dual_amount=True)
        errors = validate_required_roles(mapping)
        assert [e.field for e in errors] == ["expense_amount"]

    def test_dual_amount_does_not_require_amount(self):
        mapping = TransactionMapping(
            date="Date", description="Description", income_amount="In", expense_amount="Out", dual_amount=True
        )
        assert validate_required_roles(mapping) == []

    def test_trade_requirements(self):
        errors = validate_required_roles(TradeMapping(ticker="T"))
        assert {e.field for e in errors} == {"date", "type", "quantity", "price_per_unit"}


class TestColumns:
    def test_unknown_column(self):
        mapping = TransactionMapping(date="Date", description="Description", amount="Importo")
        errors = validate_known_columns(mapping, COLUMNS)
        assert len(errors) == 1
        assert errors[0].code == "UNKNOWN_COLUMN"
        assert errors[0].field == "amount"
        assert errors[0].details == {"column": "Importo"}

    def test_duplicate_column(self):
        mapping = TransactionMapping(date="Date", description="Date", amount="Amount")
        errors = validate_distinct_columns(mapping)
        assert len(errors) == 1
        assert errors[0].code == "DUPLICATE_COLUMN"
        assert errors[0].field == "Date"
        assert errors[0].details == {"roles": ["date", "description"]}


class TestValidateMapping:
    def test_ready_mapping_has_no_errors(self):
        mapping = TransactionMapping(date="Date", description="Description", amount="Amount")
        assert validate_mapping(mapping, COLUMNS) == []

    def test_collects_every_kind_of_error(self):
        mapping = TransactionMapping(date="Date", description="Date", amount="Missing")
        codes = {e.code for e in validate_mapping(mapping, COLUMNS)}
        assert codes == {"UNKNOWN_COLUMN", "DUPLICATE_COLUMN"}


class TestDualAmountReadiness:
    """Only the roles the current amount layout reads are checked."""

    HEADERS = ["Date", "Description", "Income Amount", "Expense Amount"]

    def test_proposed_dual_amount_mapping_is_ready(self):
        mapping = propose_mapping(self.HEADERS, "transactions")
        assert mapping.dual_amount is True
        assert mapping.amount == "Income Amount"
        assert validate_mapping(mapping, self.HEADERS) == []

    def test_leftover_amount_ignored_in_dual_mode(self):
        mapping = TransactionMapping(
            date="Date",
            description="Description",
            amount="Gone",
            income_amount="In",
            expense_amount="Out",
            dual_amount=True,
        )
        assert validate_mapping(mapping, COLUMNS) == []

    def test_income_and_expense_ignored_in_single_mode(self):
        mapping = TransactionMapping(
            date="Date", description="Description", amount="Amount", income_amount="Amount"
        )
        assert validate_distinct_columns(mapping) == []

    def test_duplicate_between_read_roles_still_reported(self):
        mapping = TransactionMapping(
            date="Date",
            description="Description",
            income_amount="In",
            expense_amount="In",
            dual_amount=True,
        )
        errors = validate_distinct_columns(mapping)
        assert [e.details for e in errors] == [{"roles": ["income_amount", "expense_amount"]}]
