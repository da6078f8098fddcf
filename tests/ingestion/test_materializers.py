"""Tests for the per-shape row materializers."""

from datetime import datetime
from decimal import Decimal

import pytest

from ledger_ingestion.domain.types import (
    AccountMapping,
    AccountType,
    CategoryMapping,
    CategoryType,
    Direction,
    TradeDirection,
    TradeMapping,
    TransactionMapping,
    Verdict,
)
from ledger_ingestion.materializers import (
    AccountMaterializer,
    CategoryMaterializer,
    TradeMaterializer,
    TransactionMaterializer,
    materialize_rows,
)
from ledger_ingestion.materializers.account import parse_account_type
from ledger_ingestion.materializers.base import derive_color
from ledger_ingestion.materializers.category import parse_category_type
from ledger_ingestion.materializers.trade import parse_trade_direction

SINGLE = TransactionMapping(
    date="Date",
    description="Description",
    amount="Amount",
    type="Type",
    account="Account",
    category="Category",
)
DUAL = TransactionMapping(
    date="Date",
    description="Description",
    income_amount="In",
    expense_amount="Out",
    dual_amount=True,
)


def codes(items):
    return [item.code for item in items]


class TestTransactionMaterializer:
    @pytest.fixture
    def materialize(self, resolver, deterministic_clock):
        materializer = TransactionMaterializer()

        def _run(row, mapping=SINGLE):
            return materializer.materialize(row, 1, mapping, resolver, deterministic_clock)

        return _run

    def test_negative_amount_is_expense(self, materialize):
        result = materialize(
            {
                "Date": "01/02/2024",
                "Description": "Coffee beans",
                "Amount": "-25,50",
                "Account": "Main Checking",
                "Category": "Groceries",
            }
        )
        assert result.verdict is Verdict.VALID
        assert result.warnings == ()
        candidate = result.candidate
        assert candidate.date == datetime(2024, 2, 1, 12, 0)
        assert candidate.amount == Decimal("25.50")
        assert candidate.direction is Direction.EXPENSE
        assert candidate.account_id == 1
        assert candidate.category_id == 11

    def test_positive_amount_is_income(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "Pay", "Amount": "1.000,00", "Account": "Savings"})
        assert result.candidate.direction is Direction.INCOME
        assert result.candidate.amount == Decimal("1000.00")
        assert result.candidate.account_id == 2
        assert result.candidate.category_id == 10

    def test_type_cell_overrides_sign(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "Refund", "Amount": "-50", "Type": "Entrata"})
        assert result.candidate.direction is Direction.INCOME
        assert result.candidate.amount == Decimal("50")

    def test_unrecognized_type_cell_is_expense(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "Rent", "Amount": "700", "Type": "Uscita"})
        assert result.candidate.direction is Direction.EXPENSE

    def test_empty_description_uses_fallback(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "  ", "Amount": "5"})
        assert result.candidate.description == "Imported Transaction"

    def test_custom_fallback_description(self, resolver, deterministic_clock):
        materializer = TransactionMaterializer(fallback_description="Bank import")
        result = materializer.materialize({"Amount": "5"}, 1, SINGLE, resolver, deterministic_clock)
        assert result.candidate.description == "Bank import"

    def test_unknown_account_is_invalid(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "x", "Amount": "5", "Account": "Brokerage"})
        assert result.verdict is Verdict.INVALID
        assert codes(result.reasons) == ["ACCOUNT_UNRESOLVED"]
        assert result.candidate.account_id is None

    def test_unparseable_amount_warns_and_rejects(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "x", "Amount": "n/a", "Account": "Savings"})
        assert result.verdict is Verdict.INVALID
        assert codes(result.reasons) == ["NON_POSITIVE_AMOUNT"]
        assert codes(result.warnings) == ["AMOUNT_UNPARSEABLE"]

    def test_missing_date_is_today_with_warning(self, materialize):
        result = materialize({"Description": "x", "Amount": "5", "Account": "Savings"})
        assert result.candidate.date == datetime(2024, 6, 15, 12, 0)
        assert codes(result.warnings) == ["DATE_MISSING"]
        assert result.is_valid

    def test_unknown_category_defaults_with_warning(self, materialize):
        result = materialize(
            {"Date": "2024-02-02", "Description": "x", "Amount": "-5", "Account": "Savings", "Category": "Travel"}
        )
        assert result.candidate.category_id == 11
        assert codes(result.warnings) == ["CATEGORY_DEFAULTED"]
        assert result.is_valid

    def test_dual_income(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "x", "In": "1000", "Out": ""}, DUAL)
        assert result.candidate.direction is Direction.INCOME
        assert result.candidate.amount == Decimal("1000")

    def test_dual_expense(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "x", "In": "", "Out": "12,00"}, DUAL)
        assert result.candidate.direction is Direction.EXPENSE
        assert result.candidate.amount == Decimal("12.00")

    def test_dual_both_positive_is_income(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "x", "In": "3", "Out": "4"}, DUAL)
        assert result.candidate.direction is Direction.INCOME
        assert result.candidate.amount == Decimal("3")

    def test_dual_neither_positive_is_invalid(self, materialize):
        result = materialize({"Date": "2024-02-02", "Description": "x", "In": "", "Out": "-4"}, DUAL)
        assert result.candidate.amount == Decimal("0")
        assert codes(result.reasons) == ["NON_POSITIVE_AMOUNT"]


class TestTradeMaterializer:
    MAPPING = TradeMapping(
        date="Date",
        ticker="Ticker",
        name="Name",
        type="Side",
        quantity="Qty",
        price_per_unit="Price",
        total_amount="Total",
        fees="Fees",
    )

    @pytest.fixture
    def materialize(self, resolver, deterministic_clock):
        materializer = TradeMaterializer()

        def _run(row):
            return materializer.materialize(row, 3, self.MAPPING, resolver, deterministic_clock)

        return _run

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Buy", TradeDirection.BUY),
            ("Acquisto", TradeDirection.BUY),
            ("A", TradeDirection.BUY),
            ("Sell", TradeDirection.SELL),
            ("Vendita", TradeDirection.SELL),
            ("s", TradeDirection.SELL),
            ("V", TradeDirection.SELL),
            ("-", TradeDirection.SELL),
            ("-10", TradeDirection.SELL),
            ("Uscita", TradeDirection.SELL),
            ("DEBIT", TradeDirection.SELL),
            ("Credit", TradeDirection.BUY),
            ("", TradeDirection.BUY),
            ("dividend", TradeDirection.BUY),
        ],
    )
    def test_parse_trade_direction(self, raw, expected):
        assert parse_trade_direction(raw) is expected

    def test_full_row(self, materialize):
        result = materialize(
            {
                "Date": "15/03/2024",
                "Ticker": " aapl ",
                "Name": "Apple Inc",
                "Side": "Vendita",
                "Qty": "-10",
                "Price": "170,50",
                "Total": "1.705,00",
                "Fees": "2,95",
            }
        )
        assert result.is_valid
        assert result.source_row == 3
        candidate = result.candidate
        assert candidate.ticker == "AAPL"
        assert candidate.name == "Apple Inc"
        assert candidate.date == datetime(2024, 3, 15, 12, 0)
        assert candidate.direction is TradeDirection.SELL
        assert candidate.quantity == Decimal("10")
        assert candidate.price_per_unit == Decimal("170.50")
        assert candidate.total_amount == Decimal("1705.00")
        assert candidate.fees == Decimal("2.95")

    def test_zero_total_is_recomputed(self, materialize):
        result = materialize({"Date": "2024-03-15", "Ticker": "VWCE", "Side": "Buy", "Qty": "4", "Price": "100.25"})
        assert result.candidate.total_amount == Decimal("401.00")
        assert result.candidate.fees == Decimal("0")
        assert result.candidate.name == "VWCE"

    def test_missing_ticker_and_zero_quantity(self, materialize):
        result = materialize({"Date": "2024-03-15", "Ticker": "", "Side": "Buy", "Qty": "0", "Price": "0"})
        assert result.verdict is Verdict.INVALID
        assert codes(result.reasons) == ["MISSING_TICKER", "NON_POSITIVE_QUANTITY", "NON_POSITIVE_PRICE"]

    def test_materializing_never_creates_holdings(self, materialize, resolver):
        materialize({"Date": "2024-03-15", "Ticker": "NEW", "Side": "Buy", "Qty": "1", "Price": "1"})
        assert resolver.created_tickers == ()
        assert resolver.lookup_holding("NEW") is None


class TestAccountMaterializer:
    MAPPING = AccountMapping(name="Name", type="Type", balance="Balance", currency="Currency")

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Conto Risparmio", AccountType.SAVINGS),
            ("Savings", AccountType.SAVINGS),
            ("Carta di credito", AccountType.CREDIT),
            ("Investments", AccountType.INVESTMENT),
            ("Contanti", AccountType.CASH),
            ("Current", AccountType.CHECKING),
            ("", AccountType.CHECKING),
        ],
    )
    def test_parse_account_type(self, raw, expected):
        assert parse_account_type(raw) is expected

    def test_full_row(self, resolver, deterministic_clock):
        row = {"Name": "Visa", "Type": "Credit card", "Balance": "-1.200,00", "Currency": "usd"}
        result = AccountMaterializer().materialize(row, 1, self.MAPPING, resolver, deterministic_clock)
        candidate = result.candidate
        assert result.is_valid
        assert candidate.type is AccountType.CREDIT
        assert candidate.starting_balance == Decimal("-1200.00")
        assert candidate.currency == "USD"
        assert candidate.credit_limit == Decimal("0")
        assert candidate.color == derive_color("Visa")

    def test_defaults(self, resolver, deterministic_clock):
        row = {"Name": "Wallet", "Type": "cash"}
        result = AccountMaterializer(default_currency="CHF").materialize(
            row, 1, self.MAPPING, resolver, deterministic_clock
        )
        assert result.candidate.currency == "CHF"
        assert result.candidate.starting_balance == Decimal("0")
        assert result.candidate.credit_limit is None

    def test_missing_name_is_invalid(self, resolver, deterministic_clock):
        result = AccountMaterializer().materialize({"Type": "savings"}, 1, self.MAPPING, resolver, deterministic_clock)
        assert codes(result.reasons) == ["MISSING_NAME"]


class TestCategoryMaterializer:
    MAPPING = CategoryMapping(name="Name", type="Type", budget="Budget")

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Income", CategoryType.INCOME),
            ("Entrata", CategoryType.INCOME),
            ("Giroconto", CategoryType.TRANSFER),
            ("transfer", CategoryType.TRANSFER),
            ("Spesa", CategoryType.EXPENSE),
            ("", CategoryType.EXPENSE),
        ],
    )
    def test_parse_category_type(self, raw, expected):
        assert parse_category_type(raw) is expected

    def test_budget_only_when_present(self, resolver, deterministic_clock):
        materializer = CategoryMaterializer()
        with_budget = materializer.materialize(
            {"Name": "Food", "Type": "expense", "Budget": "300,00"}, 1, self.MAPPING, resolver, deterministic_clock
        )
        without_budget = materializer.materialize(
            {"Name": "Fun", "Type": "expense", "Budget": ""}, 2, self.MAPPING, resolver, deterministic_clock
        )
        assert with_budget.candidate.budget == Decimal("300.00")
        assert without_budget.candidate.budget is None

    def test_colour_is_stable(self):
        assert derive_color("Food") == derive_color(" food ")
        assert derive_color("Food").startswith("#")
        assert len(derive_color("Food")) == 7


class TestMaterializeRows:
    def test_numbering_starts_at_one(self, resolver, deterministic_clock, captured_logs):
        rows = [
            {"Date": "2024-01-01", "Description": "a", "Amount": "1"},
            {"Date": "2024-01-02", "Description": "b", "Amount": "0"},
        ]
        mapping = TransactionMapping(date="Date", description="Description", amount="Amount")
        results = materialize_rows(rows, mapping, TransactionMaterializer(), resolver, deterministic_clock)
        assert [r.source_row for r in results] == [1, 2]
        assert [r.verdict for r in results] == [Verdict.VALID, Verdict.INVALID]

        rejected = [r for r in captured_logs() if r["message"] == "row_rejected"]
        assert len(rejected) == 1
        assert rejected[0]["source_row"] == 2
        assert rejected[0]["reasons"] == ["NON_POSITIVE_AMOUNT"]
