"""
ledger_ingestion.domain.types -- Pure frozen dataclasses for the import engine.

ZERO I/O. Imports only from ledger_kernel.

Contents:
    - Enums for import mode, entity discriminators, direction and verdict.
    - EntityCatalog: read-only snapshot of existing accounts, categories
      and holdings, with the case-insensitive lookups the resolver needs.
    - Column mappings: one frozen record per target shape (tagged union).
    - ImportSession: the immutable (mode, columns, rows, mapping, catalog)
      value every pure function of the engine takes.
    - Candidate records and MaterializedRow (candidate + verdict + reasons
      + warnings).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Mapping, Union

from ledger_kernel.domain.dtos import ValidationError
from ledger_kernel.exceptions import ConfigurationError, UnknownImportModeError

# A raw row: column name -> cell.  Cells are text from the CSV reader, or
# text / numbers / dates from the spreadsheet reader.
RawRow = Mapping[str, Any]


# =============================================================================
# Enums
# =============================================================================


class ImportMode(str, Enum):
    """Target record shape of one import session."""

    TRANSACTIONS = "transactions"
    TRADES = "trades"
    ACCOUNTS = "accounts"
    CATEGORIES = "categories"

    @classmethod
    def parse(cls, value: ImportMode | str) -> ImportMode:
        try:
            return cls(value)
        except ValueError:
            raise UnknownImportModeError(str(value)) from None


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"
    CASH = "cash"


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class Direction(str, Enum):
    """Direction of a ledger transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class TradeDirection(str, Enum):
    BUY = "buy"
    SELL = "sell"


class Verdict(str, Enum):
    VALID = "valid"
    INVALID = "invalid"


# =============================================================================
# Entity Catalog
# =============================================================================


@dataclass(frozen=True)
class CatalogAccount:
    id: int
    name: str
    type: AccountType


@dataclass(frozen=True)
class CatalogCategory:
    id: int
    name: str
    type: CategoryType


@dataclass(frozen=True)
class CatalogHolding:
    id: int
    ticker: str
    name: str
    asset_type: str
    currency: str


@dataclass(frozen=True)
class EntityCatalog:
    """
    Read-only snapshot of existing entities, supplied once per session.

    Lookups by name are case-insensitive and whitespace-trimmed; lookups by
    ticker use the uppercased ticker (the Resolution Key).  When two entities
    share a name, the first in catalog order wins.
    """

    accounts: tuple[CatalogAccount, ...] = ()
    categories: tuple[CatalogCategory, ...] = ()
    holdings: tuple[CatalogHolding, ...] = ()

    def account_by_name(self, name: str) -> CatalogAccount | None:
        key = name.strip().lower()
        for account in self.accounts:
            if account.name.strip().lower() == key:
                return account
        return None

    def account_by_id(self, account_id: int) -> CatalogAccount | None:
        for account in self.accounts:
            if account.id == account_id:
                return account
        return None

    def categories_by_name(self, name: str) -> list[CatalogCategory]:
        key = name.strip().lower()
        return [c for c in self.categories if c.name.strip().lower() == key]

    def category_by_id(self, category_id: int) -> CatalogCategory | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def holding_by_ticker(self, ticker: str) -> CatalogHolding | None:
        key = ticker.strip().upper()
        for holding in self.holdings:
            if holding.ticker.upper() == key:
                return holding
        return None

    def with_holding(self, holding: CatalogHolding) -> EntityCatalog:
        """Return a new catalog with ``holding`` appended."""
        return replace(self, holdings=self.holdings + (holding,))


# =============================================================================
# Column mappings (one per target shape)
# =============================================================================


@dataclass(frozen=True)
class _MappingBase(ABC):
    """Shared behaviour of the per-shape column mappings."""

    mode: ClassVar[ImportMode]

    def roles(self) -> dict[str, str | None]:
        """Role -> column (or None) for every column-valued role."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "dual_amount"
        }

    def assigned(self) -> dict[str, str]:
        return {role: column for role, column in self.roles().items() if column}

    def active_roles(self) -> tuple[str, ...]:
        """Roles the materializer reads for this mapping's current settings."""
        return tuple(self.roles())

    def active_assigned(self) -> dict[str, str]:
        active = set(self.active_roles())
        return {role: column for role, column in self.assigned().items() if role in active}

    @abstractmethod
    def required_roles(self) -> tuple[str, ...]:
        """Roles that must be assigned before the mapping can be committed."""


@dataclass(frozen=True)
class TransactionMapping(_MappingBase):
    """
    Ledger transaction mapping.

    ``dual_amount`` selects separate income/expense columns instead of one
    signed ``amount`` column.
    """

    mode: ClassVar[ImportMode] = ImportMode.TRANSACTIONS

    date: str | None = None
    description: str | None = None
    amount: str | None = None
    income_amount: str | None = None
    expense_amount: str | None = None
    type: str | None = None
    account: str | None = None
    category: str | None = None
    dual_amount: bool = False

    def required_roles(self) -> tuple[str, ...]:
        if self.dual_amount:
            return ("date", "description", "income_amount", "expense_amount")
        return ("date", "description", "amount")

    def active_roles(self) -> tuple[str, ...]:
        inactive = {"amount"} if self.dual_amount else {"income_amount", "expense_amount"}
        return tuple(role for role in self.roles() if role not in inactive)


@dataclass(frozen=True)
class TradeMapping(_MappingBase):
    mode: ClassVar[ImportMode] = ImportMode.TRADES

    date: str | None = None
    ticker: str | None = None
    name: str | None = None
    type: str | None = None
    quantity: str | None = None
    price_per_unit: str | None = None
    total_amount: str | None = None
    fees: str | None = None

    def required_roles(self) -> tuple[str, ...]:
        return ("date", "ticker", "type", "quantity", "price_per_unit")


@dataclass(frozen=True)
class AccountMapping(_MappingBase):
    mode: ClassVar[ImportMode] = ImportMode.ACCOUNTS

    name: str | None = None
    type: str | None = None
    balance: str | None = None
    currency: str | None = None

    def required_roles(self) -> tuple[str, ...]:
        return ("name", "type")


@dataclass(frozen=True)
class CategoryMapping(_MappingBase):
    mode: ClassVar[ImportMode] = ImportMode.CATEGORIES

    name: str | None = None
    type: str | None = None
    budget: str | None = None

    def required_roles(self) -> tuple[str, ...]:
        return ("name", "type")


ColumnMapping = Union[TransactionMapping, TradeMapping, AccountMapping, CategoryMapping]

MAPPING_TYPES: dict[ImportMode, type] = {
    ImportMode.TRANSACTIONS: TransactionMapping,
    ImportMode.TRADES: TradeMapping,
    ImportMode.ACCOUNTS: AccountMapping,
    ImportMode.CATEGORIES: CategoryMapping,
}


# =============================================================================
# Import session
# =============================================================================


@dataclass(frozen=True)
class ImportSession:
    """
    Immutable state of one import: what was uploaded, how it is mapped, and
    what it resolves against.

    Operator overrides produce a new session via ``with_mapping``; nothing
    mutates a session in place.
    """

    mode: ImportMode
    columns: tuple[str, ...]
    rows: tuple[RawRow, ...]
    mapping: ColumnMapping
    catalog: EntityCatalog = field(default_factory=EntityCatalog)
    default_account_id: int | None = None
    session_id: str | None = None

    def __post_init__(self) -> None:
        if self.mapping.mode is not self.mode:
            raise ConfigurationError(
                f"{type(self.mapping).__name__} cannot drive a {self.mode.value} import"
            )

    def with_mapping(self, mapping: ColumnMapping) -> ImportSession:
        return replace(self, mapping=mapping)

    def with_default_account(self, account_id: int | None) -> ImportSession:
        return replace(self, default_account_id=account_id)


# =============================================================================
# Candidate records
# =============================================================================


@dataclass(frozen=True)
class TransactionCandidate:
    """A ledger transaction; ``amount`` is an unsigned magnitude."""

    date: datetime
    amount: Decimal
    description: str
    account_id: int | None
    category_id: int | None
    direction: Direction


@dataclass(frozen=True)
class TradeCandidate:
    """A trade whose holding is still referenced by ticker."""

    ticker: str
    name: str
    date: datetime
    direction: TradeDirection
    quantity: Decimal
    price_per_unit: Decimal
    total_amount: Decimal
    fees: Decimal


@dataclass(frozen=True)
class AccountCandidate:
    name: str
    type: AccountType
    starting_balance: Decimal
    currency: str
    color: str
    credit_limit: Decimal | None = None


@dataclass(frozen=True)
class CategoryCandidate:
    name: str
    type: CategoryType
    color: str
    icon: str | None = None
    budget: Decimal | None = None


Candidate = Union[TransactionCandidate, TradeCandidate, AccountCandidate, CategoryCandidate]


@dataclass(frozen=True)
class MaterializedRow:
    """
    One raw row after materialization.

    ``reasons`` explains an INVALID verdict; ``warnings`` flags degraded but
    accepted input (a cell that fell back to 0 or to today).
    """

    source_row: int  # 1-indexed, excluding the header
    candidate: Candidate
    verdict: Verdict
    reasons: tuple[ValidationError, ...] = ()
    warnings: tuple[ValidationError, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.verdict is Verdict.VALID
