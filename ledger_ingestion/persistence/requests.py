"""
Creation requests handed to the persistence gateway.

Each request is a frozen dataclass with ``to_payload()`` producing the wire
dict: camelCase keys, dates as ``YYYY-MM-DDTHH:MM:SS``, decimals as plain
(non-exponent) strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from ledger_ingestion.domain.types import (
    AccountCandidate,
    CategoryCandidate,
    TradeCandidate,
    TransactionCandidate,
)

WIRE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_decimal(value: Decimal) -> str:
    """Plain decimal string without exponent notation."""
    return format(value, "f")


def format_date(value: datetime) -> str:
    return value.strftime(WIRE_DATE_FORMAT)


@dataclass(frozen=True)
class HoldingRequest:
    """Create-or-reuse a holding by uppercased ticker."""

    ticker: str
    name: str
    asset_type: str
    currency: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "ticker": self.ticker.upper(),
            "name": self.name,
            "assetType": self.asset_type,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class TransactionRequest:
    date: datetime
    amount: Decimal
    description: str
    account_id: int
    category_id: int | None
    direction: str

    @classmethod
    def from_candidate(cls, candidate: TransactionCandidate) -> TransactionRequest:
        if candidate.account_id is None:
            raise ValueError("A transaction without an account cannot be submitted")
        return cls(
            date=candidate.date,
            amount=abs(candidate.amount),
            description=candidate.description,
            account_id=candidate.account_id,
            category_id=candidate.category_id,
            direction=candidate.direction.value,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "date": format_date(self.date),
            "amount": format_decimal(self.amount),
            "description": self.description,
            "accountId": self.account_id,
            "categoryId": self.category_id,
            "direction": self.direction,
        }


@dataclass(frozen=True)
class TradeRequest:
    holding_id: int
    date: datetime
    quantity: Decimal
    price_per_unit: Decimal
    total_amount: Decimal
    fees: Decimal
    direction: str

    @classmethod
    def from_candidate(cls, candidate: TradeCandidate, holding_id: int) -> TradeRequest:
        return cls(
            holding_id=holding_id,
            date=candidate.date,
            quantity=candidate.quantity,
            price_per_unit=candidate.price_per_unit,
            total_amount=candidate.total_amount,
            fees=candidate.fees,
            direction=candidate.direction.value,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "holdingId": self.holding_id,
            "date": format_date(self.date),
            "quantity": format_decimal(self.quantity),
            "pricePerUnit": format_decimal(self.price_per_unit),
            "totalAmount": format_decimal(self.total_amount),
            "fees": format_decimal(self.fees),
            "direction": self.direction,
        }


@dataclass(frozen=True)
class AccountRequest:
    name: str
    type: str
    starting_balance: Decimal
    currency: str
    color: str
    credit_limit: Decimal | None = None

    @classmethod
    def from_candidate(cls, candidate: AccountCandidate) -> AccountRequest:
        return cls(
            name=candidate.name,
            type=candidate.type.value,
            starting_balance=candidate.starting_balance,
            currency=candidate.currency,
            color=candidate.color,
            credit_limit=candidate.credit_limit,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "startingBalance": format_decimal(self.starting_balance),
            "currency": self.currency,
            "color": self.color,
            "creditLimit": None if self.credit_limit is None else format_decimal(self.credit_limit),
        }


@dataclass(frozen=True)
class CategoryRequest:
    name: str
    type: str
    color: str
    icon: str | None = None
    budget: Decimal | None = None

    @classmethod
    def from_candidate(cls, candidate: CategoryCandidate) -> CategoryRequest:
        return cls(
            name=candidate.name,
            type=candidate.type.value,
            color=candidate.color,
            icon=candidate.icon,
            budget=candidate.budget,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "color": self.color,
            "icon": self.icon,
            "budget": None if self.budget is None else format_decimal(self.budget),
        }
