"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for money accounts (checking, savings, credit,
    investment, cash).  Rows are the Entity Catalog source for account
    resolution and the target of bulk account import.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from decimal import Decimal

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class Account(TrackedBase):
    """A money account that ledger transactions post to."""

    __tablename__ = "accounts"

    __table_args__ = (Index("idx_account_name", "name"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    starting_balance: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    credit_limit: Mapped[Decimal | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Account {self.id}: {self.name} ({self.type})>"
