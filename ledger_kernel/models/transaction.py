"""
Module: ledger_kernel.models.transaction
Responsibility: ORM persistence for ledger transactions.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - amount is an unsigned magnitude; the sign lives in ``type``
      (income | expense).
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class LedgerTransaction(TrackedBase):
    """One income or expense movement on an account."""

    __tablename__ = "ledger_transactions"

    __table_args__ = (Index("idx_ledger_tx_account_date", "account_id", "date"),)

    date: Mapped[datetime] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id", ondelete="RESTRICT"), nullable=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
