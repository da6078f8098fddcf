"""
Module: ledger_kernel.models.trade
Responsibility: ORM persistence for brokerage trades against a holding.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class Trade(TrackedBase):
    """A buy or sell of a holding."""

    __tablename__ = "trades"

    holding_id: Mapped[int] = mapped_column(ForeignKey("holdings.id", ondelete="CASCADE"), nullable=False)
    date: Mapped[datetime] = mapped_column(nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    price_per_unit: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    fees: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    type: Mapped[str] = mapped_column(String(4), nullable=False)
