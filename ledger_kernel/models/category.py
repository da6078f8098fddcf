"""
Module: ledger_kernel.models.category
Responsibility: ORM persistence for ledger categories (income, expense,
    transfer).
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from decimal import Decimal

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class Category(TrackedBase):
    """A classification applied to ledger transactions."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(100), nullable=True)
    budget: Mapped[Decimal | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Category {self.id}: {self.name} ({self.type})>"
