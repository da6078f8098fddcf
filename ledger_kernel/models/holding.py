"""
Module: ledger_kernel.models.holding
Responsibility: ORM persistence for brokerage holdings (instruments).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - ticker is stored uppercased and is unique (uq_holding_ticker); it is the
      resolution key the importer deduplicates on.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class Holding(TrackedBase):
    """An instrument that trades reference."""

    __tablename__ = "holdings"

    __table_args__ = (UniqueConstraint("ticker", name="uq_holding_ticker"),)

    ticker: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    asset_type: Mapped[str] = mapped_column(String(50), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    def __repr__(self) -> str:
        return f"<Holding {self.id}: {self.ticker}>"
