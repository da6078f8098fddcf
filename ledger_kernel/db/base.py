"""
Module: ledger_kernel.db.base
Responsibility: Declarative base classes for the SQLAlchemy ORM models that the
    reference persistence collaborator writes to.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  ALL model files import from here.  MUST NOT import from models/
    or from ledger_ingestion.

Invariants enforced:
    - Integer primary keys: catalog identifiers are plain integers, matching
      the identifiers the import engine carries in Candidate Records.
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(38, 9).  NEVER use float for monetary amounts or quantities.
    - Audit timestamp: TrackedBase provides created_at for every row.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import DateTime, Integer, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is an autoincrementing Integer primary key (portable to SQLite).
        - Decimal maps to Numeric(38, 9).
        - datetime maps to DateTime(timezone=False); ledger dates are
          calendar dates normalized to midday, not instants.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=False),
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class TrackedBase(Base):
    """Abstract base with an insert timestamp."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
