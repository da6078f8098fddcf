"""ORM models written by the reference persistence collaborator."""

from ledger_kernel.models.account import Account
from ledger_kernel.models.category import Category
from ledger_kernel.models.holding import Holding
from ledger_kernel.models.trade import Trade
from ledger_kernel.models.transaction import LedgerTransaction

__all__ = [
    "Account",
    "Category",
    "Holding",
    "LedgerTransaction",
    "Trade",
]
