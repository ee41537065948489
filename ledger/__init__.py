"""
Points Ledger for the community marketplace

This module provides:
- Transaction records with both parties' names resolved
- Per-user balance aggregation (giver is owed, getter owes)
- Per-counterparty balance breakdown and summary stats
- Shop ranking by credit ratio
"""

from .aggregator import LedgerAggregator, aggregate_ledger
from .errors import (
    LedgerServiceError,
    LedgerContractError,
    UserNotFoundError,
    InvalidTransferError,
)
from .models import (
    TransactionRecord,
    AnnotatedTransaction,
    CounterpartyBalance,
    LedgerStats,
    LedgerSummary,
    ShopStanding,
    CreateTransferRequest,
)
from .service import InMemoryStorage, LedgerService

__all__ = [
    "LedgerAggregator",
    "aggregate_ledger",
    "LedgerServiceError",
    "LedgerContractError",
    "UserNotFoundError",
    "InvalidTransferError",
    "TransactionRecord",
    "AnnotatedTransaction",
    "CounterpartyBalance",
    "LedgerStats",
    "LedgerSummary",
    "ShopStanding",
    "CreateTransferRequest",
    "InMemoryStorage",
    "LedgerService",
]
