"""
Database package initialization.

Exports commonly used components for convenient imports:
    from db import get_db, Account, Investment, etc.
"""

from db.models import (
    POSITION_MODELS,
    Account,
    AssetCategory,
    Base,
    CashHolding,
    CryptoHolding,
    Investment,
    PortfolioSnapshot,
    Transaction,  # Append-only ledger
    TransactionType,
    utcnow,
)
from db.session import (
    DatabaseManager,
    get_db,
    init_db,
    set_db,
)

__all__ = [
    # Models
    "POSITION_MODELS",
    "Account",
    "AssetCategory",
    "Base",
    "CashHolding",
    "CryptoHolding",
    "Investment",
    "PortfolioSnapshot",
    "Transaction",
    "TransactionType",
    "utcnow",
    # Session management
    "DatabaseManager",
    "get_db",
    "init_db",
    "set_db",
]
