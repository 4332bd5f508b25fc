"""
SQLAlchemy ORM Models for the Net Worth Dashboard.

Defines all database entities:
- Positions in four asset categories (accounts, investments, crypto, cash)
- Transaction ledger (append-only, drives position changes)
- Portfolio snapshots (append-only net worth history)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    DateTime,
    Enum as SQLEnum,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (SQLite stores no offset)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class AssetCategory(str, Enum):
    """Category of a position. Each category has its own ledger table."""
    ACCOUNT = "ACCOUNT"
    INVESTMENT = "INVESTMENT"
    CRYPTO = "CRYPTO"
    CASH = "CASH"


class TransactionType(str, Enum):
    """Transaction type. Legality depends on the asset category."""
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"


class Account(Base):
    """
    Bank account (cash-equivalent position).

    Balance is signed; overdrafts are representable.
    """
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    bank: Mapped[str] = mapped_column(String(255), nullable=False)
    balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="EUR")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def value(self) -> float:
        return self.balance

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name={self.name!r}, balance={self.balance})>"


class CashHolding(Base):
    """Physical cash or other uninvested money kept outside a bank."""
    __tablename__ = "cash_holdings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="EUR")
    location: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def value(self) -> float:
        return self.amount

    def __repr__(self) -> str:
        return f"<CashHolding(id={self.id}, name={self.name!r}, amount={self.amount})>"


class Investment(Base):
    """
    Equity-like position, one row per symbol held.

    Fields:
        purchase_price: Weighted average cost per share, recomputed on each BUY
        current_price / total_value: Last known quote and mark-to-market value.
            Both set or both NULL; total_value = current_price * shares.
    """
    __tablename__ = "investments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    shares: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    purchase_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    current_price: Mapped[Optional[float]] = mapped_column(Float)
    total_value: Mapped[Optional[float]] = mapped_column(Float)
    dividends: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def quantity(self) -> float:
        return self.shares

    @quantity.setter
    def quantity(self, value: float) -> None:
        self.shares = value

    @property
    def cost_basis(self) -> float:
        """Shares * average purchase price."""
        return self.shares * self.purchase_price

    def __repr__(self) -> str:
        return f"<Investment(id={self.id}, symbol={self.symbol}, shares={self.shares})>"


class CryptoHolding(Base):
    """
    Cryptocurrency position keyed by a provider id (e.g. "bitcoin").

    Same valuation semantics as Investment, without dividends.
    """
    __tablename__ = "crypto_holdings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    purchase_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    current_price: Mapped[Optional[float]] = mapped_column(Float)
    total_value: Mapped[Optional[float]] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def quantity(self) -> float:
        return self.amount

    @quantity.setter
    def quantity(self, value: float) -> None:
        self.amount = value

    @property
    def cost_basis(self) -> float:
        """Amount * average purchase price."""
        return self.amount * self.purchase_price

    def __repr__(self) -> str:
        return f"<CryptoHolding(id={self.id}, symbol={self.symbol}, amount={self.amount})>"


class Transaction(Base):
    """
    Transaction ledger entry.

    Append-only source of truth for position changes. asset_id is a plain
    reference (no foreign key): deleting a position keeps its history, and
    readers must tolerate dangling references.
    """
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType, native_enum=False, length=20),
        nullable=False
    )
    asset_category: Mapped[AssetCategory] = mapped_column(
        SQLEnum(AssetCategory, native_enum=False, length=20),
        nullable=False
    )
    asset_id: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    price: Mapped[Optional[float]] = mapped_column(Float)
    quantity: Mapped[Optional[float]] = mapped_column(Float)
    description: Mapped[Optional[str]] = mapped_column(Text)
    transaction_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_transactions_asset", "asset_category", "asset_id"),
        Index("idx_transactions_date", "transaction_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, type={self.transaction_type}, "
            f"category={self.asset_category}, asset_id={self.asset_id}, amount={self.amount})>"
        )


class PortfolioSnapshot(Base):
    """
    Immutable point-in-time record of portfolio totals.

    Written after a price refresh; never updated.
    """
    __tablename__ = "portfolio_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    total_value: Mapped[float] = mapped_column(Float, nullable=False)
    accounts_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    investments_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    crypto_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    cash_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_portfolio_snapshots_recorded", "recorded_at"),
    )

    def __repr__(self) -> str:
        return f"<PortfolioSnapshot(id={self.id}, total={self.total_value}, at={self.recorded_at})>"


# Category -> ORM class for category-generic lookups
POSITION_MODELS: dict[AssetCategory, type[Base]] = {
    AssetCategory.ACCOUNT: Account,
    AssetCategory.INVESTMENT: Investment,
    AssetCategory.CRYPTO: CryptoHolding,
    AssetCategory.CASH: CashHolding,
}
