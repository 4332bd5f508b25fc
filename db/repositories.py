"""
Repository pattern for data access operations.

Provides a clean abstraction layer between business logic and database operations.
Supports future extensions (caching, different backends, etc.).
"""

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from db.models import (
    Account,
    AssetCategory,
    CashHolding,
    CryptoHolding,
    Investment,
    PortfolioSnapshot,
    Transaction,
    TransactionType,
)


class PositionRepository:
    """
    Base repository for the four position tables.

    Subclasses only bind the ORM model; lookups are by primary id.
    """
    model: type = None

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, position_id: int):
        """Get position by ID."""
        return self.session.get(self.model, position_id)

    def get_all(self) -> Sequence:
        """Get all positions, newest first."""
        stmt = select(self.model).order_by(self.model.created_at.desc(), self.model.id.desc())
        return self.session.scalars(stmt).all()

    def count(self) -> int:
        """Number of positions in the table."""
        return self.session.scalar(select(func.count()).select_from(self.model)) or 0

    def create(self, **fields: Any):
        """Create a new position."""
        position = self.model(**fields)
        self.session.add(position)
        self.session.flush()  # Get the ID
        return position

    def update(self, position_id: int, **fields: Any):
        """
        Partial update: fields passed as None are left unchanged.

        Returns:
            Updated position, or None if it does not exist.
        """
        position = self.get_by_id(position_id)
        if position is None:
            return None
        for name, value in fields.items():
            if value is not None:
                setattr(position, name, value)
        self.session.flush()
        return position

    def delete(self, position_id: int) -> bool:
        """Delete a position by ID. Its transactions are kept."""
        position = self.get_by_id(position_id)
        if position:
            self.session.delete(position)
            self.session.flush()
            return True
        return False

    def delete_all(self) -> int:
        """Delete every row in the table."""
        result = self.session.execute(delete(self.model))
        return result.rowcount or 0


class AccountRepository(PositionRepository):
    """Repository for bank accounts."""
    model = Account


class CashRepository(PositionRepository):
    """Repository for cash holdings."""
    model = CashHolding


class InvestmentRepository(PositionRepository):
    """Repository for investments."""
    model = Investment


class CryptoRepository(PositionRepository):
    """Repository for crypto holdings."""
    model = CryptoHolding


REPOSITORIES: dict[AssetCategory, type[PositionRepository]] = {
    AssetCategory.ACCOUNT: AccountRepository,
    AssetCategory.INVESTMENT: InvestmentRepository,
    AssetCategory.CRYPTO: CryptoRepository,
    AssetCategory.CASH: CashRepository,
}


def repository_for(session: Session, category: AssetCategory) -> PositionRepository:
    """Get the position repository for an asset category."""
    return REPOSITORIES[category](session)


class TransactionRepository:
    """Repository for the append-only transaction ledger."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, transaction_id: int) -> Transaction | None:
        """Get transaction by ID."""
        return self.session.get(Transaction, transaction_id)

    def create(
        self,
        transaction_type: TransactionType,
        asset_category: AssetCategory,
        asset_id: int,
        amount: float,
        price: float | None = None,
        quantity: float | None = None,
        description: str | None = None,
        transaction_at: datetime | None = None,
    ) -> Transaction:
        """Create a new transaction record."""
        transaction = Transaction(
            transaction_type=transaction_type,
            asset_category=asset_category,
            asset_id=asset_id,
            amount=amount,
            price=price,
            quantity=quantity,
            description=description,
        )
        if transaction_at is not None:
            transaction.transaction_at = transaction_at
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def get_transactions(
        self,
        asset_category: AssetCategory | None = None,
        asset_id: int | None = None,
        limit: int | None = None,
    ) -> Sequence[Transaction]:
        """Get transactions with optional filters, newest first."""
        stmt = select(Transaction)

        if asset_category:
            stmt = stmt.where(Transaction.asset_category == asset_category)
        if asset_id is not None:
            stmt = stmt.where(Transaction.asset_id == asset_id)

        stmt = stmt.order_by(Transaction.transaction_at.desc(), Transaction.id.desc())

        if limit:
            stmt = stmt.limit(limit)

        return self.session.scalars(stmt).all()

    def list_for_asset_chronological(
        self,
        asset_category: AssetCategory,
        asset_id: int,
    ) -> Sequence[Transaction]:
        """Get all transactions for one position, oldest first (for replay)."""
        stmt = (
            select(Transaction)
            .where(
                Transaction.asset_category == asset_category,
                Transaction.asset_id == asset_id,
            )
            .order_by(Transaction.transaction_at, Transaction.id)
        )
        return self.session.scalars(stmt).all()

    def delete_all(self) -> int:
        """Delete the whole ledger (portfolio reset only)."""
        result = self.session.execute(delete(Transaction))
        return result.rowcount or 0


class SnapshotRepository:
    """Repository for portfolio history snapshots."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        total_value: float,
        accounts_value: float,
        investments_value: float,
        crypto_value: float,
        cash_value: float,
        recorded_at: datetime | None = None,
    ) -> PortfolioSnapshot:
        """Append a snapshot."""
        snapshot = PortfolioSnapshot(
            total_value=total_value,
            accounts_value=accounts_value,
            investments_value=investments_value,
            crypto_value=crypto_value,
            cash_value=cash_value,
        )
        if recorded_at is not None:
            snapshot.recorded_at = recorded_at
        self.session.add(snapshot)
        self.session.flush()
        return snapshot

    def get_recent(self, limit: int) -> list[PortfolioSnapshot]:
        """Get the most recent snapshots in ascending time order."""
        stmt = (
            select(PortfolioSnapshot)
            .order_by(PortfolioSnapshot.recorded_at.desc(), PortfolioSnapshot.id.desc())
            .limit(limit)
        )
        return list(reversed(self.session.scalars(stmt).all()))

    def get_latest(self) -> PortfolioSnapshot | None:
        """Get the most recent snapshot."""
        recent = self.get_recent(1)
        return recent[0] if recent else None

    def get_before(self, cutoff: datetime) -> Sequence[PortfolioSnapshot]:
        """Get all snapshots recorded before cutoff, oldest first."""
        stmt = (
            select(PortfolioSnapshot)
            .where(PortfolioSnapshot.recorded_at < cutoff)
            .order_by(PortfolioSnapshot.recorded_at, PortfolioSnapshot.id)
        )
        return self.session.scalars(stmt).all()

    def count(self) -> int:
        """Number of stored snapshots."""
        return self.session.scalar(select(func.count()).select_from(PortfolioSnapshot)) or 0

    def delete_ids(self, snapshot_ids: list[int]) -> int:
        """Delete whole snapshots by ID (retention pruning only)."""
        if not snapshot_ids:
            return 0
        result = self.session.execute(
            delete(PortfolioSnapshot).where(PortfolioSnapshot.id.in_(snapshot_ids))
        )
        return result.rowcount or 0

    def delete_all(self) -> int:
        """Delete all history (portfolio reset only)."""
        result = self.session.execute(delete(PortfolioSnapshot))
        return result.rowcount or 0
