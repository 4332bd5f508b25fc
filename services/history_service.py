"""
History Service - Append-only portfolio snapshots.

Snapshots are written after a price refresh, never on a plain read, and
are never modified. prune_history is the only way rows leave the table:
snapshots older than the retention window are rolled up to the last
snapshot of each calendar day.
"""

import logging
from datetime import datetime, timedelta

import pandas as pd

from analytics.portfolio import PortfolioTotals
from config import config
from db import PortfolioSnapshot, get_db, utcnow
from db.repositories import SnapshotRepository


logger = logging.getLogger(__name__)

HISTORY_COLUMNS = [
    "recorded_at", "total_value", "accounts_value",
    "investments_value", "crypto_value", "cash_value",
]


def record_snapshot(totals: PortfolioTotals, recorded_at: datetime | None = None) -> int:
    """
    Append one snapshot of the given totals.

    Returns:
        ID of the new snapshot.
    """
    db = get_db()
    with db.session() as session:
        snapshot = SnapshotRepository(session).create(
            total_value=totals.total,
            accounts_value=totals.accounts,
            investments_value=totals.investments,
            crypto_value=totals.crypto,
            cash_value=totals.cash,
            recorded_at=recorded_at,
        )
    logger.info(f"📸 Snapshot #{snapshot.id}: total={totals.total:,.2f}")
    return snapshot.id


def get_history(limit: int | None = None) -> list[PortfolioSnapshot]:
    """
    Most recent snapshots, oldest first.

    Args:
        limit: Window size (defaults to config.history.read_window).
    """
    db = get_db()
    with db.session() as session:
        return SnapshotRepository(session).get_recent(limit or config.history.read_window)


def history_frame(limit: int | None = None) -> pd.DataFrame:
    """History window as a DataFrame for charts."""
    snapshots = get_history(limit)
    return pd.DataFrame(
        [{column: getattr(s, column) for column in HISTORY_COLUMNS} for s in snapshots],
        columns=HISTORY_COLUMNS,
    )


def prune_history(keep_days: int | None = None, now: datetime | None = None) -> int:
    """
    Roll up snapshots older than the retention window.

    Every snapshot within keep_days is kept. Older snapshots are reduced
    to the last one of each calendar day.

    Args:
        keep_days: Retention window (defaults to config.history.retention_days).
        now: Reference time (defaults to current UTC time).

    Returns:
        Number of snapshots deleted.
    """
    keep_days = config.history.retention_days if keep_days is None else keep_days
    cutoff = (now or utcnow()) - timedelta(days=keep_days)

    db = get_db()
    with db.session() as session:
        repo = SnapshotRepository(session)
        old = repo.get_before(cutoff)

        # old is chronological, so the last snapshot seen per day wins
        last_per_day: dict = {}
        for snapshot in old:
            last_per_day[snapshot.recorded_at.date()] = snapshot.id

        keep = set(last_per_day.values())
        deleted = repo.delete_ids([s.id for s in old if s.id not in keep])

    if deleted:
        logger.info(f"🧹 Pruned {deleted} snapshots older than {keep_days} days")
    return deleted
