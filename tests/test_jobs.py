"""Tests for the scheduled price update job."""

from datetime import timedelta

from db import utcnow
from jobs.price_update import PriceUpdateJob
from services.asset_service import create_investment
from services.history_service import get_history, record_snapshot
from analytics.portfolio import PortfolioTotals


class TestPriceUpdateJob:
    def test_run_refreshes_and_snapshots(self, db, priced_oracle):
        create_investment("AAPL", shares=10.0, purchase_price=100.0)
        create_investment("ZZZZ", shares=1.0, purchase_price=5.0)

        result = PriceUpdateJob(oracle=priced_oracle).run()

        assert result.success
        assert result.total_positions == 2
        assert result.updated_positions == 1
        assert result.errors == []
        assert [s.id for s in get_history()] == [result.snapshot_id]

    def test_run_prunes_old_history(self, db, oracle):
        old_day = (utcnow() - timedelta(days=400)).replace(hour=10)
        totals = PortfolioTotals(1.0, 0.0, 0.0, 0.0)
        record_snapshot(totals, recorded_at=old_day)
        record_snapshot(totals, recorded_at=old_day.replace(hour=11))

        result = PriceUpdateJob(oracle=oracle).run()

        assert result.pruned_snapshots == 1
        assert len(get_history()) == 2

    def test_prune_can_be_disabled(self, db, oracle):
        old_day = (utcnow() - timedelta(days=400)).replace(hour=10)
        totals = PortfolioTotals(1.0, 0.0, 0.0, 0.0)
        record_snapshot(totals, recorded_at=old_day)
        record_snapshot(totals, recorded_at=old_day.replace(hour=11))

        result = PriceUpdateJob(oracle=oracle, prune=False).run()

        assert result.pruned_snapshots == 0
        assert len(get_history()) == 3
