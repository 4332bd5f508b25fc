"""Tests for portfolio reads and the update-all-prices workflow."""

import pytest

from db import AssetCategory
from services.asset_service import create_account, create_cash, create_crypto, create_investment
from services.history_service import get_history
from services.portfolio_service import get_portfolio, update_all_prices


class TestGetPortfolio:
    def test_plain_read_uses_cost_and_writes_nothing(self, db, priced_oracle):
        create_account("Checking", "Bank", 1000.0)
        create_investment("AAPL", shares=10.0, purchase_price=100.0)

        view = get_portfolio(oracle=priced_oracle)

        assert view.total == 2000.0
        assert view.breakdown["investments"] == 1000.0
        assert view.refreshed is None
        assert view.snapshot_id is None
        assert priced_oracle.calls == []
        assert get_history() == []

    def test_refresh_reprices_and_snapshots(self, db, priced_oracle):
        create_account("Checking", "Bank", 1000.0)
        create_cash("Wallet", 200.0)
        create_investment("AAPL", shares=10.0, purchase_price=100.0)
        create_crypto("bitcoin", amount=0.1, purchase_price=20000.0)

        view = get_portfolio(update_prices=True, oracle=priced_oracle)

        assert view.refreshed.total == 2
        assert view.breakdown == {
            "accounts": 1000.0,
            "investments": pytest.approx(2000.0),
            "crypto": pytest.approx(5000.0),
            "cash": 200.0,
        }
        history = get_history()
        assert len(history) == 1
        assert history[0].id == view.snapshot_id
        assert history[0].total_value == pytest.approx(view.total)

    def test_positions_keyed_by_category(self, db, oracle):
        create_cash("Wallet", 5.0)
        view = get_portfolio(oracle=oracle)
        assert len(view.positions[AssetCategory.CASH]) == 1
        assert view.positions[AssetCategory.ACCOUNT] == []


class TestUpdateAllPrices:
    def test_snapshot_written_even_when_quotes_unavailable(self, db, oracle):
        create_investment("AAPL", shares=10.0, purchase_price=100.0)

        result = update_all_prices(oracle)

        assert result.success
        assert result.updated.total == 0
        assert result.priced_positions == 1
        assert result.totals.investments == 1000.0
        assert [s.id for s in get_history()] == [result.snapshot_id]

    def test_each_run_appends_one_snapshot(self, db, priced_oracle):
        create_investment("MSFT", shares=1.0, purchase_price=300.0)
        update_all_prices(priced_oracle)
        update_all_prices(priced_oracle)
        assert len(get_history()) == 2
