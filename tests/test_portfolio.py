"""Tests for net worth aggregation."""

import random
from types import SimpleNamespace

import pytest

from analytics.portfolio import (
    PortfolioTotals,
    allocation_frame,
    compute_current_totals,
    compute_totals,
    holdings_frame,
    load_positions,
    position_value,
)
from db import AssetCategory
from services.asset_service import create_account, create_cash, create_investment


def _account(balance):
    return SimpleNamespace(balance=balance)


def _cash(amount):
    return SimpleNamespace(amount=amount)


def _priced(quantity, purchase_price, total_value=None):
    return SimpleNamespace(quantity=quantity, purchase_price=purchase_price, total_value=total_value)


class TestPositionValue:
    def test_uses_total_value_when_quoted(self):
        assert position_value(_priced(10, 100.0, total_value=1500.0)) == 1500.0

    def test_falls_back_to_cost(self):
        assert position_value(_priced(10, 100.0)) == 1000.0


class TestComputeTotals:
    def test_account_and_cash(self):
        totals = compute_totals([_account(1000.0)], [], [], [_cash(200.0)])
        assert totals.total == 1200.0
        assert totals.breakdown == {
            "accounts": 1000.0, "investments": 0.0, "crypto": 0.0, "cash": 200.0,
        }

    def test_investment_without_quote_valued_at_cost(self):
        totals = compute_totals([], [_priced(10, 100.0)], [], [])
        assert totals.investments == 1000.0

    def test_empty_portfolio(self):
        totals = compute_totals([], [], [], [])
        assert totals.total == 0.0
        assert totals.to_dict() == {
            "total": 0.0,
            "breakdown": {"accounts": 0.0, "investments": 0.0, "crypto": 0.0, "cash": 0.0},
        }

    def test_invariant_under_reordering(self):
        accounts = [_account(b) for b in (1.5, 1000.0, -20.0, 333.25)]
        investments = [_priced(q, p, tv) for q, p, tv in [(10, 100.0, None), (2, 50.0, 130.0), (0.5, 8.0, None)]]
        crypto = [_priced(0.1, 20000.0, 2500.0), _priced(3, 1.0, None)]
        cash = [_cash(a) for a in (5.0, 7.5)]
        expected = compute_totals(accounts, investments, crypto, cash)

        rng = random.Random(7)
        for _ in range(10):
            for rows in (accounts, investments, crypto, cash):
                rng.shuffle(rows)
            shuffled = compute_totals(accounts, investments, crypto, cash)
            assert shuffled.total == pytest.approx(expected.total)
            for key, value in expected.breakdown.items():
                assert shuffled.breakdown[key] == pytest.approx(value)

    def test_total_is_sum_of_breakdown(self):
        totals = PortfolioTotals(accounts=1.0, investments=2.0, crypto=3.0, cash=4.0)
        assert totals.total == sum(totals.breakdown.values()) == 10.0


class TestFrames:
    def test_allocation_weights(self):
        df = allocation_frame(PortfolioTotals(accounts=750.0, investments=250.0, crypto=0.0, cash=0.0))
        assert list(df["category"]) == ["accounts", "investments", "crypto", "cash"]
        assert df["weight"].sum() == pytest.approx(1.0)

    def test_allocation_empty_portfolio(self):
        df = allocation_frame(PortfolioTotals(0.0, 0.0, 0.0, 0.0))
        assert (df["weight"] == 0.0).all()

    def test_holdings_frame_from_store(self, db):
        create_account("Checking", "Bank", 1000.0)
        create_cash("Wallet", 200.0)
        create_investment("AAPL", shares=10.0, purchase_price=100.0)

        df = holdings_frame(load_positions())

        assert len(df) == 3
        assert set(df["category"]) == {"ACCOUNT", "CASH", "INVESTMENT"}
        assert df["value"].sum() == pytest.approx(2200.0)
        assert df["weight"].sum() == pytest.approx(1.0)
        aapl = df[df["symbol"] == "AAPL"].iloc[0]
        assert aapl["unrealized_pnl"] == 0.0

    def test_holdings_frame_empty(self):
        df = holdings_frame({})
        assert df.empty
        assert "weight" in df.columns


class TestCurrentTotals:
    def test_reads_store(self, db):
        create_account("Checking", "Bank", 1000.0)
        create_cash("Wallet", 200.0)

        totals = compute_current_totals()

        assert totals.total == 1200.0
        assert totals.breakdown[AssetCategory.CASH.value.lower()] == 200.0
