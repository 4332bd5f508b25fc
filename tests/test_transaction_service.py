"""Tests for recording transactions against stored positions."""

from datetime import datetime

import pytest

from db import AssetCategory, TransactionType
from db.repositories import InvestmentRepository, TransactionRepository
from services.asset_service import (
    create_account,
    create_cash,
    create_crypto,
    create_investment,
    delete_position,
    get_position,
)
from services.transaction_service import (
    UNKNOWN_ASSET,
    buy,
    deposit,
    list_transactions,
    record_dividend,
    record_transaction,
    replay_position,
    sell,
    withdraw,
)


def _count_transactions(db):
    with db.session() as session:
        return len(TransactionRepository(session).get_transactions())


class TestDepositWithdraw:
    def test_account_balance(self, db):
        account = create_account("Checking", "Deutsche Bank", 1000.0).position

        assert withdraw("account", account.id, 300.0).success
        assert get_position(AssetCategory.ACCOUNT, account.id).balance == 700.0

        assert deposit("ACCOUNT", account.id, 50.0).success
        assert get_position(AssetCategory.ACCOUNT, account.id).balance == 750.0

    def test_cash_amount(self, db):
        cash = create_cash("Wallet", 200.0).position
        result = deposit(AssetCategory.CASH, cash.id, 20.0, description="ATM")
        assert result.success and result.applied
        assert get_position(AssetCategory.CASH, cash.id).amount == 220.0


class TestBuySell:
    def test_buy_sequence_average(self, db):
        inv = create_investment("AAPL", shares=0.0, purchase_price=0.0).position

        assert buy("investment", inv.id, quantity=5, price=100.0).success
        assert buy("investment", inv.id, quantity=5, price=200.0).success

        stored = get_position(AssetCategory.INVESTMENT, inv.id)
        assert stored.shares == 10.0
        assert stored.purchase_price == pytest.approx(150.0)

    def test_buy_amount_defaults_to_quantity_times_price(self, db):
        inv = create_investment("MSFT", shares=0.0, purchase_price=0.0).position
        result = buy("investment", inv.id, quantity=2, price=150.0)
        assert result.transaction.amount == 300.0

    def test_sell_keeps_average(self, db):
        coin = create_crypto("bitcoin", amount=2.0, purchase_price=30000.0).position
        result = sell("crypto", coin.id, quantity=0.5, price=40000.0)
        assert result.success
        stored = get_position(AssetCategory.CRYPTO, coin.id)
        assert stored.amount == 1.5
        assert stored.purchase_price == 30000.0

    def test_oversell_rejected_writes_nothing(self, db):
        inv = create_investment("AAPL", shares=2.0, purchase_price=100.0).position
        result = sell("investment", inv.id, quantity=3, price=100.0)

        assert not result.success
        assert result.transaction is None
        assert _count_transactions(db) == 0
        assert get_position(AssetCategory.INVESTMENT, inv.id).shares == 2.0

    def test_sell_whole_fractional_holding(self, db):
        coin = create_crypto("bitcoin", amount=0.0, purchase_price=0.0).position
        buy("crypto", coin.id, quantity=0.7, price=100.0)
        buy("crypto", coin.id, quantity=0.2, price=100.0)

        result = sell("crypto", coin.id, quantity=0.9, price=100.0)

        assert result.success, result.status_message
        assert get_position(AssetCategory.CRYPTO, coin.id).amount == 0.0

    def test_oversell_clamp_policy(self, db):
        inv = create_investment("AAPL", shares=2.0, purchase_price=100.0).position
        result = record_transaction(
            "SELL", "INVESTMENT", inv.id, 300.0, price=100.0, quantity=3.0,
            oversell_policy="clamp",
        )
        assert result.success
        assert get_position(AssetCategory.INVESTMENT, inv.id).shares == 0.0

    def test_mutation_keeps_value_consistent_with_quote(self, db):
        inv = create_investment("AAPL", shares=10.0, purchase_price=100.0).position
        with db.session() as session:
            row = InvestmentRepository(session).get_by_id(inv.id)
            row.current_price = 120.0
            row.total_value = 1200.0

        buy("investment", inv.id, quantity=5, price=110.0)

        stored = get_position(AssetCategory.INVESTMENT, inv.id)
        assert stored.shares == 15.0
        assert stored.current_price == 120.0
        assert stored.total_value == pytest.approx(1800.0)

    def test_missing_price_records_without_change(self, db):
        inv = create_investment("AAPL", shares=1.0, purchase_price=100.0).position
        result = record_transaction("BUY", "INVESTMENT", inv.id, 100.0, quantity=1.0)
        assert result.success
        assert not result.applied
        assert result.transaction is not None
        assert get_position(AssetCategory.INVESTMENT, inv.id).shares == 1.0


class TestDividend:
    def test_dividend_accumulates(self, db):
        inv = create_investment("SPY", shares=20.0, purchase_price=360.0, dividends=90.0).position
        assert record_dividend(inv.id, 10.0).success
        stored = get_position(AssetCategory.INVESTMENT, inv.id)
        assert stored.dividends == 100.0
        assert stored.shares == 20.0


class TestEdgeCases:
    def test_illegal_pair_recorded_as_noop(self, db):
        account = create_account("Checking", "Bank", 1000.0).position
        result = record_transaction("DIVIDEND", "ACCOUNT", account.id, 50.0)
        assert result.success
        assert not result.applied
        assert result.transaction.transaction_type == TransactionType.DIVIDEND
        assert get_position(AssetCategory.ACCOUNT, account.id).balance == 1000.0

    def test_missing_asset_keeps_transaction(self, db):
        result = deposit("account", 999, 10.0)
        assert result.success
        assert not result.position_found
        assert result.transaction.id is not None
        assert _count_transactions(db) == 1

    @pytest.mark.parametrize("kwargs,message", [
        (dict(amount=-1.0), "amount must not be negative"),
        (dict(amount=None), "amount is required"),
        (dict(amount=1.0, price=-2.0), "price must not be negative"),
        (dict(amount=1.0, quantity=-2.0), "quantity must not be negative"),
    ])
    def test_validation_errors_write_nothing(self, db, kwargs, message):
        inv = create_investment("AAPL", shares=1.0, purchase_price=1.0).position
        result = record_transaction("BUY", "INVESTMENT", inv.id, **kwargs)
        assert not result.success
        assert message in result.errors
        assert _count_transactions(db) == 0

    def test_unknown_type_is_validation_error(self, db):
        result = record_transaction("TRANSFER", "ACCOUNT", 1, 10.0)
        assert not result.success
        assert _count_transactions(db) == 0

    def test_explicit_transaction_date(self, db):
        account = create_account("Checking", "Bank", 0.0).position
        result = deposit("account", account.id, 10.0, transaction_at="2024-03-01")
        assert result.transaction.transaction_at.year == 2024
        assert result.transaction.transaction_at.month == 3

    def test_offset_timestamp_stored_as_utc(self, db):
        account = create_account("Checking", "Bank", 0.0).position
        result = deposit("account", account.id, 10.0, transaction_at="2024-03-01T10:30:00+02:00")
        assert result.transaction.transaction_at == datetime(2024, 3, 1, 8, 30)
        assert result.transaction.transaction_at.tzinfo is None


class TestListing:
    def test_newest_first_with_asset_info(self, db):
        account = create_account("Checking", "Bank", 0.0).position
        deposit("account", account.id, 10.0, transaction_at="2024-01-01")
        deposit("account", account.id, 20.0, transaction_at="2024-02-01")

        records = list_transactions()
        assert [r["amount"] for r in records] == [20.0, 10.0]
        assert records[0]["asset_info"] == {"name": "Checking", "bank": "Bank"}
        assert records[0]["type"] == "DEPOSIT"

    def test_deleted_asset_reported_unknown(self, db):
        cash = create_cash("Wallet", 0.0).position
        deposit("cash", cash.id, 5.0)
        assert delete_position(AssetCategory.CASH, cash.id).success

        records = list_transactions()
        assert len(records) == 1
        assert records[0]["asset_info"] is None
        assert records[0]["asset_label"] == UNKNOWN_ASSET

    def test_filters_and_limit(self, db):
        account = create_account("Checking", "Bank", 0.0).position
        cash = create_cash("Wallet", 0.0).position
        for _ in range(3):
            deposit("account", account.id, 1.0)
        deposit("cash", cash.id, 1.0)

        assert len(list_transactions(asset_category="cash")) == 1
        assert len(list_transactions(asset_category="account", asset_id=account.id)) == 3
        assert len(list_transactions(limit=2)) == 2


class TestReplay:
    def test_replay_matches_stored_position(self, db):
        inv = create_investment("AAPL", shares=0.0, purchase_price=0.0).position
        buy("investment", inv.id, quantity=4, price=100.0, transaction_at="2024-01-01")
        buy("investment", inv.id, quantity=6, price=150.0, transaction_at="2024-02-01")
        sell("investment", inv.id, quantity=5, price=170.0, transaction_at="2024-03-01")
        record_dividend(inv.id, 3.0, transaction_at="2024-04-01")

        state = replay_position("investment", inv.id)
        stored = get_position(AssetCategory.INVESTMENT, inv.id)

        assert state.quantity == stored.shares
        assert state.average_price == pytest.approx(stored.purchase_price)
        assert state.dividends == stored.dividends == 3.0
        assert state.quantity == 5.0
        assert state.average_price == pytest.approx(130.0)

    def test_replay_after_clamped_sell(self, db):
        coin = create_crypto("bitcoin", amount=0.0, purchase_price=0.0).position
        buy("crypto", coin.id, quantity=1.0, price=100.0, transaction_at="2024-01-01")
        result = record_transaction(
            "SELL", "CRYPTO", coin.id, 200.0, price=100.0, quantity=2.0,
            oversell_policy="clamp", transaction_at="2024-02-01",
        )
        assert result.success

        state = replay_position("crypto", coin.id)
        assert state.quantity == 0.0
        assert state.quantity == get_position(AssetCategory.CRYPTO, coin.id).amount
