"""Tests for the mark-to-market price refresh."""

import pytest

from db import AssetCategory
from services.asset_service import create_account, create_crypto, create_investment, get_position
from services.valuation_service import fetch_quotes, refresh_all_prices, refresh_prices


class ExplodingOracle:
    def get_quote(self, identifier, category, search_fallback=False):
        raise RuntimeError("provider bug")


class TestRefreshPrices:
    def test_updates_price_and_value(self, db, priced_oracle):
        inv = create_investment("AAPL", shares=10.0, purchase_price=150.0).position

        updated = refresh_prices(AssetCategory.INVESTMENT, priced_oracle)

        assert updated == 1
        stored = get_position(AssetCategory.INVESTMENT, inv.id)
        assert stored.current_price == 200.0
        assert stored.total_value == pytest.approx(2000.0)
        assert stored.purchase_price == 150.0

    def test_all_unavailable_changes_nothing(self, db, oracle):
        inv = create_investment("AAPL", shares=10.0, purchase_price=150.0).position
        coin = create_crypto("bitcoin", amount=1.0, purchase_price=20000.0).position

        summary = refresh_all_prices(oracle)

        assert summary.total == 0
        assert get_position(AssetCategory.INVESTMENT, inv.id).current_price is None
        assert get_position(AssetCategory.CRYPTO, coin.id).total_value is None

    def test_failed_refresh_keeps_last_known_pair(self, db, priced_oracle, oracle):
        inv = create_investment("AAPL", shares=10.0, purchase_price=150.0).position
        refresh_prices(AssetCategory.INVESTMENT, priced_oracle)

        assert refresh_prices(AssetCategory.INVESTMENT, oracle) == 0

        stored = get_position(AssetCategory.INVESTMENT, inv.id)
        assert stored.current_price == 200.0
        assert stored.total_value == pytest.approx(2000.0)

    def test_partial_availability(self, db, priced_oracle):
        create_investment("AAPL", shares=1.0, purchase_price=1.0)
        unknown = create_investment("ZZZZ", shares=1.0, purchase_price=1.0).position

        assert refresh_prices(AssetCategory.INVESTMENT, priced_oracle) == 1
        assert get_position(AssetCategory.INVESTMENT, unknown.id).current_price is None

    def test_duplicate_symbols_quoted_once(self, db, priced_oracle):
        create_investment("AAPL", shares=1.0, purchase_price=1.0)
        create_investment("AAPL", shares=2.0, purchase_price=1.0)

        assert refresh_prices(AssetCategory.INVESTMENT, priced_oracle) == 2
        assert priced_oracle.calls == [("AAPL", AssetCategory.INVESTMENT)]

    def test_crypto_refresh(self, db, priced_oracle):
        coin = create_crypto("bitcoin", amount=0.5, purchase_price=27000.0).position
        summary = refresh_all_prices(priced_oracle)
        assert summary.crypto == 1
        assert get_position(AssetCategory.CRYPTO, coin.id).total_value == pytest.approx(25000.0)

    def test_non_priced_category_rejected(self, db, oracle):
        create_account("Checking", "Bank", 10.0)
        with pytest.raises(ValueError):
            refresh_prices(AssetCategory.ACCOUNT, oracle)


class TestFetchQuotes:
    def test_provider_exception_is_unavailable(self):
        assert fetch_quotes(["AAPL", "MSFT"], AssetCategory.INVESTMENT, ExplodingOracle()) == {}

    def test_empty_symbols(self, oracle):
        assert fetch_quotes([], AssetCategory.INVESTMENT, oracle) == {}
        assert oracle.calls == []
