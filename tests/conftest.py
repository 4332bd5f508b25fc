"""Shared test fixtures for the net worth dashboard."""

import pytest

from db import AssetCategory, DatabaseManager, set_db


class FakeOracle:
    """Price oracle stand-in backed by a dict of (category, symbol) -> price."""

    def __init__(self, prices=None):
        self.prices = dict(prices or {})
        self.calls = []

    def get_quote(self, identifier, category, search_fallback=False):
        self.calls.append((identifier, category))
        return self.prices.get((category, identifier))

    def set(self, category, symbol, price):
        self.prices[(category, symbol)] = price


@pytest.fixture
def db(tmp_path):
    """Bind the global database manager to a fresh SQLite file."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'test.db'}")
    manager.create_tables()
    set_db(manager)
    yield manager
    set_db(None)
    manager.dispose()


@pytest.fixture
def oracle():
    """Empty fake oracle; every quote is unavailable until set."""
    return FakeOracle()


@pytest.fixture
def priced_oracle():
    """Fake oracle with quotes for a few common symbols."""
    return FakeOracle({
        (AssetCategory.INVESTMENT, "AAPL"): 200.0,
        (AssetCategory.INVESTMENT, "MSFT"): 400.0,
        (AssetCategory.CRYPTO, "bitcoin"): 50000.0,
    })
