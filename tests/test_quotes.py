"""Tests for quote providers (network mocked)."""

import threading
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from data.quotes import (
    AssetSearchResult,
    CoinGeckoQuoteProvider,
    PriceOracle,
    YahooQuoteProvider,
    parse_coingecko_price,
    parse_coingecko_search,
    parse_yahoo_search,
    quotes_frame,
    valid_price,
)
from db import AssetCategory


def _response(payload=None, status_error=None, json_error=None):
    response = MagicMock()
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


def _coingecko(response):
    session = MagicMock()
    session.headers = {}
    session.get.return_value = response
    return CoinGeckoQuoteProvider(session=session, timeout=1.0, currency="eur"), session


class TestParsing:
    @pytest.mark.parametrize("value,expected", [
        (1.5, 1.5),
        ("2.25", 2.25),
        (0, None),
        (-3.0, None),
        (None, None),
        ("abc", None),
        (float("nan"), None),
        (float("inf"), None),
        (True, None),
    ])
    def test_valid_price(self, value, expected):
        assert valid_price(value) == expected

    def test_coingecko_price(self):
        assert parse_coingecko_price({"bitcoin": {"eur": 50000}}, "bitcoin", "eur") == 50000.0

    @pytest.mark.parametrize("payload", [
        {},
        {"bitcoin": {}},
        {"bitcoin": {"usd": 1.0}},
        {"bitcoin": "50000"},
        {"bitcoin": {"eur": None}},
        ["bitcoin"],
        None,
    ])
    def test_coingecko_price_malformed(self, payload):
        assert parse_coingecko_price(payload, "bitcoin", "eur") is None

    def test_coingecko_search_skips_bad_entries(self):
        hits = parse_coingecko_search({"coins": [
            {"id": "bitcoin", "name": "Bitcoin", "symbol": "BTC"},
            {"name": "No id"},
            "junk",
            {"id": "ethereum"},
        ]})
        assert [h.id for h in hits] == ["bitcoin", "ethereum"]
        assert hits[1].name == "ethereum"

    def test_yahoo_search(self):
        results = parse_yahoo_search([
            {"symbol": "AAPL", "longname": "Apple Inc.", "exchange": "NMS"},
            {"shortname": "No symbol"},
            {"symbol": "APC.DE", "shortname": "APPLE INC"},
        ])
        assert results == [
            AssetSearchResult("AAPL", "Apple Inc.", "NMS", AssetCategory.INVESTMENT),
            AssetSearchResult("APC.DE", "APPLE INC", "", AssetCategory.INVESTMENT),
        ]


class TestCoinGecko:
    def test_get_price(self):
        provider, session = _coingecko(_response({"bitcoin": {"eur": 51234.5}}))
        assert provider.get_price("Bitcoin") == 51234.5
        _, kwargs = session.get.call_args
        assert kwargs["params"] == {"ids": "bitcoin", "vs_currencies": "eur"}
        assert kwargs["timeout"] == 1.0

    def test_http_error_is_unavailable(self):
        provider, _ = _coingecko(_response(status_error=requests.HTTPError("429")))
        assert provider.get_price("bitcoin") is None

    def test_timeout_is_unavailable(self):
        provider, session = _coingecko(_response())
        session.get.side_effect = requests.Timeout("slow")
        assert provider.get_price("bitcoin") is None

    def test_invalid_json_is_unavailable(self):
        provider, _ = _coingecko(_response(json_error=ValueError("not json")))
        assert provider.get_price("bitcoin") is None

    def test_search_and_resolve(self):
        payload = {"coins": [{"id": "cardano", "name": "Cardano", "symbol": "ADA"}]}
        provider, _ = _coingecko(_response(payload))
        assert provider.search("card", limit=5)[0].symbol == "cardano"
        assert provider.resolve_symbol("card") == "cardano"

    @patch("data.quotes.requests.Session")
    def test_session_per_thread(self, mock_session_cls):
        def new_session():
            session = MagicMock(headers={})
            session.get.return_value = _response({})
            return session

        mock_session_cls.side_effect = new_session
        provider = CoinGeckoQuoteProvider(timeout=1.0, currency="eur")

        provider.get_price("bitcoin")
        provider.get_price("ethereum")
        assert mock_session_cls.call_count == 1

        worker = threading.Thread(target=provider.get_price, args=("cardano",))
        worker.start()
        worker.join()
        assert mock_session_cls.call_count == 2


class TestYahoo:
    @patch("data.quotes.yf.Ticker")
    def test_get_price_last_close(self, mock_ticker):
        mock_ticker.return_value.history.return_value = pd.DataFrame({"Close": [100.0, 101.5, None]})
        assert YahooQuoteProvider(timeout=1.0).get_price("AAPL") == 101.5

    @patch("data.quotes.yf.Ticker")
    def test_empty_history_is_unavailable(self, mock_ticker):
        mock_ticker.return_value.history.return_value = pd.DataFrame()
        assert YahooQuoteProvider().get_price("ZZZZ") is None

    @patch("data.quotes.yf.Ticker")
    def test_exception_is_unavailable(self, mock_ticker):
        mock_ticker.return_value.history.side_effect = RuntimeError("network down")
        assert YahooQuoteProvider().get_price("AAPL") is None

    @patch("data.quotes.yf.Search")
    def test_search(self, mock_search):
        mock_search.return_value.quotes = [{"symbol": "MSFT", "longname": "Microsoft Corporation"}]
        results = YahooQuoteProvider().search("micro", limit=3)
        assert results[0].symbol == "MSFT"

    @patch("data.quotes.yf.Search")
    def test_search_failure_is_empty(self, mock_search):
        mock_search.side_effect = RuntimeError("boom")
        assert YahooQuoteProvider().search("micro", limit=3) == []


class TestPriceOracle:
    def _oracle(self):
        equities = MagicMock()
        crypto = MagicMock()
        return PriceOracle(equities=equities, crypto=crypto), equities, crypto

    def test_routes_by_category(self):
        oracle, equities, crypto = self._oracle()
        equities.get_price.return_value = 10.0
        crypto.get_price.return_value = 20.0
        assert oracle.get_quote("AAPL", AssetCategory.INVESTMENT) == 10.0
        assert oracle.get_quote("bitcoin", AssetCategory.CRYPTO) == 20.0

    def test_accounts_have_no_quote(self):
        oracle, equities, _ = self._oracle()
        assert oracle.get_quote("EUR", AssetCategory.ACCOUNT) is None
        equities.get_price.assert_not_called()

    def test_search_fallback(self):
        oracle, equities, _ = self._oracle()
        equities.get_price.side_effect = lambda s: 42.0 if s == "AAPL" else None
        equities.resolve_symbol.return_value = "AAPL"
        assert oracle.get_quote("apple", AssetCategory.INVESTMENT) is None
        assert oracle.get_quote("apple", AssetCategory.INVESTMENT, search_fallback=True) == 42.0

    def test_quote_by_name_no_match(self):
        oracle, _, crypto = self._oracle()
        crypto.resolve_symbol.return_value = None
        assert oracle.get_quote_by_name("nothing", AssetCategory.CRYPTO) is None

    def test_short_query_returns_empty(self):
        oracle, equities, _ = self._oracle()
        assert oracle.search_assets("a", AssetCategory.INVESTMENT) == []
        equities.search.assert_not_called()

    def test_search_assets(self):
        oracle, equities, _ = self._oracle()
        equities.search.return_value = [AssetSearchResult("AAPL", "Apple", "NMS", AssetCategory.INVESTMENT)]
        results = oracle.search_assets("apple", AssetCategory.INVESTMENT, limit=4)
        equities.search.assert_called_once_with("apple", 4)
        df = quotes_frame(results)
        assert list(df.columns) == ["symbol", "name", "exchange", "type"]
        assert df.iloc[0]["type"] == "INVESTMENT"
