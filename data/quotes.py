"""
Quote providers for current market prices.

- Investments: Yahoo Finance via yfinance (ticker quote, name search)
- Crypto: CoinGecko public API via requests (coin id quote, name search)

Every failure (network error, timeout, non-2xx, missing or malformed price)
is logged and normalized to None ("unavailable"). Nothing here raises to
the caller.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
import requests
import yfinance as yf

from config import config
from db import AssetCategory


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetSearchResult:
    """One match from a provider symbol search."""
    symbol: str
    name: str
    exchange: str
    category: AssetCategory


@dataclass(frozen=True)
class CoinGeckoSearchHit:
    """Required subset of a CoinGecko /search coin entry."""
    id: str
    name: str
    symbol: str


def valid_price(value: Any) -> float | None:
    """
    Validate a provider price.

    Returns:
        The price as float, or None for missing, non-numeric, non-finite
        or non-positive values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (ValueError, TypeError):
        return None
    if not np.isfinite(price) or price <= 0:
        return None
    return price


def parse_coingecko_price(payload: Any, coin_id: str, currency: str) -> float | None:
    """Extract payload[coin_id][currency] from a /simple/price response."""
    if not isinstance(payload, dict):
        return None
    entry = payload.get(coin_id)
    if not isinstance(entry, dict):
        return None
    return valid_price(entry.get(currency))


def parse_coingecko_search(payload: Any) -> list[CoinGeckoSearchHit]:
    """Parse the coins list of a /search response, skipping malformed entries."""
    if not isinstance(payload, dict):
        return []
    coins = payload.get("coins")
    if not isinstance(coins, list):
        return []

    hits = []
    for coin in coins:
        if not isinstance(coin, dict):
            continue
        coin_id = coin.get("id")
        if not isinstance(coin_id, str) or not coin_id:
            continue
        hits.append(CoinGeckoSearchHit(
            id=coin_id,
            name=str(coin.get("name") or coin_id),
            symbol=str(coin.get("symbol") or ""),
        ))
    return hits


def parse_yahoo_search(quotes: Any) -> list[AssetSearchResult]:
    """Parse yfinance Search.quotes, skipping entries without a symbol."""
    if not isinstance(quotes, list):
        return []

    results = []
    for quote in quotes:
        if not isinstance(quote, dict):
            continue
        symbol = quote.get("symbol")
        if not isinstance(symbol, str) or not symbol:
            continue
        results.append(AssetSearchResult(
            symbol=symbol,
            name=str(quote.get("longname") or quote.get("shortname") or symbol),
            exchange=str(quote.get("exchange") or ""),
            category=AssetCategory.INVESTMENT,
        ))
    return results


class YahooQuoteProvider:
    """Equity quotes and symbol search from Yahoo Finance."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout if timeout is not None else config.quotes.timeout_seconds

    def get_price(self, symbol: str) -> float | None:
        """Latest close for a ticker, or None."""
        try:
            df = yf.Ticker(symbol).history(period="5d", timeout=self.timeout)
        except Exception as e:
            logger.warning(f"⚠️ Yahoo quote failed for {symbol}: {e}")
            return None

        if df is None or df.empty or "Close" not in df.columns:
            logger.warning(f"⚠️ No Yahoo price data for {symbol}")
            return None

        closes = df["Close"].dropna()
        if closes.empty:
            return None
        return valid_price(closes.iloc[-1])

    def search(self, query: str, limit: int) -> list[AssetSearchResult]:
        """Search tickers by free text."""
        try:
            search = yf.Search(query, max_results=limit, news_count=0, timeout=self.timeout)
            return parse_yahoo_search(search.quotes)[:limit]
        except Exception as e:
            logger.warning(f"⚠️ Yahoo search failed for {query!r}: {e}")
            return []

    def resolve_symbol(self, name: str) -> str | None:
        """Best-matching ticker for a company name."""
        matches = self.search(name, limit=1)
        return matches[0].symbol if matches else None


class CoinGeckoQuoteProvider:
    """
    Crypto quotes and coin search from the CoinGecko public API.

    Without an explicit session each calling thread gets its own
    requests.Session.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float | None = None,
        currency: str | None = None,
    ):
        self.session = session
        if session is not None:
            session.headers.update({"User-Agent": config.quotes.user_agent})
        self._local = threading.local()
        self.timeout = timeout if timeout is not None else config.quotes.timeout_seconds
        self.currency = (currency or config.quotes.quote_currency).lower()
        self.base_url = config.quotes.coingecko_base_url

    def _session(self) -> requests.Session:
        if self.session is not None:
            return self.session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": config.quotes.user_agent})
            self._local.session = session
        return session

    def _get_json(self, path: str, params: dict) -> Any:
        """GET a CoinGecko endpoint; None on any transport or HTTP error."""
        try:
            response = self._session().get(
                f"{self.base_url}/{path}", params=params, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"⚠️ CoinGecko {path} failed ({params}): {e}")
            return None

    def get_price(self, coin_id: str) -> float | None:
        """Current price of a coin id in the configured currency, or None."""
        coin_id = coin_id.lower()
        payload = self._get_json(
            "simple/price", {"ids": coin_id, "vs_currencies": self.currency}
        )
        price = parse_coingecko_price(payload, coin_id, self.currency)
        if price is None and payload is not None:
            logger.warning(f"⚠️ No CoinGecko price for {coin_id}")
        return price

    def search(self, query: str, limit: int) -> list[AssetSearchResult]:
        """Search coins by free text."""
        hits = parse_coingecko_search(self._get_json("search", {"query": query}))
        return [
            AssetSearchResult(
                symbol=hit.id,
                name=hit.name,
                exchange="CoinGecko",
                category=AssetCategory.CRYPTO,
            )
            for hit in hits[:limit]
        ]

    def resolve_symbol(self, name: str) -> str | None:
        """Best-matching coin id for a coin name."""
        hits = parse_coingecko_search(self._get_json("search", {"query": name}))
        return hits[0].id if hits else None


class PriceOracle:
    """
    Category-aware facade over the quote providers.

    Accounts and cash have no market quote; asking for one returns None.

    Usage:
        oracle = PriceOracle()
        oracle.get_quote("AAPL", AssetCategory.INVESTMENT)
        oracle.get_quote_by_name("bitcoin", AssetCategory.CRYPTO)
    """

    def __init__(
        self,
        equities: YahooQuoteProvider | None = None,
        crypto: CoinGeckoQuoteProvider | None = None,
    ):
        self.providers = {
            AssetCategory.INVESTMENT: equities or YahooQuoteProvider(),
            AssetCategory.CRYPTO: crypto or CoinGeckoQuoteProvider(),
        }

    def get_quote(
        self,
        identifier: str,
        category: AssetCategory,
        search_fallback: bool = False,
    ) -> float | None:
        """
        Current unit price for a symbol (or provider id).

        Args:
            identifier: Ticker or coin id.
            category: INVESTMENT or CRYPTO.
            search_fallback: Treat the identifier as a name when the direct
                lookup is unavailable.

        Returns:
            Price, or None when unavailable.
        """
        provider = self.providers.get(category)
        if provider is None or not identifier:
            return None

        price = provider.get_price(identifier.strip())
        if price is None and search_fallback:
            return self.get_quote_by_name(identifier, category)
        return price

    def get_quote_by_name(self, name: str, category: AssetCategory) -> float | None:
        """Resolve a free-text name to the best symbol, then quote it."""
        provider = self.providers.get(category)
        if provider is None or not name:
            return None

        symbol = provider.resolve_symbol(name.strip())
        if symbol is None:
            logger.info(f"No {category.value} match for {name!r}")
            return None
        return provider.get_price(symbol)

    def search_assets(
        self,
        query: str,
        category: AssetCategory,
        limit: int | None = None,
    ) -> list[AssetSearchResult]:
        """Search provider symbols; queries under the minimum length return []."""
        provider = self.providers.get(category)
        query = (query or "").strip()
        if provider is None or len(query) < config.quotes.search_min_query_length:
            return []
        return provider.search(query, limit or config.quotes.search_max_results)


def quotes_frame(results: list[AssetSearchResult]) -> pd.DataFrame:
    """Search results as a DataFrame for display."""
    return pd.DataFrame(
        [
            {"symbol": r.symbol, "name": r.name, "exchange": r.exchange, "type": r.category.value}
            for r in results
        ],
        columns=["symbol", "name", "exchange", "type"],
    )
