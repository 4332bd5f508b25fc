"""
Valuation Service - Mark-to-market refresh of investment and crypto positions.

Quotes are fetched concurrently, one task per position, each failing
independently. Database writes happen on the calling thread once all
quotes are in. An unavailable quote leaves the stored
current_price/total_value pair untouched.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from config import config
from data.quotes import PriceOracle
from db import AssetCategory, get_db
from db.repositories import repository_for


logger = logging.getLogger(__name__)

PRICED_CATEGORIES = (AssetCategory.INVESTMENT, AssetCategory.CRYPTO)


@dataclass
class RefreshSummary:
    """Number of positions repriced per category."""
    investments: int = 0
    crypto: int = 0

    @property
    def total(self) -> int:
        return self.investments + self.crypto


def fetch_quotes(
    symbols: list[str],
    category: AssetCategory,
    oracle: PriceOracle,
    max_workers: int | None = None,
) -> dict[str, float]:
    """
    Fetch quotes for distinct symbols concurrently.

    Returns:
        Dict mapping symbol to price, only for symbols with a quote.
    """
    unique = sorted(set(symbols))
    if not unique:
        return {}

    workers = max(1, min(max_workers or config.quotes.max_workers, len(unique)))

    def _quote(symbol: str) -> float | None:
        try:
            return oracle.get_quote(symbol, category)
        except Exception as e:
            # A raising provider counts as unavailable
            logger.error(f"❌ Quote lookup crashed for {symbol}: {e}")
            return None

    with ThreadPoolExecutor(max_workers=workers) as executor:
        prices = dict(zip(unique, executor.map(_quote, unique)))

    return {symbol: price for symbol, price in prices.items() if price is not None}


def refresh_prices(category: AssetCategory, oracle: PriceOracle | None = None) -> int:
    """
    Refresh current price and total value for every position in a category.

    Args:
        category: INVESTMENT or CRYPTO.
        oracle: Price oracle (defaults to live providers).

    Returns:
        Number of positions updated.
    """
    if category not in PRICED_CATEGORIES:
        raise ValueError(f"{category.value} positions have no market price")

    oracle = oracle or PriceOracle()
    db = get_db()

    with db.session() as session:
        symbols = [p.symbol for p in repository_for(session, category).get_all()]

    logger.info(f"📈 Refreshing {len(symbols)} {category.value.lower()} prices")
    prices = fetch_quotes(symbols, category, oracle)

    updated = 0
    with db.session() as session:
        for position in repository_for(session, category).get_all():
            price = prices.get(position.symbol)
            if price is None:
                logger.warning(f"⚠️ Could not get price for {position.symbol}; keeping last known")
                continue
            position.current_price = price
            position.total_value = price * position.quantity
            updated += 1
            logger.info(f"Updated {position.symbol}: {price:,.2f} (Total: {position.total_value:,.2f})")

    logger.info(f"✅ {updated}/{len(symbols)} {category.value.lower()} prices updated")
    return updated


def refresh_all_prices(oracle: PriceOracle | None = None) -> RefreshSummary:
    """Refresh investments and crypto with one shared oracle."""
    oracle = oracle or PriceOracle()
    return RefreshSummary(
        investments=refresh_prices(AssetCategory.INVESTMENT, oracle),
        crypto=refresh_prices(AssetCategory.CRYPTO, oracle),
    )
