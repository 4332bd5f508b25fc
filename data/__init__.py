"""
Data package initialization.

Exports quote providers.
"""

from data.quotes import (
    AssetSearchResult,
    CoinGeckoQuoteProvider,
    PriceOracle,
    YahooQuoteProvider,
    quotes_frame,
)

__all__ = [
    "AssetSearchResult",
    "CoinGeckoQuoteProvider",
    "PriceOracle",
    "YahooQuoteProvider",
    "quotes_frame",
]
