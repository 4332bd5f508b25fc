"""
Portfolio Service - Net worth reads and the update-all-prices workflow.

get_portfolio(update_prices=True) and update_all_prices() both:
1. Refresh investment and crypto quotes
2. Aggregate the four categories
3. Append one history snapshot

A plain get_portfolio() reads last known values and writes nothing.
There is no rollback across these steps: a snapshot may mix fresh and
stale prices when some quotes were unavailable.
"""

import logging
from dataclasses import dataclass, field

from analytics.portfolio import PortfolioTotals, compute_totals, load_positions
from data.quotes import PriceOracle
from db import AssetCategory
from services.history_service import record_snapshot
from services.valuation_service import RefreshSummary, refresh_all_prices


logger = logging.getLogger(__name__)


@dataclass
class PortfolioView:
    """Totals, breakdown and raw rows of every category."""
    totals: PortfolioTotals
    accounts: list = field(default_factory=list)
    investments: list = field(default_factory=list)
    crypto: list = field(default_factory=list)
    cash: list = field(default_factory=list)
    refreshed: RefreshSummary | None = None
    snapshot_id: int | None = None

    @property
    def total(self) -> float:
        return self.totals.total

    @property
    def breakdown(self) -> dict[str, float]:
        return self.totals.breakdown

    @property
    def positions(self) -> dict[AssetCategory, list]:
        return {
            AssetCategory.ACCOUNT: self.accounts,
            AssetCategory.INVESTMENT: self.investments,
            AssetCategory.CRYPTO: self.crypto,
            AssetCategory.CASH: self.cash,
        }


@dataclass
class PriceUpdateResult:
    """Result of an explicit update-all-prices run."""
    success: bool
    updated: RefreshSummary
    totals: PortfolioTotals
    snapshot_id: int
    priced_positions: int = 0
    message: str = ""


def _read_view() -> PortfolioView:
    positions = load_positions()
    totals = compute_totals(
        positions[AssetCategory.ACCOUNT],
        positions[AssetCategory.INVESTMENT],
        positions[AssetCategory.CRYPTO],
        positions[AssetCategory.CASH],
    )
    return PortfolioView(
        totals=totals,
        accounts=positions[AssetCategory.ACCOUNT],
        investments=positions[AssetCategory.INVESTMENT],
        crypto=positions[AssetCategory.CRYPTO],
        cash=positions[AssetCategory.CASH],
    )


def get_portfolio(update_prices: bool = False, oracle: PriceOracle | None = None) -> PortfolioView:
    """
    Get net worth with breakdown and raw rows.

    Args:
        update_prices: Refresh quotes first and record a history snapshot.
        oracle: Price oracle (defaults to live providers).

    Returns:
        PortfolioView
    """
    refreshed = None
    if update_prices:
        logger.info("Updating prices before fetching portfolio data...")
        refreshed = refresh_all_prices(oracle)

    view = _read_view()
    view.refreshed = refreshed

    if update_prices:
        view.snapshot_id = record_snapshot(view.totals)

    return view


def update_all_prices(oracle: PriceOracle | None = None) -> PriceUpdateResult:
    """
    Refresh every investment and crypto price and write one snapshot.

    Returns:
        PriceUpdateResult with updated counts and new totals.
    """
    logger.info("Starting price update process...")
    refreshed = refresh_all_prices(oracle)

    view = _read_view()
    snapshot_id = record_snapshot(view.totals)

    message = (
        f"✅ Prices updated: {refreshed.investments}/{len(view.investments)} investments, "
        f"{refreshed.crypto}/{len(view.crypto)} crypto"
    )
    logger.info(message)

    return PriceUpdateResult(
        success=True,
        updated=refreshed,
        totals=view.totals,
        snapshot_id=snapshot_id,
        priced_positions=len(view.investments) + len(view.crypto),
        message=message,
    )
