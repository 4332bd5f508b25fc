"""
Portfolio analytics module.

- Net worth per category (accounts, investments, crypto, cash)
- Total net worth
- Per-position holdings table with cost basis and unrealized P&L
- Category allocation weights

compute_totals is a pure function of the rows it is given; it never asks
the quote providers for prices.
"""

from dataclasses import asdict, dataclass
from typing import Iterable

import pandas as pd

from db import AssetCategory, get_db
from db.repositories import (
    AccountRepository,
    CashRepository,
    CryptoRepository,
    InvestmentRepository,
)


def position_value(position) -> float:
    """
    Display value of a priced position.

    Falls back to quantity * average purchase price when no quote has
    ever been recorded.
    """
    if position.total_value is not None:
        return position.total_value
    return position.quantity * position.purchase_price


@dataclass(frozen=True)
class PortfolioTotals:
    """Aggregated net worth with per-category subtotals."""
    accounts: float
    investments: float
    crypto: float
    cash: float

    @property
    def total(self) -> float:
        return self.accounts + self.investments + self.crypto + self.cash

    @property
    def breakdown(self) -> dict[str, float]:
        """Category subtotals keyed accounts/investments/crypto/cash."""
        return asdict(self)

    def to_dict(self) -> dict:
        return {"total": self.total, "breakdown": self.breakdown}


def compute_totals(
    accounts: Iterable,
    investments: Iterable,
    crypto: Iterable,
    cash: Iterable,
) -> PortfolioTotals:
    """
    Sum the four category ledgers.

    Investments and crypto contribute total_value when a quote has been
    recorded, else quantity * average purchase price.

    Args:
        accounts: Rows with balance.
        investments: Rows with shares, purchase_price, total_value.
        crypto: Rows with amount, purchase_price, total_value.
        cash: Rows with amount.

    Returns:
        PortfolioTotals (order of rows does not matter).
    """
    return PortfolioTotals(
        accounts=sum((a.balance for a in accounts), 0.0),
        investments=sum((position_value(i) for i in investments), 0.0),
        crypto=sum((position_value(c) for c in crypto), 0.0),
        cash=sum((c.amount for c in cash), 0.0),
    )


def load_positions() -> dict[AssetCategory, list]:
    """Load every position row, keyed by category."""
    db = get_db()
    with db.session() as session:
        return {
            AssetCategory.ACCOUNT: list(AccountRepository(session).get_all()),
            AssetCategory.INVESTMENT: list(InvestmentRepository(session).get_all()),
            AssetCategory.CRYPTO: list(CryptoRepository(session).get_all()),
            AssetCategory.CASH: list(CashRepository(session).get_all()),
        }


def compute_current_totals() -> PortfolioTotals:
    """Totals from the current store state (last known prices)."""
    positions = load_positions()
    return compute_totals(
        positions[AssetCategory.ACCOUNT],
        positions[AssetCategory.INVESTMENT],
        positions[AssetCategory.CRYPTO],
        positions[AssetCategory.CASH],
    )


def holdings_frame(positions: dict[AssetCategory, list]) -> pd.DataFrame:
    """
    Flatten positions into one table for display.

    Columns: category, id, name, symbol, quantity, avg_price, current_price,
    value, cost, unrealized_pnl, weight.
    """
    rows = []
    for account in positions.get(AssetCategory.ACCOUNT, []):
        rows.append({
            "category": AssetCategory.ACCOUNT.value,
            "id": account.id,
            "name": f"{account.name} ({account.bank})",
            "symbol": account.currency,
            "quantity": account.balance,
            "avg_price": None,
            "current_price": None,
            "value": account.balance,
            "cost": account.balance,
        })
    for category in (AssetCategory.INVESTMENT, AssetCategory.CRYPTO):
        for position in positions.get(category, []):
            rows.append({
                "category": category.value,
                "id": position.id,
                "name": position.name,
                "symbol": position.symbol,
                "quantity": position.quantity,
                "avg_price": position.purchase_price,
                "current_price": position.current_price,
                "value": position_value(position),
                "cost": position.cost_basis,
            })
    for holding in positions.get(AssetCategory.CASH, []):
        rows.append({
            "category": AssetCategory.CASH.value,
            "id": holding.id,
            "name": holding.name,
            "symbol": holding.currency,
            "quantity": holding.amount,
            "avg_price": None,
            "current_price": None,
            "value": holding.amount,
            "cost": holding.amount,
        })

    columns = [
        "category", "id", "name", "symbol", "quantity", "avg_price",
        "current_price", "value", "cost", "unrealized_pnl", "weight",
    ]
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows)
    df["unrealized_pnl"] = df["value"] - df["cost"]
    total = df["value"].sum()
    df["weight"] = df["value"] / total if total else 0.0
    return df[columns]


def allocation_frame(totals: PortfolioTotals) -> pd.DataFrame:
    """Category allocation with weights summing to 1 (empty weights when total is 0)."""
    df = pd.DataFrame(
        {"category": list(totals.breakdown), "value": list(totals.breakdown.values())}
    )
    df["weight"] = df["value"] / totals.total if totals.total else 0.0
    return df


if __name__ == "__main__":
    from db import init_db
    init_db()

    totals = compute_current_totals()
    print("\n📊 Net Worth")
    for name, value in totals.breakdown.items():
        print(f"  {name.capitalize():<12} {value:>14,.2f}")
    print(f"  {'Total':<12} {totals.total:>14,.2f}")
