"""
Database initialization script.

Creates all tables and optionally seeds with sample data.
Safe to run multiple times (idempotent).
"""

import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from db.session import init_db, get_db
from db.models import utcnow
from db.repositories import AccountRepository


SAMPLE_ACCOUNTS = [
    {"name": "Main Checking", "bank": "Deutsche Bank", "balance": 4500.00},
    {"name": "Savings Account", "bank": "Commerzbank", "balance": 13500.00},
    {"name": "Business Account", "bank": "Sparkasse", "balance": 22500.00},
]

SAMPLE_INVESTMENTS = [
    {"symbol": "AAPL", "name": "Apple Inc.", "shares": 10, "purchase_price": 135.00, "dividends": 45.00},
    {"symbol": "MSFT", "name": "Microsoft Corporation", "shares": 5, "purchase_price": 270.00, "dividends": 22.50},
    {"symbol": "SPY", "name": "SPDR S&P 500 ETF", "shares": 20, "purchase_price": 360.00, "dividends": 90.00},
]

SAMPLE_CRYPTO = [
    {"symbol": "bitcoin", "name": "Bitcoin", "amount": 0.5, "purchase_price": 27000.00},
    {"symbol": "ethereum", "name": "Ethereum", "amount": 2.0, "purchase_price": 1800.00},
    {"symbol": "cardano", "name": "Cardano", "amount": 1000, "purchase_price": 0.45},
]

SAMPLE_CASH = [
    {"name": "Emergency Fund", "amount": 1800.00},
    {"name": "Travel Money", "amount": 450.00},
]

# Daily drift applied to the seeded totals for the demo history chart
SAMPLE_HISTORY_DRIFT = [-0.012, -0.004, 0.003, -0.007, 0.009, 0.004, 0.0]


def create_sample_data() -> bool:
    """
    Create sample positions and a week of history for demo purposes.

    Skipped when accounts already exist.

    Returns:
        True if sample data was created.
    """
    # Imported here: the services layer imports db
    from analytics.portfolio import PortfolioTotals, compute_current_totals
    from services.asset_service import (
        create_account,
        create_cash,
        create_crypto,
        create_investment,
    )
    from services.history_service import record_snapshot

    db = get_db()
    with db.session() as session:
        if AccountRepository(session).count():
            print("  Sample data skipped: accounts already exist")
            return False

    for data in SAMPLE_ACCOUNTS:
        create_account(**data)
        print(f"  Added account: {data['name']} ({data['bank']})")
    for data in SAMPLE_INVESTMENTS:
        create_investment(**data)
        print(f"  Added investment: {data['symbol']} {data['shares']} @ {data['purchase_price']:,.2f}")
    for data in SAMPLE_CRYPTO:
        create_crypto(**data)
        print(f"  Added crypto: {data['symbol']} {data['amount']} @ {data['purchase_price']:,.2f}")
    for data in SAMPLE_CASH:
        create_cash(**data)
        print(f"  Added cash: {data['name']}")

    base = compute_current_totals()
    now = utcnow()
    for days_ago, drift in zip(range(len(SAMPLE_HISTORY_DRIFT) - 1, -1, -1), SAMPLE_HISTORY_DRIFT):
        record_snapshot(
            PortfolioTotals(
                accounts=base.accounts,
                investments=base.investments * (1 + drift),
                crypto=base.crypto * (1 + 2 * drift),
                cash=base.cash,
            ),
            recorded_at=now - timedelta(days=days_ago),
        )
    print(f"  Added {len(SAMPLE_HISTORY_DRIFT)} days of portfolio history")
    return True


def main():
    """Initialize database and optionally create sample data."""
    import argparse

    parser = argparse.ArgumentParser(description="Initialize net worth database")
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Create sample data for testing",
    )
    parser.add_argument(
        "--if-drop",
        action="store_true",
        help="Drop existing tables first (destroys all data)",
    )
    args = parser.parse_args()

    # Initialize database with tables
    db = init_db(if_drop=args.if_drop)
    print("✅ Database initialized")
    print(f"   Location: {db.db_url}")

    if args.sample_data:
        print("\n📦 Creating sample data...")
        if create_sample_data():
            print("✅ Sample data created")


if __name__ == "__main__":
    main()
