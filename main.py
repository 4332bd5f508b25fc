"""
Net Worth Dashboard - Main Entry Point.

A local-first personal net worth tracker across bank accounts, investments,
crypto holdings and cash, with average-cost accounting, live quotes and a
history of portfolio snapshots.

Usage:
    # Initialize database (optionally with demo data)
    python main.py init --sample-data

    # Add positions
    python main.py add-account "Main Checking" --bank "Deutsche Bank" --balance 4500
    python main.py add-cash "Emergency Fund" --amount 1800 --location "Home safe"
    python main.py add-investment AAPL --name "Apple Inc." --shares 10 --price 135.00
    python main.py add-investment VWCE.DE --total-amount 2000
    python main.py add-crypto bitcoin --amount 0.5 --price 27000

    # Ledger operations
    python main.py deposit account 1 250 --description "Salary"
    python main.py withdraw cash 1 40
    python main.py buy investment 1 --quantity 5 --price 150.00 --date 2025-01-15
    python main.py sell crypto 1 --quantity 0.1 --price 31000
    python main.py dividend 1 12.50

    # Views
    python main.py list investment
    python main.py transactions --limit 10
    python main.py portfolio --refresh
    python main.py history

    # Quotes
    python main.py quote AAPL
    python main.py quote "cardano" --category crypto --by-name
    python main.py search "vanguard"

    # Maintenance
    python main.py update-prices
    python main.py prune-history --keep-days 365
    python main.py clear --yes

    # Launch dashboard
    python main.py dashboard
"""

import argparse
import logging
import sys

from db import AssetCategory, init_db


CATEGORY_CHOICES = [c.value.lower() for c in AssetCategory]
PRICED_CHOICES = [AssetCategory.INVESTMENT.value.lower(), AssetCategory.CRYPTO.value.lower()]
BALANCE_CHOICES = [AssetCategory.ACCOUNT.value.lower(), AssetCategory.CASH.value.lower()]


def _category(value: str) -> AssetCategory:
    return AssetCategory(value.upper())


def cmd_init(args):
    """Initialize the database."""
    db = init_db(args.db_url, if_drop=args.if_drop)
    if args.if_drop:
        print("⚠️ Existing tables dropped.")
    print("✅ Database initialized successfully")
    print(f"   Location: {db.db_url}")

    if args.sample_data:
        from db.init_db import create_sample_data

        print("\n📦 Creating sample data...")
        if create_sample_data():
            print("✅ Sample data created")


def cmd_add_account(args):
    """Add a bank account."""
    from services.asset_service import create_account, print_asset_result

    init_db()
    result = create_account(args.name, args.bank, args.balance, args.currency)
    print_asset_result(result)
    return 0 if result.success else 1


def cmd_add_cash(args):
    """Add a cash holding."""
    from services.asset_service import create_cash, print_asset_result

    init_db()
    result = create_cash(args.name, args.amount, args.currency, args.location)
    print_asset_result(result)
    return 0 if result.success else 1


def cmd_add_investment(args):
    """Add an investment position."""
    from services.asset_service import create_investment, print_asset_result

    init_db()
    result = create_investment(
        symbol=args.symbol,
        name=args.name,
        shares=args.shares,
        purchase_price=args.price,
        total_amount=args.total_amount,
        dividends=args.dividends,
        fetch_price=args.fetch_price,
    )
    print_asset_result(result)
    return 0 if result.success else 1


def cmd_add_crypto(args):
    """Add a crypto holding."""
    from services.asset_service import create_crypto, print_asset_result

    init_db()
    result = create_crypto(
        symbol=args.coin_id,
        name=args.name,
        amount=args.amount,
        purchase_price=args.price,
        total_amount=args.total_amount,
        fetch_price=args.fetch_price,
    )
    print_asset_result(result)
    return 0 if result.success else 1


def _print_positions(category: AssetCategory, positions: list) -> None:
    from analytics.portfolio import position_value

    print(f"\n📋 {category.value.capitalize()} ({len(positions)})")
    if not positions:
        print("   (none)")
        return

    if category == AssetCategory.ACCOUNT:
        print(f"{'ID':>4}  {'Name':<24} {'Bank':<20} {'Balance':>14}")
        for a in positions:
            print(f"{a.id:>4}  {a.name[:24]:<24} {a.bank[:20]:<20} {a.balance:>14,.2f} {a.currency}")
    elif category == AssetCategory.CASH:
        print(f"{'ID':>4}  {'Name':<24} {'Location':<20} {'Amount':>14}")
        for c in positions:
            print(f"{c.id:>4}  {c.name[:24]:<24} {(c.location or '-')[:20]:<20} {c.amount:>14,.2f} {c.currency}")
    else:
        print(f"{'ID':>4}  {'Symbol':<12} {'Quantity':>14} {'Avg cost':>12} {'Price':>12} {'Value':>14}")
        for p in positions:
            price = f"{p.current_price:,.2f}" if p.current_price is not None else "-"
            print(
                f"{p.id:>4}  {p.symbol[:12]:<12} {p.quantity:>14,.6g} {p.purchase_price:>12,.2f} "
                f"{price:>12} {position_value(p):>14,.2f}"
            )


def cmd_list(args):
    """List positions (all categories or one)."""
    from services.asset_service import list_positions

    init_db()
    categories = [_category(args.category)] if args.category else list(AssetCategory)
    for category in categories:
        _print_positions(category, list_positions(category))


def cmd_edit(args):
    """Edit fields of a position."""
    from services.asset_service import print_asset_result, update_position

    init_db()
    candidates = {
        "name": args.name,
        "bank": args.bank,
        "balance": args.balance,
        "currency": args.currency,
        "amount": args.amount,
        "location": args.location,
        "symbol": args.symbol,
        "shares": args.shares,
        "purchase_price": args.price,
        "dividends": args.dividends,
    }
    fields = {k: v for k, v in candidates.items() if v is not None}
    if not fields:
        print("⚠️ Nothing to update")
        return 1

    result = update_position(_category(args.category), args.id, **fields)
    print_asset_result(result)
    return 0 if result.success else 1


def cmd_delete(args):
    """Delete a position (its transactions are kept)."""
    from services.asset_service import delete_position, print_asset_result

    init_db()
    result = delete_position(_category(args.category), args.id)
    print_asset_result(result)
    return 0 if result.success else 1


def cmd_deposit(args):
    """Deposit into an account or cash holding."""
    from services.transaction_service import deposit, print_transaction_result

    init_db()
    result = deposit(args.category, args.id, args.amount, args.description, args.date)
    print_transaction_result(result)
    return 0 if result.success else 1


def cmd_withdraw(args):
    """Withdraw from an account or cash holding."""
    from services.transaction_service import print_transaction_result, withdraw

    init_db()
    result = withdraw(args.category, args.id, args.amount, args.description, args.date)
    print_transaction_result(result)
    return 0 if result.success else 1


def cmd_buy(args):
    """Buy units of an investment or crypto holding."""
    from services.transaction_service import buy, print_transaction_result

    init_db()
    result = buy(
        args.category, args.id,
        quantity=args.quantity,
        price=args.price,
        amount=args.amount,
        description=args.description,
        transaction_at=args.date,
    )
    print_transaction_result(result)
    return 0 if result.success else 1


def cmd_sell(args):
    """Sell units of an investment or crypto holding."""
    from services.transaction_service import print_transaction_result, sell

    init_db()
    result = sell(
        args.category, args.id,
        quantity=args.quantity,
        price=args.price,
        amount=args.amount,
        description=args.description,
        transaction_at=args.date,
    )
    print_transaction_result(result)
    return 0 if result.success else 1


def cmd_dividend(args):
    """Record a dividend on an investment."""
    from services.transaction_service import print_transaction_result, record_dividend

    init_db()
    result = record_dividend(args.id, args.amount, args.description, args.date)
    print_transaction_result(result)
    return 0 if result.success else 1


def cmd_transactions(args):
    """List recent transactions."""
    from services.transaction_service import list_transactions

    init_db()
    records = list_transactions(
        asset_category=args.category,
        asset_id=args.asset_id,
        limit=args.limit,
    )

    if not records:
        print("No transactions found.")
        return

    print(f"\n💼 Transactions (last {len(records)})")
    print("-" * 92)
    print(f"{'Date':<17} {'Type':<11} {'Category':<11} {'Asset':<22} {'Qty':>10} {'Amount':>14}")
    print("-" * 92)
    for r in records:
        qty = f"{r['quantity']:,.4g}" if r["quantity"] is not None else "-"
        print(
            f"{r['date']:%Y-%m-%d %H:%M} {r['type']:<11} {r['category']:<11} "
            f"{r['asset_label'][:22]:<22} {qty:>10} {r['amount']:>14,.2f}"
        )


def cmd_portfolio(args):
    """Show net worth with per-category breakdown."""
    from services.portfolio_service import get_portfolio

    init_db()
    view = get_portfolio(update_prices=args.refresh)

    print("\n" + "=" * 50)
    print("📊 NET WORTH")
    print("=" * 50)
    if view.refreshed is not None:
        print(f"   🔄 Repriced {view.refreshed.total} positions (snapshot #{view.snapshot_id})")

    for name, value in view.breakdown.items():
        weight = value / view.total if view.total else 0.0
        print(f"   {name.capitalize():<14} {value:>14,.2f}  {weight:>6.1%}")
    print("-" * 50)
    print(f"   {'Total':<14} {view.total:>14,.2f}")
    print("=" * 50)


def cmd_history(args):
    """Show recent portfolio snapshots."""
    from services.history_service import get_history

    init_db()
    snapshots = get_history(args.limit)
    if not snapshots:
        print("No history yet. Run `update-prices` or `portfolio --refresh`.")
        return

    print(f"\n📈 Portfolio History ({len(snapshots)} snapshots)")
    print("-" * 90)
    print(f"{'Recorded':<17} {'Total':>14} {'Accounts':>14} {'Invest.':>14} {'Crypto':>12} {'Cash':>12}")
    print("-" * 90)
    for s in snapshots:
        print(
            f"{s.recorded_at:%Y-%m-%d %H:%M} {s.total_value:>14,.2f} {s.accounts_value:>14,.2f} "
            f"{s.investments_value:>14,.2f} {s.crypto_value:>12,.2f} {s.cash_value:>12,.2f}"
        )


def cmd_update_prices(args):
    """Refresh all prices, record a snapshot and prune history."""
    from jobs.price_update import run_price_update

    return run_price_update()


def cmd_quote(args):
    """Look up a current price."""
    from data.quotes import PriceOracle

    category = _category(args.category)
    oracle = PriceOracle()
    if args.by_name:
        price = oracle.get_quote_by_name(args.identifier, category)
    else:
        price = oracle.get_quote(args.identifier, category)

    if price is None:
        print(f"⚠️ No price available for {args.identifier}")
        return 1
    print(f"💹 {args.identifier}: {price:,.4f}")


def cmd_search(args):
    """Search quote provider symbols."""
    from data.quotes import PriceOracle

    results = PriceOracle().search_assets(args.query, _category(args.category), args.limit)
    if not results:
        print("No matches.")
        return

    print(f"\n🔎 Matches for {args.query!r}")
    print(f"{'Symbol':<20} {'Exchange':<12} Name")
    for r in results:
        print(f"{r.symbol[:20]:<20} {r.exchange[:12]:<12} {r.name}")


def cmd_prune_history(args):
    """Roll up old snapshots to one per day."""
    from services.history_service import prune_history

    init_db()
    deleted = prune_history(args.keep_days)
    print(f"🧹 Pruned {deleted} snapshots")


def cmd_clear(args):
    """Delete all positions, transactions and history."""
    from services.asset_service import clear_portfolio

    if not args.yes:
        print("⚠️ This deletes every position, transaction and snapshot.")
        print("   Use --yes to proceed")
        return 1

    init_db()
    counts = clear_portfolio()
    print("✅ Portfolio cleared")
    for table, count in counts.items():
        print(f"   {table:<14} {count:>6} removed")


def cmd_dashboard(args):
    """Launch the Streamlit dashboard."""
    import subprocess

    subprocess.run(
        [
            sys.executable,
            "-m",
            "streamlit",
            "run",
            "ui/app.py",
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Net Worth Dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show info logs")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    init = subparsers.add_parser("init", help="Initialize database")
    init.add_argument("--db-url", help="Custom database URL", default=None)
    init.add_argument("--if-drop", action="store_true", help="Drop existing tables before creating")
    init.add_argument("--sample-data", action="store_true", help="Create sample data for testing")

    # position creation
    add_account = subparsers.add_parser("add-account", help="Add a bank account")
    add_account.add_argument("name", help="Account name")
    add_account.add_argument("--bank", required=True, help="Bank / institution")
    add_account.add_argument("--balance", type=float, default=0.0, help="Opening balance")
    add_account.add_argument("--currency", default="EUR", help="Currency code")

    add_cash = subparsers.add_parser("add-cash", help="Add a cash holding")
    add_cash.add_argument("name", help="Holding name")
    add_cash.add_argument("--amount", type=float, default=0.0, help="Opening amount")
    add_cash.add_argument("--currency", default="EUR", help="Currency code")
    add_cash.add_argument("--location", help="Where the cash is kept")

    add_investment = subparsers.add_parser("add-investment", help="Add an investment")
    add_investment.add_argument("symbol", help="Ticker symbol")
    add_investment.add_argument("--name", help="Display name")
    add_investment.add_argument("--shares", type=float, help="Shares held")
    add_investment.add_argument("--price", type=float, help="Average purchase price")
    add_investment.add_argument("--total-amount", type=float, help="Invest this amount at the current quote")
    add_investment.add_argument("--dividends", type=float, default=0.0, help="Dividends received so far")
    add_investment.add_argument("--fetch-price", action="store_true", help="Fetch the current quote")

    add_crypto = subparsers.add_parser("add-crypto", help="Add a crypto holding")
    add_crypto.add_argument("coin_id", help="CoinGecko coin id (e.g. bitcoin)")
    add_crypto.add_argument("--name", help="Display name")
    add_crypto.add_argument("--amount", type=float, help="Amount held")
    add_crypto.add_argument("--price", type=float, help="Average purchase price")
    add_crypto.add_argument("--total-amount", type=float, help="Invest this amount at the current quote")
    add_crypto.add_argument("--fetch-price", action="store_true", help="Fetch the current quote")

    # list / edit / delete
    list_cmd = subparsers.add_parser("list", help="List positions")
    list_cmd.add_argument("category", nargs="?", choices=CATEGORY_CHOICES, help="Only this category")

    edit = subparsers.add_parser("edit", help="Edit a position")
    edit.add_argument("category", choices=CATEGORY_CHOICES)
    edit.add_argument("id", type=int, help="Position ID")
    edit.add_argument("--name")
    edit.add_argument("--bank")
    edit.add_argument("--balance", type=float)
    edit.add_argument("--currency")
    edit.add_argument("--amount", type=float)
    edit.add_argument("--location")
    edit.add_argument("--symbol")
    edit.add_argument("--shares", type=float)
    edit.add_argument("--price", type=float, help="Average purchase price")
    edit.add_argument("--dividends", type=float)

    delete = subparsers.add_parser("delete", help="Delete a position (keeps transactions)")
    delete.add_argument("category", choices=CATEGORY_CHOICES)
    delete.add_argument("id", type=int, help="Position ID")

    # ledger operations
    for name, help_text in (("deposit", "Deposit into an account or cash"), ("withdraw", "Withdraw from an account or cash")):
        cmd = subparsers.add_parser(name, help=help_text)
        cmd.add_argument("category", choices=BALANCE_CHOICES)
        cmd.add_argument("id", type=int, help="Position ID")
        cmd.add_argument("amount", type=float, help="Amount")
        cmd.add_argument("--date", help="Transaction date (YYYY-MM-DD, default: now)")
        cmd.add_argument("--description", help="Description")

    for name, help_text in (("buy", "Buy units (updates average cost)"), ("sell", "Sell units (average cost unchanged)")):
        cmd = subparsers.add_parser(name, help=help_text)
        cmd.add_argument("category", choices=PRICED_CHOICES)
        cmd.add_argument("id", type=int, help="Position ID")
        cmd.add_argument("--quantity", type=float, required=True, help="Units")
        cmd.add_argument("--price", type=float, required=(name == "buy"), help="Unit price")
        cmd.add_argument("--amount", type=float, help="Total amount (default: quantity * price)")
        cmd.add_argument("--date", help="Transaction date (YYYY-MM-DD, default: now)")
        cmd.add_argument("--description", help="Description")

    dividend = subparsers.add_parser("dividend", help="Record a dividend on an investment")
    dividend.add_argument("id", type=int, help="Investment ID")
    dividend.add_argument("amount", type=float, help="Dividend amount")
    dividend.add_argument("--date", help="Transaction date (YYYY-MM-DD, default: now)")
    dividend.add_argument("--description", help="Description")

    transactions = subparsers.add_parser("transactions", help="List recent transactions")
    transactions.add_argument("--category", choices=CATEGORY_CHOICES, help="Filter by category")
    transactions.add_argument("--asset-id", type=int, help="Filter by position ID")
    transactions.add_argument("--limit", type=int, default=20, help="Max number of transactions to show")

    # portfolio views
    portfolio = subparsers.add_parser("portfolio", help="Show net worth")
    portfolio.add_argument("--refresh", action="store_true", help="Refresh prices and record a snapshot")

    history = subparsers.add_parser("history", help="Show portfolio history")
    history.add_argument("--limit", type=int, help="Number of snapshots (default: 30)")

    subparsers.add_parser("update-prices", help="Refresh all prices and record a snapshot")

    # quotes
    quote = subparsers.add_parser("quote", help="Look up a current price")
    quote.add_argument("identifier", help="Ticker, coin id, or name with --by-name")
    quote.add_argument("--category", choices=PRICED_CHOICES, default="investment")
    quote.add_argument("--by-name", action="store_true", help="Resolve a free-text name first")

    search = subparsers.add_parser("search", help="Search symbols")
    search.add_argument("query", help="Free-text query")
    search.add_argument("--category", choices=PRICED_CHOICES, default="investment")
    search.add_argument("--limit", type=int, default=None, help="Max results")

    # maintenance
    prune = subparsers.add_parser("prune-history", help="Roll up old snapshots to one per day")
    prune.add_argument("--keep-days", type=int, default=None, help="Retention window (default: 365)")

    clear = subparsers.add_parser("clear", help="Delete all portfolio data")
    clear.add_argument("--yes", action="store_true", help="Confirm deletion")

    # dashboard command
    subparsers.add_parser("dashboard", help="Launch Streamlit dashboard")

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "init": cmd_init,
        "add-account": cmd_add_account,
        "add-cash": cmd_add_cash,
        "add-investment": cmd_add_investment,
        "add-crypto": cmd_add_crypto,
        "list": cmd_list,
        "edit": cmd_edit,
        "delete": cmd_delete,
        "deposit": cmd_deposit,
        "withdraw": cmd_withdraw,
        "buy": cmd_buy,
        "sell": cmd_sell,
        "dividend": cmd_dividend,
        "transactions": cmd_transactions,
        "portfolio": cmd_portfolio,
        "history": cmd_history,
        "update-prices": cmd_update_prices,
        "quote": cmd_quote,
        "search": cmd_search,
        "prune-history": cmd_prune_history,
        "clear": cmd_clear,
        "dashboard": cmd_dashboard,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main() or 0)
