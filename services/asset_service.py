"""
Asset Service - Create, edit and delete positions in all four categories.

This service layer provides a reusable interface for managing accounts,
cash holdings, investments and crypto holdings. Designed to be consumed
by the CLI and the Streamlit dashboard.

Deleting a position never deletes its transactions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from data.quotes import PriceOracle
from db import AssetCategory, get_db
from db.repositories import (
    AccountRepository,
    CashRepository,
    CryptoRepository,
    InvestmentRepository,
    SnapshotRepository,
    TransactionRepository,
    repository_for,
)


logger = logging.getLogger(__name__)


EDITABLE_FIELDS: dict[AssetCategory, frozenset[str]] = {
    AssetCategory.ACCOUNT: frozenset({"name", "bank", "balance", "currency"}),
    AssetCategory.CASH: frozenset({"name", "amount", "currency", "location"}),
    AssetCategory.INVESTMENT: frozenset({"symbol", "name", "shares", "purchase_price", "dividends"}),
    AssetCategory.CRYPTO: frozenset({"symbol", "name", "amount", "purchase_price"}),
}

NON_NEGATIVE_FIELDS: dict[AssetCategory, frozenset[str]] = {
    AssetCategory.ACCOUNT: frozenset(),
    AssetCategory.CASH: frozenset(),
    AssetCategory.INVESTMENT: frozenset({"shares", "purchase_price", "dividends"}),
    AssetCategory.CRYPTO: frozenset({"amount", "purchase_price"}),
}


@dataclass
class AssetResult:
    """
    Result object for position create/update/delete operations.

    Captures the outcome with clear feedback about what failed.
    """
    position: Any | None
    category: AssetCategory
    errors: list[str] = field(default_factory=list)
    status_message: str = ""

    @property
    def success(self) -> bool:
        """Whether the operation succeeded."""
        return not self.errors


def _failure(category: AssetCategory, errors: list[str]) -> AssetResult:
    return AssetResult(
        position=None,
        category=category,
        errors=errors,
        status_message="❌ " + "; ".join(errors),
    )


def _check_non_negative(category: AssetCategory, values: dict[str, Any]) -> list[str]:
    return [
        f"{name} must not be negative"
        for name in sorted(NON_NEGATIVE_FIELDS[category])
        if values.get(name) is not None and values[name] < 0
    ]


def create_account(
    name: str,
    bank: str,
    balance: float = 0.0,
    currency: str = "EUR",
) -> AssetResult:
    """Create a bank account."""
    category = AssetCategory.ACCOUNT
    errors = []
    if not name:
        errors.append("name is required")
    if not bank:
        errors.append("bank is required")
    if balance is None:
        errors.append("balance is required")
    if errors:
        return _failure(category, errors)

    db = get_db()
    with db.session() as session:
        account = AccountRepository(session).create(
            name=name, bank=bank, balance=balance, currency=currency.upper(),
        )

    logger.info(f"Created account #{account.id} {name} ({bank})")
    return AssetResult(
        position=account,
        category=category,
        status_message=f"✅ Account {name} ({bank}) created with balance {balance:,.2f} {account.currency}",
    )


def create_cash(
    name: str,
    amount: float = 0.0,
    currency: str = "EUR",
    location: str | None = None,
) -> AssetResult:
    """Create a cash holding."""
    category = AssetCategory.CASH
    errors = []
    if not name:
        errors.append("name is required")
    if amount is None:
        errors.append("amount is required")
    if errors:
        return _failure(category, errors)

    db = get_db()
    with db.session() as session:
        holding = CashRepository(session).create(
            name=name, amount=amount, currency=currency.upper(), location=location,
        )

    logger.info(f"Created cash holding #{holding.id} {name}")
    return AssetResult(
        position=holding,
        category=category,
        status_message=f"✅ Cash {name} created with {amount:,.2f} {holding.currency}",
    )


def _create_priced(
    category: AssetCategory,
    symbol: str,
    name: str | None,
    quantity: float | None,
    purchase_price: float | None,
    total_amount: float | None,
    fetch_price: bool,
    oracle: PriceOracle | None,
    extra: dict[str, Any],
) -> AssetResult:
    """
    Shared creation for investments and crypto.

    With total_amount, the quantity is bought at the current quote:
    quantity = total_amount / quote and purchase_price = quote.
    """
    quantity_field = "shares" if category == AssetCategory.INVESTMENT else "amount"
    symbol = (symbol or "").strip()
    symbol = symbol.upper() if category == AssetCategory.INVESTMENT else symbol.lower()

    errors = []
    if not symbol:
        errors.append("symbol is required")
    if total_amount is None and (quantity is None or purchase_price is None):
        errors.append(f"{quantity_field} and purchase_price are required (or total_amount)")
    if total_amount is not None and total_amount <= 0:
        errors.append("total_amount must be positive")
    errors.extend(_check_non_negative(
        category, {quantity_field: quantity, "purchase_price": purchase_price, **extra}
    ))
    if errors:
        return _failure(category, errors)

    quote = None
    if total_amount is not None or fetch_price:
        oracle = oracle or PriceOracle()
        quote = oracle.get_quote(symbol, category)

    if total_amount is not None:
        if quote is None:
            return _failure(category, [f"No current price for {symbol}; cannot invest an amount"])
        quantity = total_amount / quote
        purchase_price = quote

    fields = {
        "symbol": symbol,
        "name": name or symbol,
        quantity_field: quantity,
        "purchase_price": purchase_price,
        **extra,
    }
    if quote is not None:
        fields["current_price"] = quote
        fields["total_value"] = quote * quantity
    elif fetch_price:
        logger.warning(f"⚠️ No current price for {symbol}; valued at cost until refreshed")

    db = get_db()
    with db.session() as session:
        position = repository_for(session, category).create(**fields)

    logger.info(f"Created {category.value.lower()} #{position.id} {symbol}")
    return AssetResult(
        position=position,
        category=category,
        status_message=(
            f"✅ {symbol} created: {quantity:,.6g} @ {purchase_price:,.2f}"
            + (f" (current {quote:,.2f})" if quote is not None else "")
        ),
    )


def create_investment(
    symbol: str,
    name: str | None = None,
    shares: float | None = None,
    purchase_price: float | None = None,
    total_amount: float | None = None,
    dividends: float = 0.0,
    fetch_price: bool = False,
    oracle: PriceOracle | None = None,
) -> AssetResult:
    """
    Create an investment position.

    Args:
        symbol: Ticker symbol (stored upper case)
        name: Display name (defaults to the symbol)
        shares: Shares held
        purchase_price: Average purchase price per share
        total_amount: Alternative to shares/purchase_price: amount invested
            at the current quote
        dividends: Dividends received so far
        fetch_price: Seed current_price/total_value from the quote provider
        oracle: Price oracle (defaults to live providers)

    Example:
        >>> result = create_investment("AAPL", "Apple Inc.", shares=10, purchase_price=135.0)
    """
    return _create_priced(
        AssetCategory.INVESTMENT, symbol, name, shares, purchase_price,
        total_amount, fetch_price, oracle, {"dividends": dividends},
    )


def create_crypto(
    symbol: str,
    name: str | None = None,
    amount: float | None = None,
    purchase_price: float | None = None,
    total_amount: float | None = None,
    fetch_price: bool = False,
    oracle: PriceOracle | None = None,
) -> AssetResult:
    """Create a crypto holding keyed by provider id (e.g. "bitcoin")."""
    return _create_priced(
        AssetCategory.CRYPTO, symbol, name, amount, purchase_price,
        total_amount, fetch_price, oracle, {},
    )


def update_position(category: AssetCategory, position_id: int, **fields: Any) -> AssetResult:
    """
    Partial update of a position; fields passed as None are unchanged.

    Quantity edits keep total_value consistent with the stored
    current_price. A symbol change clears both, since the stored quote
    belongs to the old symbol.
    """
    unknown = set(fields) - EDITABLE_FIELDS[category]
    if unknown:
        return _failure(category, [f"Unknown field(s): {', '.join(sorted(unknown))}"])

    errors = _check_non_negative(category, fields)
    if errors:
        return _failure(category, errors)

    db = get_db()
    with db.session() as session:
        repo = repository_for(session, category)
        position = repo.get_by_id(position_id)
        if position is None:
            return _failure(category, [f"{category.value} #{position_id} not found"])

        if category in (AssetCategory.INVESTMENT, AssetCategory.CRYPTO):
            if fields.get("symbol") is not None:
                fields["symbol"] = (
                    fields["symbol"].upper()
                    if category == AssetCategory.INVESTMENT
                    else fields["symbol"].lower()
                )
            symbol_changed = fields.get("symbol") not in (None, position.symbol)
            position = repo.update(position_id, **fields)
            if symbol_changed:
                position.current_price = None
                position.total_value = None
            elif position.current_price is not None:
                position.total_value = position.current_price * position.quantity
        else:
            if fields.get("currency") is not None:
                fields["currency"] = fields["currency"].upper()
            position = repo.update(position_id, **fields)

    logger.info(f"Updated {category.value.lower()} #{position_id}: {sorted(k for k, v in fields.items() if v is not None)}")
    return AssetResult(
        position=position,
        category=category,
        status_message=f"✅ Updated {category.value.lower()} #{position_id}",
    )


def delete_position(category: AssetCategory, position_id: int) -> AssetResult:
    """Delete a position. Its transaction history is kept."""
    db = get_db()
    with db.session() as session:
        deleted = repository_for(session, category).delete(position_id)

    if not deleted:
        return _failure(category, [f"{category.value} #{position_id} not found"])

    logger.info(f"Deleted {category.value.lower()} #{position_id}")
    return AssetResult(
        position=None,
        category=category,
        status_message=f"✅ Deleted {category.value.lower()} #{position_id}",
    )


def get_position(category: AssetCategory, position_id: int):
    """Get one position, or None."""
    db = get_db()
    with db.session() as session:
        return repository_for(session, category).get_by_id(position_id)


def list_positions(category: AssetCategory) -> list:
    """All positions of a category, newest first."""
    db = get_db()
    with db.session() as session:
        return list(repository_for(session, category).get_all())


def clear_portfolio() -> dict[str, int]:
    """
    Delete every position, transaction and snapshot.

    Returns:
        Dict mapping table to number of rows deleted.
    """
    db = get_db()
    with db.session() as session:
        counts = {
            "snapshots": SnapshotRepository(session).delete_all(),
            "transactions": TransactionRepository(session).delete_all(),
            "accounts": AccountRepository(session).delete_all(),
            "investments": InvestmentRepository(session).delete_all(),
            "crypto": CryptoRepository(session).delete_all(),
            "cash": CashRepository(session).delete_all(),
        }
    logger.info(f"🧹 Portfolio cleared: {counts}")
    return counts


def print_asset_result(result: AssetResult) -> None:
    """Print a formatted asset result to console."""
    print(result.status_message)
    if result.position is not None and getattr(result.position, "id", None) is not None:
        print(f"   ID: {result.position.id}")
