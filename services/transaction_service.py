"""
Transaction Service - Records ledger transactions and applies them to positions.

Every transaction is persisted first, in its own unit of work, and the owning
position is mutated afterwards. The transaction log is the source of truth;
positions are a derived cache that replay_position can rebuild.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from config import config
from db import AssetCategory, Transaction, TransactionType, get_db
from db.repositories import TransactionRepository, repository_for
from services.position_service import (
    OversellError,
    PositionState,
    apply_to_state,
    is_legal,
    replay,
    state_of,
    write_state,
)


logger = logging.getLogger(__name__)

UNKNOWN_ASSET = "Unknown asset"


@dataclass
class TransactionResult:
    """
    Result object for transaction operations.

    success is False for validation errors (nothing written) and for
    position update failures (the transaction row is kept). A missing
    position is not a failure: the transaction is stored with
    position_found=False.
    """
    transaction: Transaction | None
    position: Any | None
    success: bool
    applied: bool = False
    position_found: bool = True
    errors: list[str] = field(default_factory=list)
    status_message: str = ""


def coerce_category(value: AssetCategory | str) -> AssetCategory:
    """Parse an asset category from enum or case-insensitive string."""
    if isinstance(value, AssetCategory):
        return value
    return AssetCategory(str(value).strip().upper())


def coerce_type(value: TransactionType | str) -> TransactionType:
    """Parse a transaction type from enum or case-insensitive string."""
    if isinstance(value, TransactionType):
        return value
    return TransactionType(str(value).strip().upper())


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """
    Parse YYYY-MM-DD or ISO timestamps; None passes through.

    Offset-aware values are converted to naive UTC.
    """
    if value is None:
        return None
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(value.strip())
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _validation_failure(errors: list[str]) -> TransactionResult:
    return TransactionResult(
        transaction=None,
        position=None,
        success=False,
        errors=errors,
        status_message="❌ " + "; ".join(errors),
    )


def _validate(
    asset_id: Any,
    amount: Any,
    price: Any,
    quantity: Any,
) -> list[str]:
    errors = []
    if asset_id is None:
        errors.append("asset_id is required")
    if amount is None:
        errors.append("amount is required")
    elif amount < 0:
        errors.append("amount must not be negative")
    if price is not None and price < 0:
        errors.append("price must not be negative")
    if quantity is not None and quantity < 0:
        errors.append("quantity must not be negative")
    return errors


def record_transaction(
    transaction_type: TransactionType | str,
    asset_category: AssetCategory | str,
    asset_id: int,
    amount: float,
    price: float | None = None,
    quantity: float | None = None,
    description: str | None = None,
    transaction_at: str | datetime | None = None,
    oversell_policy: str | None = None,
) -> TransactionResult:
    """
    Record a transaction and apply it to the owning position.

    Args:
        transaction_type: DEPOSIT/WITHDRAWAL/BUY/SELL/DIVIDEND (any case)
        asset_category: ACCOUNT/INVESTMENT/CRYPTO/CASH (any case)
        asset_id: ID of the owning position (not required to exist)
        amount: Monetary amount
        price: Unit price (BUY)
        quantity: Units (BUY/SELL)
        description: Free text
        transaction_at: Occurrence date (defaults to now)
        oversell_policy: Override of config.ledger.oversell_policy

    Returns:
        TransactionResult with detailed outcome information
    """
    try:
        category = coerce_category(asset_category)
        txn_type = coerce_type(transaction_type)
        occurred_at = parse_datetime(transaction_at)
    except ValueError as e:
        return _validation_failure([str(e)])

    errors = _validate(asset_id, amount, price, quantity)
    if errors:
        return _validation_failure(errors)

    policy = oversell_policy or config.ledger.oversell_policy
    db = get_db()

    # Reject an oversell before anything is written
    if txn_type == TransactionType.SELL and policy == "reject":
        with db.session() as session:
            position = repository_for(session, category).get_by_id(asset_id)
            if position is not None:
                try:
                    apply_to_state(
                        state_of(position, category), category, txn_type, amount,
                        price=price, quantity=quantity, oversell_policy=policy,
                    )
                except OversellError as e:
                    logger.warning(f"Rejected {category.value}#{asset_id} sell: {e}")
                    return _validation_failure([str(e)])

    with db.session() as session:
        transaction = TransactionRepository(session).create(
            transaction_type=txn_type,
            asset_category=category,
            asset_id=asset_id,
            amount=amount,
            price=price,
            quantity=quantity,
            description=description,
            transaction_at=occurred_at,
        )

    label = f"{txn_type.value} {category.value}#{asset_id}"
    logger.info(f"Recorded transaction #{transaction.id}: {label} amount={amount}")

    if not is_legal(category, txn_type):
        logger.info(f"{label}: not applicable to category, position unchanged")
        return TransactionResult(
            transaction=transaction,
            position=None,
            success=True,
            applied=False,
            status_message=f"✅ Recorded {label} (no position change)",
        )

    try:
        with db.session() as session:
            position = repository_for(session, category).get_by_id(asset_id)
            if position is None:
                logger.warning(f"⚠️ {label}: asset not found, position not updated")
                return TransactionResult(
                    transaction=transaction,
                    position=None,
                    success=True,
                    applied=False,
                    position_found=False,
                    errors=[f"Asset not found: {category.value}#{asset_id}"],
                    status_message=f"⚠️ Recorded {label}, but the asset was not found",
                )

            effect = apply_to_state(
                state_of(position, category), category, txn_type, amount,
                price=price, quantity=quantity, oversell_policy=policy,
            )
            if effect.applied:
                write_state(position, category, effect.state)
            else:
                logger.warning(f"⚠️ {label}: {effect.reason}; position unchanged")
    except (OversellError, SQLAlchemyError) as e:
        logger.error(f"❌ Transaction #{transaction.id} kept, position update failed: {e}")
        return TransactionResult(
            transaction=transaction,
            position=None,
            success=False,
            errors=[str(e)],
            status_message=f"❌ Recorded {label}, but the position update failed: {e}",
        )

    message = f"✅ {label}"
    if effect.applied:
        message += f"\n   📊 Position: {effect.state.quantity:,.4f}"
        if category in (AssetCategory.INVESTMENT, AssetCategory.CRYPTO):
            message += f" @ {effect.state.average_price:,.2f} avg cost"
    else:
        message += f"\n   ⚠️ {effect.reason}"

    return TransactionResult(
        transaction=transaction,
        position=position,
        success=True,
        applied=effect.applied,
        status_message=message,
    )


def deposit(
    asset_category: AssetCategory | str,
    asset_id: int,
    amount: float,
    description: str | None = None,
    transaction_at: str | datetime | None = None,
) -> TransactionResult:
    """Deposit into an account or cash holding."""
    return record_transaction(
        TransactionType.DEPOSIT, asset_category, asset_id, amount,
        description=description, transaction_at=transaction_at,
    )


def withdraw(
    asset_category: AssetCategory | str,
    asset_id: int,
    amount: float,
    description: str | None = None,
    transaction_at: str | datetime | None = None,
) -> TransactionResult:
    """Withdraw from an account or cash holding."""
    return record_transaction(
        TransactionType.WITHDRAWAL, asset_category, asset_id, amount,
        description=description, transaction_at=transaction_at,
    )


def buy(
    asset_category: AssetCategory | str,
    asset_id: int,
    quantity: float,
    price: float,
    amount: float | None = None,
    description: str | None = None,
    transaction_at: str | datetime | None = None,
) -> TransactionResult:
    """
    Buy units of an investment or crypto holding.

    Example:
        >>> result = buy("investment", 1, quantity=5, price=100.0)
    """
    if amount is None and quantity is not None and price is not None:
        amount = quantity * price
    return record_transaction(
        TransactionType.BUY, asset_category, asset_id, amount,
        price=price, quantity=quantity,
        description=description, transaction_at=transaction_at,
    )


def sell(
    asset_category: AssetCategory | str,
    asset_id: int,
    quantity: float,
    price: float | None = None,
    amount: float | None = None,
    description: str | None = None,
    transaction_at: str | datetime | None = None,
) -> TransactionResult:
    """Sell units of an investment or crypto holding. The average cost is kept."""
    if amount is None:
        amount = quantity * price if (quantity is not None and price is not None) else 0.0
    return record_transaction(
        TransactionType.SELL, asset_category, asset_id, amount,
        price=price, quantity=quantity,
        description=description, transaction_at=transaction_at,
    )


def record_dividend(
    investment_id: int,
    amount: float,
    description: str | None = None,
    transaction_at: str | datetime | None = None,
) -> TransactionResult:
    """Record a dividend received on an investment."""
    return record_transaction(
        TransactionType.DIVIDEND, AssetCategory.INVESTMENT, investment_id, amount,
        description=description, transaction_at=transaction_at,
    )


def _asset_info(position, category: AssetCategory) -> dict | None:
    """Display fields of the owning position, None if it no longer exists."""
    if position is None:
        return None
    if category == AssetCategory.ACCOUNT:
        return {"name": position.name, "bank": position.bank}
    if category == AssetCategory.CASH:
        return {"name": position.name}
    return {"name": position.name, "symbol": position.symbol}


def _to_record(transaction: Transaction, asset_info: dict | None) -> dict:
    return {
        "id": transaction.id,
        "type": transaction.transaction_type.value,
        "category": transaction.asset_category.value,
        "asset_id": transaction.asset_id,
        "amount": transaction.amount,
        "price": transaction.price,
        "quantity": transaction.quantity,
        "description": transaction.description or "",
        "date": transaction.transaction_at,
        "asset_info": asset_info,
        "asset_label": asset_info["name"] if asset_info else UNKNOWN_ASSET,
    }


def list_transactions(
    asset_category: AssetCategory | str | None = None,
    asset_id: int | None = None,
    limit: int | None = None,
) -> list[dict]:
    """
    Get transactions, newest first, with owning asset info.

    Transactions whose position was deleted are reported with
    asset_info=None and asset_label "Unknown asset".
    """
    category = coerce_category(asset_category) if asset_category else None
    db = get_db()

    with db.session() as session:
        transactions = TransactionRepository(session).get_transactions(
            asset_category=category, asset_id=asset_id, limit=limit,
        )

        records = []
        for txn in transactions:
            try:
                position = repository_for(session, txn.asset_category).get_by_id(txn.asset_id)
            except SQLAlchemyError as e:
                logger.error(f"Error fetching asset info for {txn.asset_category.value}:{txn.asset_id}: {e}")
                position = None
            records.append(_to_record(txn, _asset_info(position, txn.asset_category)))

    return records


def get_transactions_for_asset(
    asset_category: AssetCategory | str,
    asset_id: int,
) -> list[Transaction]:
    """Get raw transactions of one position, newest first."""
    db = get_db()
    with db.session() as session:
        return list(TransactionRepository(session).get_transactions(
            asset_category=coerce_category(asset_category), asset_id=asset_id,
        ))


def replay_position(
    asset_category: AssetCategory | str,
    asset_id: int,
    opening: PositionState | None = None,
    oversell_policy: str | None = None,
) -> PositionState:
    """
    Rebuild a position state from its transaction log.

    Positions created with an opening quantity carry state that is not in
    the log; pass it as opening.
    """
    category = coerce_category(asset_category)
    db = get_db()
    with db.session() as session:
        transactions = TransactionRepository(session).list_for_asset_chronological(
            category, asset_id
        )
        return replay(category, transactions, opening=opening, oversell_policy=oversell_policy)


def print_transaction_result(result: TransactionResult) -> None:
    """
    Print a formatted transaction result to console.

    Helper function for CLI usage.
    """
    print(result.status_message)

    if result.transaction:
        txn = result.transaction
        print(f"   Date: {txn.transaction_at:%Y-%m-%d %H:%M}")
        if txn.description:
            print(f"   Description: {txn.description}")
