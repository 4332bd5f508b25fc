"""
Position Service - Average-cost ledger rules for all asset categories.

This module holds the pure accounting core:
- Legal transaction types per asset category
- Deposit/withdrawal on account balances and cash amounts
- Buy/sell on investments and crypto with weighted average cost
- Dividend accumulation on investments
- Oversell policy (reject / clamp / allow)
- Replay of a transaction sequence to rebuild a position

Nothing here touches the database; transaction_service persists the
ledger and applies these rules to the stored rows.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable

from config import config
from db import AssetCategory, TransactionType


logger = logging.getLogger(__name__)


LEGAL_TYPES: dict[AssetCategory, frozenset[TransactionType]] = {
    AssetCategory.ACCOUNT: frozenset({TransactionType.DEPOSIT, TransactionType.WITHDRAWAL}),
    AssetCategory.CASH: frozenset({TransactionType.DEPOSIT, TransactionType.WITHDRAWAL}),
    AssetCategory.INVESTMENT: frozenset(
        {TransactionType.BUY, TransactionType.SELL, TransactionType.DIVIDEND}
    ),
    AssetCategory.CRYPTO: frozenset({TransactionType.BUY, TransactionType.SELL}),
}


# Float slack for comparing a sell against the held quantity
QUANTITY_REL_TOL = 1e-9
QUANTITY_ABS_TOL = 1e-12


class OversellError(ValueError):
    """A sell exceeds the held quantity under the reject policy."""

    def __init__(self, held: float, requested: float):
        self.held = held
        self.requested = requested
        super().__init__(f"Cannot sell {requested:g}: only {held:g} held")


@dataclass(frozen=True)
class PositionState:
    """
    Category-neutral view of a position.

    quantity is the balance (accounts), amount (cash, crypto) or shares
    (investments). average_price and dividends are only meaningful for
    investments and crypto.
    """
    quantity: float = 0.0
    average_price: float = 0.0
    dividends: float = 0.0


@dataclass(frozen=True)
class LedgerEffect:
    """Outcome of applying one transaction to a position state."""
    state: PositionState
    applied: bool
    reason: str = ""


def is_legal(category: AssetCategory, transaction_type: TransactionType) -> bool:
    """Whether the category accepts this transaction type."""
    return transaction_type in LEGAL_TYPES.get(category, frozenset())


def _present(value: float | None) -> bool:
    """Zero and None both count as a missing price/quantity."""
    return value is not None and value != 0


def _same_quantity(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=QUANTITY_REL_TOL, abs_tol=QUANTITY_ABS_TOL)


def apply_to_state(
    state: PositionState,
    category: AssetCategory,
    transaction_type: TransactionType,
    amount: float,
    price: float | None = None,
    quantity: float | None = None,
    oversell_policy: str | None = None,
) -> LedgerEffect:
    """
    Apply a single transaction to a position state.

    Args:
        state: Current position state.
        category: Asset category of the position.
        transaction_type: DEPOSIT/WITHDRAWAL/BUY/SELL/DIVIDEND.
        amount: Monetary amount of the transaction.
        price: Unit price (BUY).
        quantity: Units bought or sold (BUY/SELL).
        oversell_policy: reject, clamp or allow (defaults to config).

    Returns:
        LedgerEffect with the new state. applied is False (and the state
        unchanged) for illegal pairs and BUY/SELL without price/quantity.

    Raises:
        OversellError: SELL above holdings under the reject policy.
    """
    policy = oversell_policy or config.ledger.oversell_policy

    if not is_legal(category, transaction_type):
        return LedgerEffect(
            state=state,
            applied=False,
            reason=f"{transaction_type.value} is not applicable to {category.value}",
        )

    if transaction_type == TransactionType.DEPOSIT:
        return LedgerEffect(replace(state, quantity=state.quantity + amount), applied=True)

    if transaction_type == TransactionType.WITHDRAWAL:
        return LedgerEffect(replace(state, quantity=state.quantity - amount), applied=True)

    if transaction_type == TransactionType.DIVIDEND:
        return LedgerEffect(replace(state, dividends=state.dividends + amount), applied=True)

    if transaction_type == TransactionType.BUY:
        if not (_present(price) and _present(quantity)):
            return LedgerEffect(state, applied=False, reason="BUY requires price and quantity")

        total_quantity = state.quantity + quantity
        if total_quantity <= 0:
            # No meaningful average over a non-positive holding; keep the old one
            return LedgerEffect(
                replace(state, quantity=total_quantity),
                applied=True,
                reason="Average price unchanged (non-positive holding)",
            )

        total_cost = state.quantity * state.average_price + quantity * price
        return LedgerEffect(
            replace(state, quantity=total_quantity, average_price=total_cost / total_quantity),
            applied=True,
        )

    # SELL
    if not _present(quantity):
        return LedgerEffect(state, applied=False, reason="SELL requires quantity")

    if _same_quantity(quantity, state.quantity):
        # Selling the whole holding
        return LedgerEffect(replace(state, quantity=0.0), applied=True)

    if quantity > state.quantity:
        if policy == "reject":
            raise OversellError(held=state.quantity, requested=quantity)
        if policy == "clamp":
            logger.warning(
                f"⚠️ Sell of {quantity:g} exceeds holding {state.quantity:g}; clamping to zero"
            )
            return LedgerEffect(
                replace(state, quantity=min(state.quantity, 0.0)),
                applied=True,
                reason="Clamped to held quantity",
            )

    return LedgerEffect(replace(state, quantity=state.quantity - quantity), applied=True)


def replay(
    category: AssetCategory,
    transactions: Iterable,
    opening: PositionState | None = None,
    oversell_policy: str | None = None,
) -> PositionState:
    """
    Rebuild a position by applying transactions in order.

    A logged sell was accepted when it was recorded, so the reject policy
    is replayed as clamp.

    Args:
        category: Asset category of the position.
        transactions: Objects with transaction_type, amount, price, quantity
            (ORM Transaction rows or equivalents), oldest first.
        opening: State before the first transaction (defaults to empty).
        oversell_policy: clamp or allow (defaults to config).

    Returns:
        Final position state.
    """
    policy = oversell_policy or config.ledger.oversell_policy
    if policy == "reject":
        policy = "clamp"

    state = opening or PositionState()
    for txn in transactions:
        effect = apply_to_state(
            state,
            category,
            txn.transaction_type,
            txn.amount,
            price=txn.price,
            quantity=txn.quantity,
            oversell_policy=policy,
        )
        state = effect.state
    return state


def state_of(position, category: AssetCategory) -> PositionState:
    """Read the ledger state from an ORM position row."""
    if category == AssetCategory.ACCOUNT:
        return PositionState(quantity=position.balance)
    if category == AssetCategory.CASH:
        return PositionState(quantity=position.amount)
    if category == AssetCategory.INVESTMENT:
        return PositionState(
            quantity=position.shares,
            average_price=position.purchase_price,
            dividends=position.dividends,
        )
    return PositionState(quantity=position.amount, average_price=position.purchase_price)


def write_state(position, category: AssetCategory, state: PositionState) -> None:
    """
    Write a ledger state back to an ORM position row.

    For priced positions the stored total_value is recomputed from the
    stored current_price so the pair stays consistent with the quantity.
    """
    if category == AssetCategory.ACCOUNT:
        position.balance = state.quantity
        return
    if category == AssetCategory.CASH:
        position.amount = state.quantity
        return

    position.quantity = state.quantity
    position.purchase_price = state.average_price
    if category == AssetCategory.INVESTMENT:
        position.dividends = state.dividends
    if position.current_price is not None:
        position.total_value = position.current_price * state.quantity
