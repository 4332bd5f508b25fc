"""
Services layer for business logic orchestration.

Provides reusable services that can be consumed by the CLI, Streamlit, jobs, etc.
"""

from services.asset_service import (
    AssetResult,
    clear_portfolio,
    create_account,
    create_cash,
    create_crypto,
    create_investment,
    delete_position,
    get_position,
    list_positions,
    print_asset_result,
    update_position,
)
from services.history_service import (
    get_history,
    history_frame,
    prune_history,
    record_snapshot,
)
from services.portfolio_service import (
    PortfolioView,
    PriceUpdateResult,
    get_portfolio,
    update_all_prices,
)
from services.position_service import (
    OversellError,
    PositionState,
    apply_to_state,
    replay,
)
from services.transaction_service import (
    TransactionResult,
    buy,
    deposit,
    list_transactions,
    print_transaction_result,
    record_dividend,
    record_transaction,
    replay_position,
    sell,
    withdraw,
)
from services.valuation_service import (
    RefreshSummary,
    refresh_all_prices,
    refresh_prices,
)

__all__ = [
    # Asset service
    "AssetResult",
    "clear_portfolio",
    "create_account",
    "create_cash",
    "create_crypto",
    "create_investment",
    "delete_position",
    "get_position",
    "list_positions",
    "print_asset_result",
    "update_position",
    # History service
    "get_history",
    "history_frame",
    "prune_history",
    "record_snapshot",
    # Portfolio service
    "PortfolioView",
    "PriceUpdateResult",
    "get_portfolio",
    "update_all_prices",
    # Position ledger
    "OversellError",
    "PositionState",
    "apply_to_state",
    "replay",
    # Transaction service
    "TransactionResult",
    "buy",
    "deposit",
    "list_transactions",
    "print_transaction_result",
    "record_dividend",
    "record_transaction",
    "replay_position",
    "sell",
    "withdraw",
    # Valuation service
    "RefreshSummary",
    "refresh_all_prices",
    "refresh_prices",
]
