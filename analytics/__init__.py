"""
Analytics package initialization.

Exports commonly used analytics functions for convenient imports:
    from analytics import compute_totals, holdings_frame, etc.
"""

from analytics.portfolio import (
    PortfolioTotals,
    allocation_frame,
    compute_current_totals,
    compute_totals,
    holdings_frame,
    load_positions,
    position_value,
)

__all__ = [
    "PortfolioTotals",
    "allocation_frame",
    "compute_current_totals",
    "compute_totals",
    "holdings_frame",
    "load_positions",
    "position_value",
]
