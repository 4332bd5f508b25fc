"""
Jobs package initialization.

Exports job runners for scheduled tasks.
"""

from jobs.price_update import (
    JobResult,
    PriceUpdateJob,
    run_price_update,
)

__all__ = [
    "JobResult",
    "PriceUpdateJob",
    "run_price_update",
]
