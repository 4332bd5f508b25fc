"""
Price Update Job Runner.

Coordinates the scheduled refresh workflow:
1. Refresh investment and crypto quotes
2. Record one portfolio snapshot
3. Roll up snapshots older than the retention window
4. Report status

Safe to run repeatedly; an unavailable quote keeps the last known price.
"""

import logging
import sys
from datetime import datetime
from typing import NamedTuple

from data.quotes import PriceOracle
from db import init_db
from services.history_service import prune_history
from services.portfolio_service import update_all_prices


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


class JobResult(NamedTuple):
    """Result summary from a job run."""
    success: bool
    total_positions: int
    updated_positions: int
    snapshot_id: int | None
    pruned_snapshots: int
    errors: list[str]


class PriceUpdateJob:
    """
    Scheduled price update coordinator.

    Refreshes prices, appends a history snapshot and prunes old history
    with error handling and reporting.
    """

    def __init__(self, oracle: PriceOracle | None = None, prune: bool = True):
        self.oracle = oracle or PriceOracle()
        self.prune = prune

    def run(self) -> JobResult:
        """
        Run the full price update workflow.

        Returns:
            JobResult with summary.
        """
        logger.info("=" * 50)
        logger.info(f"🚀 Price Update Started at {datetime.now()}")
        logger.info("=" * 50)

        errors: list[str] = []

        try:
            result = update_all_prices(self.oracle)
        except Exception as e:
            logger.error(f"❌ Price update failed: {e}")
            return JobResult(
                success=False,
                total_positions=0,
                updated_positions=0,
                snapshot_id=None,
                pruned_snapshots=0,
                errors=[str(e)],
            )

        pruned = 0
        if self.prune:
            try:
                pruned = prune_history()
            except Exception as e:
                logger.error(f"❌ History pruning failed: {e}")
                errors.append(f"prune: {e}")

        summary = JobResult(
            success=not errors,
            total_positions=result.priced_positions,
            updated_positions=result.updated.total,
            snapshot_id=result.snapshot_id,
            pruned_snapshots=pruned,
            errors=errors,
        )

        logger.info("=" * 50)
        status = "✓" if summary.success else "✗"
        logger.info(
            f"  {status} prices: {summary.updated_positions} positions repriced, "
            f"snapshot #{summary.snapshot_id}, {summary.pruned_snapshots} snapshots pruned"
        )
        logger.info(f"  Net worth: {result.totals.total:,.2f}")
        for error in summary.errors:
            logger.warning(f"    ⚠️ {error}")
        logger.info("=" * 50)

        return summary


def run_price_update() -> int:
    """Entry point for the price update job."""
    init_db()
    job = PriceUpdateJob()
    result = job.run()

    # Return non-zero exit code if any errors
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(run_price_update())
