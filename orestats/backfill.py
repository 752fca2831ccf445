"""
backfill.py - Rebuilds the per-miner aggregate tables.

miner_round_stats is derived from deployments joined with rounds, and
miner_totals from miner_round_stats. Rebuilds always run in that order.
"""

import asyncio
import logging
import time
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from orestats.storage import DeploymentRepo, StatsRepo

logger = logging.getLogger("backfill")


class BackfillService:
    """Serializes rebuilds of miner_round_stats and miner_totals."""

    def __init__(self, stats_repo: "StatsRepo", deployment_repo: "DeploymentRepo"):
        self._stats = stats_repo
        self._deployments = deployment_repo
        self._lock = asyncio.Lock()

    async def run(self) -> dict:
        """Full rebuild. Returns row counts and the orphaned deployment count."""
        async with self._lock:
            started = time.monotonic()
            orphaned = await self._deployments.count_orphaned()
            if orphaned:
                logger.warning(
                    "%d deployments reference missing rounds and are excluded", orphaned
                )
            counts = await self._stats.rebuild()
            elapsed = time.monotonic() - started
            logger.info(
                "Backfill complete: %d round stats, %d miners (%.2fs)",
                counts["round_stats"], counts["miners"], elapsed,
            )
            return {**counts, "orphaned_deployments": orphaned}

    async def refresh_round(self, round_id: int) -> List[str]:
        """Incremental update after one round settles."""
        async with self._lock:
            pubkeys = await self._stats.refresh_round(round_id)
            logger.info("Refreshed round %d (%d miners)", round_id, len(pubkeys))
            return pubkeys
