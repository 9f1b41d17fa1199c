"""Memory lifecycle -- expiry sweeps and reinforcement-driven promotion.

The ``MemoryLifecycle`` provides two independent, idempotent operations
meant to be run periodically (heartbeat, cron):

1. **Cleanup**: delegated to the store's ``cleanup()``, which deletes
   expired records and promotes reinforced ephemeral ones.  The engine
   only logs and reports the counts.
2. **Reinforcement**: engine-owned.  Every recent ephemeral record that
   has at least one related record is promoted to silent.

Neither operation ever raises for a store failure.  A crash mid-sweep
leaves some records promoted and others not, which is fine because a
re-run picks up where the last one stopped.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from memcortex.config.scoring import DEFAULT_SCORING_CONFIG, ScoringConfig
from memcortex.memory.base import (
    CleanupResult,
    MemoryResult,
    MemoryStore,
    MemoryTier,
    ReinforcementResult,
)

logger = logging.getLogger(__name__)

#: Maximum ephemeral records examined per reinforcement sweep.
REINFORCEMENT_BATCH_SIZE = 50
#: Graph depth used when looking for reinforcing neighbours.
REINFORCEMENT_DEPTH = 1


class MemoryLifecycle:
    """Tier lifecycle management against a storage collaborator.

    Args:
        store: The ``MemoryStore`` whose records this engine maintains.
        config: Scoring configuration; its silent window sets the new
            expiry of promoted records.  Replaced wholesale, never mutated.
        batch_size: Ephemeral records examined per reinforcement sweep.

    Example::

        lifecycle = MemoryLifecycle(store)
        await lifecycle.cleanup_expired_memories()
        await lifecycle.process_reinforcements()
    """

    def __init__(
        self,
        store: MemoryStore,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        batch_size: int = REINFORCEMENT_BATCH_SIZE,
    ) -> None:
        self.store = store
        self.config = config
        self.batch_size = batch_size

    # ==================================================================
    # Cleanup
    # ==================================================================

    async def cleanup_expired_memories(self) -> CleanupResult:
        """Run the store's expiry sweep.

        Returns:
            The store's ``CleanupResult`` unchanged, or zero counts if the
            store failed.
        """
        logger.info("Running cleanup of expired memories")
        try:
            result = await self.store.cleanup()
        except Exception:
            logger.exception("Memory cleanup failed")
            return CleanupResult()

        logger.info(
            "Cleanup complete: deleted %d, upgraded %d", result.deleted, result.upgraded
        )
        return result

    # ==================================================================
    # Reinforcement
    # ==================================================================

    async def process_reinforcements(self) -> ReinforcementResult:
        """Promote reinforced ephemeral records to silent.

        Each record is handled in isolation: a failure on one record is
        logged and the sweep moves on to the next.

        Returns:
            ``ReinforcementResult``; ``downgraded`` is always 0.
        """
        logger.info("Processing memory reinforcements")

        try:
            candidates = await self.store.list(self.batch_size, tier=MemoryTier.EPHEMERAL)
        except Exception:
            logger.exception("Failed to list ephemeral memories")
            return ReinforcementResult()

        upgraded = 0
        downgraded = 0

        for memory in candidates:
            try:
                if await self._promote_if_reinforced(memory):
                    upgraded += 1
                elif self._should_downgrade(memory):
                    downgraded += 1
            except Exception:
                logger.exception("Failed to process reinforcement for memory %s", memory.id)

        logger.info(
            "Reinforcement processing complete: +%d upgraded, -%d downgraded",
            upgraded,
            downgraded,
        )
        return ReinforcementResult(upgraded=upgraded, downgraded=downgraded)

    async def _promote_if_reinforced(self, memory: MemoryResult) -> bool:
        # Only ever moves a record upward.
        if memory.metadata.tier.rank >= MemoryTier.SILENT.rank:
            return False

        related = await self.store.get_related(memory.id, REINFORCEMENT_DEPTH)
        if not related:
            return False

        now = datetime.now(timezone.utc)
        metadata = memory.metadata.copy(
            tier=MemoryTier.SILENT,
            expires_at=now + timedelta(hours=self.config.silent_hours),
            reinforcement_count=memory.metadata.reinforcement_count + 1,
            last_reinforced=now,
        )
        await self.store.update(memory.id, memory.content, metadata)
        logger.info("Upgraded ephemeral to silent: %s (%d related)", memory.id, len(related))
        return True

    def _should_downgrade(self, memory: MemoryResult) -> bool:
        """Extension point for staleness-driven downgrades.

        No downgrade trigger is defined yet, so nothing is ever downgraded
        and ``downgraded_from`` stays unset.
        """
        return False

    # ==================================================================
    # Maintenance
    # ==================================================================

    async def run_maintenance(self) -> tuple[CleanupResult, ReinforcementResult]:
        """Cleanup followed by reinforcement, as run on every heartbeat.

        Does nothing while scoring is disabled.
        """
        if not self.config.enabled:
            logger.debug("Scoring disabled, skipping maintenance")
            return CleanupResult(), ReinforcementResult()

        cleanup = await self.cleanup_expired_memories()
        reinforcements = await self.process_reinforcements()
        return cleanup, reinforcements
