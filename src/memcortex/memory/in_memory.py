"""In-process ``MemoryStore`` backed by a plain dict.

Nothing is persisted.  Relevance is Jaccard similarity over lowercased
whitespace tokens, which is crude but deterministic, so the store doubles as
the test double for the scoring and lifecycle engines and as the backend of
the CLI.
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from datetime import datetime, timedelta, timezone

from memcortex.exceptions import MemoryNotFoundError
from memcortex.memory.base import (
    CleanupResult,
    HealthResult,
    MemoryMetadata,
    MemoryResult,
    MemoryStats,
    MemoryTier,
    RecallOptions,
)

logger = logging.getLogger(__name__)

BACKEND_NAME = "memory"

#: Minimum similarity for two records to count as related.
RELATED_SIMILARITY = 0.2
#: Expired ephemeral records reinforced at least this often are promoted
#: instead of deleted.
CLEANUP_PROMOTION_REINFORCEMENTS = 2


class InMemoryMemoryStore:
    """Dict-backed implementation of the ``MemoryStore`` protocol.

    Args:
        ephemeral_hours: Expiry applied by ``store`` to ephemeral records
            that arrive without one.
        silent_days: Expiry window for silent records, both on ``store``
            and when ``cleanup`` promotes a record.
    """

    def __init__(self, ephemeral_hours: int = 72, silent_days: int = 30) -> None:
        self.ephemeral_hours = ephemeral_hours
        self.silent_days = silent_days
        self._records: dict[str, MemoryResult] = {}
        self._initialized = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        self._initialized = True

    async def shutdown(self) -> None:
        self._initialized = False

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def store(self, content: str, metadata: MemoryMetadata) -> str:
        """Persist a record and return its generated id.

        Enforces the expiry invariant: explicit records never carry an
        ``expires_at``; expiring tiers get a default one if it is missing.
        """
        memory_id = str(uuid.uuid4())
        self._records[memory_id] = MemoryResult(
            id=memory_id,
            content=content,
            metadata=self._normalize(metadata),
        )
        logger.debug("Stored %s memory %s", metadata.tier.value, memory_id)
        return memory_id

    async def recall(self, query: str, options: RecallOptions) -> list[MemoryResult]:
        """Return records sharing tokens with ``query``, most similar first."""
        results: list[MemoryResult] = []
        for record in self._records.values():
            metadata = record.metadata
            if options.tier is not None and metadata.tier is not options.tier:
                continue
            if options.min_score is not None and metadata.score < options.min_score:
                continue

            relevance = _jaccard_similarity(query, record.content)
            if relevance <= 0.0:
                continue
            results.append(_with_relevance(record, relevance))

        results.sort(key=lambda r: r.relevance_score, reverse=True)
        return results[: options.limit]

    async def list(self, limit: int = 50, tier: MemoryTier | None = None) -> list[MemoryResult]:
        records = [
            _with_relevance(record, 0.0)
            for record in self._records.values()
            if tier is None or record.metadata.tier is tier
        ]
        records.sort(key=lambda r: r.metadata.created_at, reverse=True)
        return records[:limit]

    async def update(self, memory_id: str, content: str, metadata: MemoryMetadata) -> None:
        if memory_id not in self._records:
            raise MemoryNotFoundError(
                f"Memory not found: {memory_id}", backend=BACKEND_NAME, memory_id=memory_id
            )
        self._records[memory_id] = MemoryResult(
            id=memory_id,
            content=content,
            metadata=self._normalize(metadata),
        )

    async def forget(self, memory_id: str) -> None:
        self._records.pop(memory_id, None)

    # ------------------------------------------------------------------
    # Graph-ish queries
    # ------------------------------------------------------------------

    async def get_related(self, memory_id: str, depth: int = 1) -> list[MemoryResult]:
        """Breadth-first walk over records that are similar or share a tag.

        Two records are neighbours when their Jaccard similarity is at least
        ``RELATED_SIMILARITY`` or they have a tag in common.  The seed record
        itself is never returned.

        Raises:
            MemoryNotFoundError: If ``memory_id`` does not exist.
        """
        seed = self._records.get(memory_id)
        if seed is None:
            raise MemoryNotFoundError(
                f"Memory not found: {memory_id}", backend=BACKEND_NAME, memory_id=memory_id
            )

        visited = {memory_id}
        related: list[MemoryResult] = []
        frontier: deque[tuple[MemoryResult, int]] = deque([(seed, 0)])

        while frontier:
            current, level = frontier.popleft()
            if level >= depth:
                continue
            for record in self._records.values():
                if record.id in visited:
                    continue
                similarity = _jaccard_similarity(current.content, record.content)
                shares_tag = bool(set(current.metadata.tags) & set(record.metadata.tags))
                if similarity >= RELATED_SIMILARITY or shares_tag:
                    visited.add(record.id)
                    related.append(_with_relevance(record, similarity))
                    frontier.append((record, level + 1))

        return related

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def cleanup(self) -> CleanupResult:
        """Delete expired records; promote expired, well-reinforced ephemerals.

        An expired ephemeral record reinforced at least
        ``CLEANUP_PROMOTION_REINFORCEMENTS`` times becomes silent with a
        fresh silent window instead of being deleted.
        """
        now = datetime.now(timezone.utc)
        deleted = 0
        upgraded = 0

        for memory_id, record in tuple(self._records.items()):
            metadata = record.metadata
            if not metadata.is_expired(now):
                continue

            if (
                metadata.tier is MemoryTier.EPHEMERAL
                and metadata.reinforcement_count >= CLEANUP_PROMOTION_REINFORCEMENTS
            ):
                record.metadata = metadata.copy(
                    tier=MemoryTier.SILENT,
                    expires_at=now + timedelta(days=self.silent_days),
                )
                upgraded += 1
            else:
                del self._records[memory_id]
                deleted += 1

        if deleted or upgraded:
            logger.debug("In-memory cleanup: deleted %d, upgraded %d", deleted, upgraded)
        return CleanupResult(deleted=deleted, upgraded=upgraded)

    async def health_check(self) -> HealthResult:
        return HealthResult(
            healthy=True,
            backend=BACKEND_NAME,
            details={"records": len(self._records), "initialized": self._initialized},
        )

    async def get_stats(self) -> MemoryStats:
        """Counts per tier plus the oldest and newest creation times."""
        by_tier = {tier: 0 for tier in MemoryTier}
        for record in self._records.values():
            by_tier[record.metadata.tier] += 1

        created = [record.metadata.created_at for record in self._records.values()]
        return MemoryStats(
            total_count=len(self._records),
            by_tier=by_tier,
            oldest_memory=min(created) if created else None,
            newest_memory=max(created) if created else None,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, memory_id: str) -> bool:
        return memory_id in self._records

    def _normalize(self, metadata: MemoryMetadata) -> MemoryMetadata:
        if not metadata.tier.expires:
            return metadata.copy(expires_at=None)
        if metadata.expires_at is not None:
            return metadata.copy()
        if metadata.tier is MemoryTier.SILENT:
            lifetime = timedelta(days=self.silent_days)
        else:
            lifetime = timedelta(hours=self.ephemeral_hours)
        return metadata.copy(expires_at=metadata.created_at + lifetime)


# =====================================================================
# Module-level helpers
# =====================================================================


def _with_relevance(record: MemoryResult, relevance: float) -> MemoryResult:
    # Callers must go through update() to change a stored record.
    return MemoryResult(
        id=record.id,
        content=record.content,
        metadata=record.metadata.copy(),
        relevance_score=relevance,
    )


def _jaccard_similarity(text_a: str, text_b: str) -> float:
    """Jaccard similarity of the lowercased whitespace token sets.

    Returns:
        A float in [0, 1].  Empty input on either side gives 0.0.
    """
    tokens_a = set(text_a.lower().split())
    tokens_b = set(text_b.lower().split())
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)
