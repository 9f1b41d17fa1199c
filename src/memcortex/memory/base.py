"""Record types and the storage collaborator contract.

This module defines the foundational types (MemoryTier, MemoryMetadata,
MemoryResult) and the ``MemoryStore`` protocol that every storage backend
must implement for the scoring and lifecycle engine:

- Explicit: permanent, never expires.
- Silent: medium-term, expires unless reinforced.
- Ephemeral: short-term, auto-expiring.

The engine never reaches into backend-specific types.  Anything it needs
from a graph database or vector store goes through ``MemoryStore``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class MemoryTier(Enum):
    """Enumeration of retention tiers.

    Each tier has different retention semantics:
    - EXPLICIT: kept forever, the user asked for it or it scored high.
    - SILENT: kept for weeks, promoted or refreshed by reinforcement.
    - EPHEMERAL: kept for days, deleted on expiry unless reinforced.
    """

    EXPLICIT = "explicit"
    SILENT = "silent"
    EPHEMERAL = "ephemeral"

    @property
    def rank(self) -> int:
        """Ordering used for upward-only promotion (ephemeral < silent < explicit)."""
        return _TIER_RANK[self]

    @property
    def expires(self) -> bool:
        """Whether records in this tier carry an ``expires_at``."""
        return self is not MemoryTier.EXPLICIT


_TIER_RANK = {
    MemoryTier.EPHEMERAL: 0,
    MemoryTier.SILENT: 1,
    MemoryTier.EXPLICIT: 2,
}


class MemorySource(Enum):
    """Where a stored memory came from."""

    AUTO_CAPTURE = "auto_capture"
    USER_EXPLICIT = "user_explicit"
    AGENT_AUTO = "agent_auto"


@dataclass
class MemoryMetadata:
    """Metadata persisted alongside every memory record.

    Attributes:
        tier: Retention tier of the record.
        score: Importance score in [0, 10].
        source: Origin of the record.
        created_at: UTC timestamp of creation.
        expires_at: UTC expiry; set if and only if the tier expires.
        reinforcement_count: Number of times the record was reinforced.
            Never decreases.
        last_reinforced: UTC timestamp of the latest reinforcement.
        downgraded_from: Previous score if the record was ever downgraded.
            Reserved; nothing in the engine downgrades yet.
        session_id: Conversation session that produced the record.
        tags: Freeform labels for categorical retrieval.
    """

    tier: MemoryTier
    score: int
    source: MemorySource = MemorySource.AUTO_CAPTURE
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    expires_at: datetime | None = None
    reinforcement_count: int = 0
    last_reinforced: datetime | None = None
    downgraded_from: int | None = None
    session_id: str | None = None
    tags: list[str] = field(default_factory=list)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return ``True`` once ``expires_at`` lies in the past."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expires_at < now

    def copy(self, **changes: Any) -> MemoryMetadata:
        """Return a copy with ``changes`` applied (tags list is not shared)."""
        changes.setdefault("tags", list(self.tags))
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # Serialization helpers for backend storage
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize the metadata to a JSON-compatible dictionary."""
        return {
            "tier": self.tier.value,
            "score": self.score,
            "source": self.source.value,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "reinforcement_count": self.reinforcement_count,
            "last_reinforced": self.last_reinforced.isoformat() if self.last_reinforced else None,
            "downgraded_from": self.downgraded_from,
            "session_id": self.session_id,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MemoryMetadata:
        """Deserialize metadata previously produced by ``to_dict``."""
        expires_at = data.get("expires_at")
        last_reinforced = data.get("last_reinforced")
        return cls(
            tier=MemoryTier(data["tier"]),
            score=int(data.get("score", 0)),
            source=MemorySource(data.get("source", MemorySource.AUTO_CAPTURE.value)),
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            reinforcement_count=data.get("reinforcement_count", 0),
            last_reinforced=datetime.fromisoformat(last_reinforced) if last_reinforced else None,
            downgraded_from=data.get("downgraded_from"),
            session_id=data.get("session_id"),
            tags=data.get("tags", []),
        )

    def to_json(self) -> str:
        """Serialize the metadata to a JSON string."""
        return json.dumps(self.to_dict(), default=str)


@dataclass
class MemoryResult:
    """A record returned by ``recall``, ``list`` or ``get_related``."""

    id: str
    content: str
    metadata: MemoryMetadata
    relevance_score: float = 0.0
    """Similarity to the query in [0, 1]; 0.0 for non-query listings."""


@dataclass(frozen=True)
class RecallOptions:
    """Options for ``MemoryStore.recall``."""

    limit: int = 10
    tier: MemoryTier | None = None
    min_score: float | None = None


@dataclass(frozen=True)
class HealthResult:
    """Result of a backend health check."""

    healthy: bool
    backend: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CleanupResult:
    """Counts reported by an expiry sweep."""

    deleted: int = 0
    upgraded: int = 0


@dataclass(frozen=True)
class ReinforcementResult:
    """Counts reported by a reinforcement sweep."""

    upgraded: int = 0
    downgraded: int = 0


@dataclass(frozen=True)
class MemoryStats:
    """Aggregate statistics about a store's contents."""

    total_count: int
    by_tier: dict[MemoryTier, int]
    oldest_memory: datetime | None = None
    newest_memory: datetime | None = None


@runtime_checkable
class MemoryStore(Protocol):
    """Protocol for the pluggable storage collaborator.

    All methods are async.  Implementations must make ``update`` and
    ``cleanup`` idempotent: re-promoting an already-silent record is a
    no-op, not an error.  Failures are reported by raising a
    ``MemoryStoreError`` subclass; the engine absorbs them.

    Example:
        store = InMemoryMemoryStore()
        await store.initialize()
        memory_id = await store.store("likes dark mode", metadata)
        hits = await store.recall("dark mode", RecallOptions(limit=5))
    """

    async def initialize(self) -> None:
        """Open connections.  Safe to call more than once."""
        ...

    async def shutdown(self) -> None:
        """Release connections.  Safe to call more than once."""
        ...

    async def store(self, content: str, metadata: MemoryMetadata) -> str:
        """Persist a new record and return its id."""
        ...

    async def recall(self, query: str, options: RecallOptions) -> list[MemoryResult]:
        """Search records similar to ``query``, best match first."""
        ...

    async def list(self, limit: int = 50, tier: MemoryTier | None = None) -> list[MemoryResult]:
        """List records without query filtering, most recent first."""
        ...

    async def update(self, memory_id: str, content: str, metadata: MemoryMetadata) -> None:
        """Replace a record's content and metadata.

        Raises:
            MemoryNotFoundError: If ``memory_id`` does not exist.
        """
        ...

    async def forget(self, memory_id: str) -> None:
        """Delete a record."""
        ...

    async def get_related(self, memory_id: str, depth: int = 1) -> list[MemoryResult]:
        """Return graph or semantic neighbours of a record."""
        ...

    async def cleanup(self) -> CleanupResult:
        """Delete expired records and promote reinforced ones."""
        ...

    async def health_check(self) -> HealthResult:
        """Report whether the backend is reachable."""
        ...
