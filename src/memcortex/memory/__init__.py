"""Memory records, the storage contract and the in-process store.

Tiers:
    - **Explicit**: permanent; the user asked for it or it scored high.
    - **Silent**: kept for ``default_silent_days``, promoted by
      reinforcement.
    - **Ephemeral**: kept for ``default_ephemeral_hours``, deleted on
      expiry unless reinforced.

Storage backends implement the ``MemoryStore`` protocol.  The lifecycle
engine lives in ``memcortex.memory.lifecycle`` and the host hooks in
``memcortex.memory.hooks``; both are importable from the top-level package.

Usage::

    from memcortex.memory import InMemoryMemoryStore, MemoryMetadata, MemoryTier

    store = InMemoryMemoryStore()
    memory_id = await store.store("prefers dark mode", MemoryMetadata(MemoryTier.EXPLICIT, 9))
"""

from memcortex.memory.base import (
    CleanupResult,
    HealthResult,
    MemoryMetadata,
    MemoryResult,
    MemorySource,
    MemoryStats,
    MemoryStore,
    MemoryTier,
    RecallOptions,
    ReinforcementResult,
)
from memcortex.memory.in_memory import InMemoryMemoryStore

__all__ = [
    "MemoryTier",
    "MemorySource",
    "MemoryMetadata",
    "MemoryResult",
    "MemoryStore",
    "RecallOptions",
    "HealthResult",
    "CleanupResult",
    "ReinforcementResult",
    "MemoryStats",
    "InMemoryMemoryStore",
]
