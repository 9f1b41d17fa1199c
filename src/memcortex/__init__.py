"""
memcortex - importance scoring and memory lifecycle for agent memory.

Decides, without human curation, whether a piece of conversation is kept
forever (explicit), kept for weeks (silent) or dropped within days
(ephemeral), and maintains those tiers over time through expiry and
reinforcement.  Storage is pluggable through the ``MemoryStore`` protocol.

Quick Start:
    from memcortex import ConversationSegment, InMemoryMemoryStore, MemoryScorer

    scorer = MemoryScorer(InMemoryMemoryStore())
    result = await scorer.score_conversation(
        [ConversationSegment.user("I really love dark mode, please remember this forever")]
    )
    print(result.tier)                # MemoryTier.EXPLICIT
    print(result.recommended_action)  # RecommendedAction.STORE_EXPLICIT

    # Periodically
    await scorer.cleanup_expired_memories()
    await scorer.process_reinforcements()

Installation:
    pip install memcortex
    pip install memcortex[openai]  # External scoring model
    pip install memcortex[yaml]    # YAML settings files
"""

from memcortex.config.scoring import DEFAULT_SCORING_CONFIG, ExternalModelConfig, ScoringConfig
from memcortex.config.settings import CortexSettings, configure, get_settings
from memcortex.core.types import (
    ConversationSegment,
    LLMProvider,
    RecommendedAction,
    Role,
    ScoringFactors,
    ScoringResult,
)
from memcortex.exceptions import (
    ConfigurationError,
    ExternalModelError,
    LLMError,
    MemCortexError,
    MemoryNotFoundError,
    MemoryStoreError,
)
from memcortex.memory import (
    CleanupResult,
    InMemoryMemoryStore,
    MemoryMetadata,
    MemoryResult,
    MemorySource,
    MemoryStore,
    MemoryTier,
    RecallOptions,
    ReinforcementResult,
)
from memcortex.memory.hooks import CaptureOutcome, MemoryCortex, extract_segments
from memcortex.memory.lifecycle import MemoryLifecycle
from memcortex.scoring import MemoryScorer, create_memory_scorer

__version__ = "0.1.0"
__all__ = [
    # Configuration
    "configure",
    "get_settings",
    "CortexSettings",
    "ScoringConfig",
    "ExternalModelConfig",
    "DEFAULT_SCORING_CONFIG",
    # Engine
    "MemoryScorer",
    "create_memory_scorer",
    "MemoryLifecycle",
    "MemoryCortex",
    "CaptureOutcome",
    "extract_segments",
    # Types
    "ConversationSegment",
    "Role",
    "ScoringFactors",
    "ScoringResult",
    "RecommendedAction",
    "LLMProvider",
    # Storage
    "MemoryStore",
    "InMemoryMemoryStore",
    "MemoryTier",
    "MemorySource",
    "MemoryMetadata",
    "MemoryResult",
    "RecallOptions",
    "CleanupResult",
    "ReinforcementResult",
    # Exceptions
    "MemCortexError",
    "ConfigurationError",
    "MemoryStoreError",
    "MemoryNotFoundError",
    "LLMError",
    "ExternalModelError",
]
