"""
Core type definitions for memcortex.

This module defines the fundamental value types shared by the scorer,
the lifecycle engine and the LLM layer:
- Conversation segments fed into scoring
- Scoring factors and results
- Message types for LLM communication
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from memcortex.memory.base import MemoryTier


# =============================================================================
# Enums
# =============================================================================


class Role(Enum):
    """Speaker of a conversation segment."""

    USER = "user"
    ASSISTANT = "assistant"


class RecommendedAction(Enum):
    """What the caller should do with a scored conversation."""

    STORE_EXPLICIT = "store_explicit"
    STORE_SILENT = "store_silent"
    STORE_EPHEMERAL = "store_ephemeral"
    SKIP = "skip"


class LLMProvider(Enum):
    """Supported external scoring model providers."""

    OPENAI = "openai"
    OLLAMA = "ollama"


# =============================================================================
# Scoring
# =============================================================================


@dataclass(frozen=True)
class ConversationSegment:
    """One role-tagged span of dialogue considered for capture."""

    content: str
    role: Role = Role.USER
    timestamp: datetime | None = None

    @classmethod
    def user(cls, content: str) -> ConversationSegment:
        """Create a user segment."""
        return cls(content=content, role=Role.USER)

    @classmethod
    def assistant(cls, content: str) -> ConversationSegment:
        """Create an assistant segment."""
        return cls(content=content, role=Role.ASSISTANT)


@dataclass(frozen=True)
class ScoringFactors:
    """Seven independent signals, each normalized to [0, 10]."""

    explicit_emphasis: int = 0
    emotional_weight: int = 0
    future_utility: int = 0
    repetition: int = 0
    time_sensitivity: int = 0
    context_anchoring: int = 0
    novelty: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "explicit_emphasis": self.explicit_emphasis,
            "emotional_weight": self.emotional_weight,
            "future_utility": self.future_utility,
            "repetition": self.repetition,
            "time_sensitivity": self.time_sensitivity,
            "context_anchoring": self.context_anchoring,
            "novelty": self.novelty,
        }


@dataclass(frozen=True)
class ScoringResult:
    """Output of one scoring call.

    ``tier`` follows from ``score`` and the configured thresholds, except
    that an explicit marker ("remember this", ...) forces ``EXPLICIT`` while
    ``score`` stays the computed value.  ``recommended_action`` follows from
    ``tier``.  ``reasoning`` is for logs and UI only.
    """

    score: int
    tier: MemoryTier
    reasoning: str
    recommended_action: RecommendedAction
    expires_in_hours: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "score": self.score,
            "tier": self.tier.value,
            "reasoning": self.reasoning,
            "recommended_action": self.recommended_action.value,
        }
        if self.expires_in_hours is not None:
            data["expires_in_hours"] = self.expires_in_hours
        return data


# =============================================================================
# Messages
# =============================================================================


@dataclass
class Message:
    """A message in an LLM conversation."""

    role: Literal["system", "user", "assistant"]
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def system(cls, content: str) -> Message:
        """Create a system message."""
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        """Create a user message."""
        return cls(role="user", content=content)


@dataclass
class ModelConfig:
    """Configuration for an LLM model call."""

    provider: LLMProvider
    model_id: str
    temperature: float = 0.1
    max_tokens: int = 256
