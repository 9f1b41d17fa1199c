"""Core module for memcortex."""

from memcortex.core.types import (
    ConversationSegment,
    LLMProvider,
    Message,
    ModelConfig,
    RecommendedAction,
    Role,
    ScoringFactors,
    ScoringResult,
)

__all__ = [
    "ConversationSegment",
    "Role",
    "ScoringFactors",
    "ScoringResult",
    "RecommendedAction",
    "Message",
    "ModelConfig",
    "LLMProvider",
]
