"""LLM provider layer for memcortex."""

from memcortex.llm.base import BaseLLMProvider, LLMResponse
from memcortex.llm.factory import create_provider

__all__ = [
    "BaseLLMProvider",
    "LLMResponse",
    "create_provider",
]
