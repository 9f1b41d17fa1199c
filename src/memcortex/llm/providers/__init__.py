"""LLM provider implementations."""

from memcortex.llm.providers.ollama_ import OllamaProvider, is_ollama_available
from memcortex.llm.providers.openai_ import OpenAIProvider

__all__ = [
    "OllamaProvider",
    "OpenAIProvider",
    "is_ollama_available",
]
