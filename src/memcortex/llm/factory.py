"""Provider selection for the external scoring model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from memcortex.core.types import LLMProvider
from memcortex.exceptions import ConfigurationError

if TYPE_CHECKING:
    from memcortex.config.scoring import ExternalModelConfig
    from memcortex.llm.base import BaseLLMProvider


def create_provider(config: ExternalModelConfig) -> BaseLLMProvider:
    """Build the LLM provider described by an ``ExternalModelConfig``.

    Providers are imported lazily so the ``openai`` extra is only needed
    when it is actually selected.

    Args:
        config: External model settings.

    Returns:
        LLM provider instance.

    Raises:
        ConfigurationError: For an unsupported provider.
    """
    if config.provider == LLMProvider.OPENAI:
        from memcortex.llm.providers.openai_ import OpenAIProvider

        return OpenAIProvider(api_key=config.api_key, base_url=config.base_url)

    if config.provider == LLMProvider.OLLAMA:
        from memcortex.llm.providers.ollama_ import DEFAULT_BASE_URL, OllamaProvider

        return OllamaProvider(
            base_url=config.base_url or DEFAULT_BASE_URL,
            request_timeout=config.timeout_seconds,
        )

    raise ConfigurationError(f"Unsupported external model provider: {config.provider}")
