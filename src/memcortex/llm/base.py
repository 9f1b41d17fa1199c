"""Completion backends for the external scoring model.

A scoring request is a single system prompt plus a single transcript, and
the answer must be one JSON object.  Providers therefore only implement one
non-streaming call; ``json_mode`` asks the backend to constrain its output
to JSON where it can (OpenAI ``response_format``, Ollama ``format``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from memcortex.core.types import Message, ModelConfig


@dataclass
class LLMResponse:
    """One completion returned by a provider."""

    content: str
    model_id: str = ""

    truncated: bool = False
    """The reply hit ``max_tokens``; its JSON is almost certainly incomplete."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    raw_response: Any = None


class BaseLLMProvider(ABC):
    """Abstract base class for completion backends.

    Implementations:
        - OpenAIProvider (OpenAI and OpenAI-compatible servers)
        - OllamaProvider (local models)
    """

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        config: ModelConfig,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Run one completion.

        Args:
            messages: Conversation sent after the system prompt.
            config: Model id and sampling settings.
            system_prompt: Optional system prompt.
            json_mode: Ask the backend for a bare JSON object.

        Raises:
            LLMConnectionError: The endpoint could not be reached.
            LLMRequestError: The endpoint answered with an error status.
            LLMError: Any other provider failure.
        """
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short backend name used in logs and errors."""
        ...
