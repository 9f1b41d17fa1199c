"""OpenAI backend for the external scoring model.

Works with api.openai.com and with any server that speaks the chat
completions API (vLLM, LM Studio, OpenRouter, ...) via ``base_url``.
The ``openai`` SDK is an optional extra and is imported on first use.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from memcortex.exceptions import (
    AuthenticationError,
    LLMConnectionError,
    LLMError,
    LLMRequestError,
    RateLimitError,
)
from memcortex.llm.base import BaseLLMProvider, LLMResponse

if TYPE_CHECKING:
    from memcortex.core.types import Message, ModelConfig


class OpenAIProvider(BaseLLMProvider):
    """Chat-completions backend.

    Example:
        provider = OpenAIProvider()  # reads OPENAI_API_KEY
        scorer = ExternalModelScorer(provider, ExternalModelConfig(model="gpt-4o-mini"))

    Args:
        api_key: API key; falls back to ``OPENAI_API_KEY``.  Optional when
            ``base_url`` points at a local server.
        base_url: Alternative OpenAI-compatible endpoint.
        max_retries: SDK-level retries.  Scoring already falls back to
            heuristics, so the default fails fast.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        max_retries: int = 0,
    ):
        self._api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self._base_url = base_url
        self._max_retries = max_retries
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is None:
            try:
                import openai
            except ImportError:
                raise LLMError(
                    "The openai package is required for the OpenAI scoring backend. "
                    "Install with: pip install memcortex[openai]",
                    provider="openai",
                )

            if not self._api_key and self._base_url is None:
                raise AuthenticationError(
                    "No OpenAI API key: set OPENAI_API_KEY or MEMCORTEX_EXTERNAL_API_KEY",
                    provider="openai",
                )

            self._client = openai.AsyncOpenAI(
                # Local servers ignore the key but the SDK insists on one.
                api_key=self._api_key or "unused",
                base_url=self._base_url,
                max_retries=self._max_retries,
            )

        return self._client

    async def generate(
        self,
        messages: list[Message],
        config: ModelConfig,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        client = self._get_client()

        chat = [{"role": "system", "content": system_prompt}] if system_prompt else []
        chat.extend({"role": msg.role, "content": msg.content} for msg in messages)
        request: dict[str, Any] = {
            "model": config.model_id,
            "messages": chat,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        import openai

        try:
            completion = await client.chat.completions.create(**request)
        except openai.AuthenticationError as e:
            raise AuthenticationError(
                f"OpenAI rejected the API key: {e}", status_code=e.status_code, provider="openai"
            )
        except openai.RateLimitError as e:
            raise RateLimitError(
                f"OpenAI rate limit exceeded: {e}", status_code=e.status_code, provider="openai"
            )
        except openai.APIStatusError as e:
            raise LLMRequestError(
                f"OpenAI returned HTTP {e.status_code}: {e.message}",
                status_code=e.status_code,
                provider="openai",
                model=config.model_id,
            )
        except openai.APIConnectionError as e:
            raise LLMConnectionError(
                f"Could not reach {self._base_url or 'OpenAI'}: {e}", provider="openai"
            )
        except openai.APIError as e:
            raise LLMError(f"OpenAI API error: {e}", provider="openai", model=config.model_id)

        if not completion.choices:
            raise LLMError("OpenAI returned no choices", provider="openai", model=config.model_id)

        choice = completion.choices[0]
        usage = completion.usage
        return LLMResponse(
            content=choice.message.content or "",
            model_id=completion.model,
            truncated=choice.finish_reason == "length",
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            raw_response=completion,
        )

    @property
    def provider_name(self) -> str:
        return "openai"
