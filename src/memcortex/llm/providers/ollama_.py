"""Ollama backend for the external scoring model.

Keeps scoring local: the transcript never leaves the machine.  Talks to the
``/api/chat`` endpoint with the standard library only, running the blocking
request in the default executor.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import TYPE_CHECKING, Any

from memcortex.exceptions import LLMConnectionError, LLMError, LLMRequestError
from memcortex.llm.base import BaseLLMProvider, LLMResponse

if TYPE_CHECKING:
    from memcortex.core.types import Message, ModelConfig

DEFAULT_BASE_URL = "http://localhost:11434"
MODEL_PREFIX = "ollama/"


def is_ollama_available(base_url: str = DEFAULT_BASE_URL) -> bool:
    """Return ``True`` if ``GET /api/tags`` answers 200 within three seconds."""
    req = urllib.request.Request(f"{base_url.rstrip('/')}/api/tags", method="GET")
    try:
        with urllib.request.urlopen(req, timeout=3) as resp:
            return resp.status == 200
    except (urllib.error.URLError, OSError):
        return False


class OllamaProvider(BaseLLMProvider):
    """Scores with a model served by a local Ollama daemon.

    Args:
        base_url: Ollama server URL.
        request_timeout: Socket timeout for one request, in seconds.
        keep_alive: How long Ollama keeps the model loaded after a request
            (e.g. ``"10m"``).  ``None`` leaves the server default.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        request_timeout: float = 30.0,
        keep_alive: str | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._keep_alive = keep_alive

    def _post_json(self, path: str, payload: dict[str, Any]) -> Any:
        """POST ``payload`` and decode the JSON body (blocking)."""
        req = urllib.request.Request(
            f"{self._base_url}{path}",
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self._request_timeout) as resp:
                body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise LLMRequestError(
                f"Ollama returned HTTP {exc.code}: {detail[:200]}",
                status_code=exc.code,
                provider="ollama",
            )
        except (urllib.error.URLError, OSError) as exc:
            raise LLMConnectionError(
                f"Ollama is not reachable at {self._base_url} "
                f"(start it with: ollama serve): {exc}",
                provider="ollama",
            )

        try:
            return json.loads(body)
        except json.JSONDecodeError:
            raise LLMError(f"Ollama returned invalid JSON: {body[:200]}", provider="ollama")

    @staticmethod
    def _strip_model_prefix(model_id: str) -> str:
        """Accept ``ollama/llama3`` as well as ``llama3``."""
        if model_id.startswith(MODEL_PREFIX):
            return model_id[len(MODEL_PREFIX):]
        return model_id

    def _build_payload(
        self,
        messages: list[Message],
        config: ModelConfig,
        system_prompt: str | None,
        json_mode: bool,
    ) -> dict[str, Any]:
        chat = [{"role": "system", "content": system_prompt}] if system_prompt else []
        chat.extend({"role": msg.role, "content": msg.content} for msg in messages)

        payload: dict[str, Any] = {
            "model": self._strip_model_prefix(config.model_id),
            "messages": chat,
            "stream": False,
            "options": {"temperature": config.temperature, "num_predict": config.max_tokens},
        }
        if json_mode:
            payload["format"] = "json"
        if self._keep_alive is not None:
            payload["keep_alive"] = self._keep_alive
        return payload

    async def generate(
        self,
        messages: list[Message],
        config: ModelConfig,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        payload = self._build_payload(messages, config, system_prompt, json_mode)

        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, lambda: self._post_json("/api/chat", payload))

        if not isinstance(data, dict):
            raise LLMError(
                f"Ollama returned a {type(data).__name__} instead of an object",
                provider="ollama",
                model=payload["model"],
            )

        return LLMResponse(
            content=(data.get("message") or {}).get("content", ""),
            model_id=data.get("model", payload["model"]),
            truncated=data.get("done_reason") == "length",
            prompt_tokens=data.get("prompt_eval_count") or 0,
            completion_tokens=data.get("eval_count") or 0,
            raw_response=data,
        )

    @property
    def provider_name(self) -> str:
        return "ollama"
