"""Pytest configuration and fixtures for memcortex tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from memcortex.llm.base import BaseLLMProvider, LLMResponse
from memcortex.memory.base import (
    CleanupResult,
    HealthResult,
    MemoryMetadata,
    MemoryResult,
    MemoryTier,
    RecallOptions,
)


class FakeStore:
    """Scriptable ``MemoryStore`` that records every call.

    Each operation either returns its canned value or raises the configured
    error.  ``related_errors`` maps record ids to errors raised by
    ``get_related`` for that id only.
    """

    def __init__(
        self,
        recall_results: list[MemoryResult] | None = None,
        recall_error: Exception | None = None,
        records: list[MemoryResult] | None = None,
        list_error: Exception | None = None,
        related: dict[str, list[MemoryResult]] | None = None,
        related_errors: dict[str, Exception] | None = None,
        cleanup_result: CleanupResult | None = None,
        cleanup_error: Exception | None = None,
        store_error: Exception | None = None,
    ) -> None:
        self.recall_results = recall_results or []
        self.recall_error = recall_error
        self.records = records or []
        self.list_error = list_error
        self.related = related or {}
        self.related_errors = related_errors or {}
        self.cleanup_result = cleanup_result or CleanupResult()
        self.cleanup_error = cleanup_error
        self.store_error = store_error

        self.recall_calls: list[tuple[str, RecallOptions]] = []
        self.list_calls: list[tuple[int, MemoryTier | None]] = []
        self.related_calls: list[tuple[str, int]] = []
        self.updates: list[tuple[str, str, MemoryMetadata]] = []
        self.stored: list[tuple[str, MemoryMetadata]] = []
        self.cleanup_calls = 0

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def store(self, content: str, metadata: MemoryMetadata) -> str:
        if self.store_error:
            raise self.store_error
        self.stored.append((content, metadata))
        return f"mem-{len(self.stored)}"

    async def recall(self, query: str, options: RecallOptions) -> list[MemoryResult]:
        self.recall_calls.append((query, options))
        if self.recall_error:
            raise self.recall_error
        return self.recall_results[: options.limit]

    async def list(self, limit: int = 50, tier: MemoryTier | None = None) -> list[MemoryResult]:
        self.list_calls.append((limit, tier))
        if self.list_error:
            raise self.list_error
        return [r for r in self.records if tier is None or r.metadata.tier is tier][:limit]

    async def update(self, memory_id: str, content: str, metadata: MemoryMetadata) -> None:
        self.updates.append((memory_id, content, metadata))

    async def forget(self, memory_id: str) -> None:
        pass

    async def get_related(self, memory_id: str, depth: int = 1) -> list[MemoryResult]:
        self.related_calls.append((memory_id, depth))
        if memory_id in self.related_errors:
            raise self.related_errors[memory_id]
        return self.related.get(memory_id, [])

    async def cleanup(self) -> CleanupResult:
        self.cleanup_calls += 1
        if self.cleanup_error:
            raise self.cleanup_error
        return self.cleanup_result

    async def health_check(self) -> HealthResult:
        return HealthResult(healthy=True, backend="fake")


class FakeProvider(BaseLLMProvider):
    """LLM provider returning a fixed reply, raising, or stalling."""

    def __init__(
        self,
        content: str = "",
        error: Exception | None = None,
        delay: float = 0.0,
        truncated: bool = False,
    ) -> None:
        self.content = content
        self.truncated = truncated
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def generate(self, messages, config, system_prompt=None, json_mode=False) -> LLMResponse:
        self.calls.append(
            {
                "messages": messages,
                "config": config,
                "system_prompt": system_prompt,
                "json_mode": json_mode,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return LLMResponse(
            content=self.content, model_id=config.model_id, truncated=self.truncated
        )

    @property
    def provider_name(self) -> str:
        return "fake"


def make_record(
    memory_id: str,
    tier: MemoryTier = MemoryTier.EPHEMERAL,
    content: str | None = None,
    relevance: float = 0.0,
    reinforcement_count: int = 0,
) -> MemoryResult:
    """Build a ``MemoryResult`` with consistent metadata for ``tier``."""
    now = datetime.now(timezone.utc)
    expires_at = None
    if tier is MemoryTier.EPHEMERAL:
        expires_at = now + timedelta(hours=72)
    elif tier is MemoryTier.SILENT:
        expires_at = now + timedelta(days=30)
    return MemoryResult(
        id=memory_id,
        content=content or f"memory {memory_id}",
        metadata=MemoryMetadata(
            tier=tier,
            score=5,
            created_at=now,
            expires_at=expires_at,
            reinforcement_count=reinforcement_count,
        ),
        relevance_score=relevance,
    )


@pytest.fixture
def fake_store() -> FakeStore:
    """An empty scriptable store."""
    return FakeStore()


@pytest.fixture(autouse=True)
def reset_global_settings(monkeypatch):
    """Isolate tests from the module-level settings cache."""
    from memcortex.config import settings as settings_module

    monkeypatch.setattr(settings_module, "_settings", None)
