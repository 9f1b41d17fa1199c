"""Tests for the auto-capture, auto-recall and heartbeat hooks."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from conftest import FakeStore

from memcortex.config.scoring import ScoringConfig
from memcortex.config.settings import CaptureSettings
from memcortex.core.types import RecommendedAction, Role, ScoringResult
from memcortex.exceptions import MemoryConnectionError
from memcortex.memory.base import MemoryMetadata, MemorySource, MemoryTier
from memcortex.memory.hooks import MemoryCortex, build_metadata, extract_segments
from memcortex.memory.in_memory import InMemoryMemoryStore
from memcortex.scoring.scorer import MemoryScorer

DARK_MODE = "I really love dark mode, please remember this forever"


# =====================================================================
# Message extraction
# =====================================================================


class TestExtractSegments:
    """Tests for ``extract_segments``."""

    def test_keeps_user_and_assistant_in_order(self):
        messages = [
            {"role": "system", "content": "You are a helpful assistant for everyone"},
            {"role": "user", "content": "Which editor theme should I pick today?"},
            {"role": "assistant", "content": "A dark theme is easier on the eyes at night"},
        ]
        segments = extract_segments(messages)

        assert [s.role for s in segments] == [Role.USER, Role.ASSISTANT]
        assert segments[0].content == "Which editor theme should I pick today?"

    def test_skips_short_and_injected(self):
        messages = [
            {"role": "user", "content": "ok"},
            {"role": "user", "content": "<memory>\nRelevant memories:\n• old fact\n</memory>"},
            {"role": "user", "content": "see <relevant-memories>x</relevant-memories> here"},
            {"role": "user", "content": "this one is long enough to keep"},
            "not a message",
        ]
        segments = extract_segments(messages)
        assert [s.content for s in segments] == ["this one is long enough to keep"]

    def test_text_blocks(self):
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "first part of text"},
                    {"type": "image", "source": "..."},
                    {"type": "text", "text": "second part here"},
                ],
            }
        ]
        [segment] = extract_segments(messages)
        assert segment.content == "first part of text second part here"

    def test_most_recent_messages_truncated(self):
        messages = [
            {"role": "user", "content": f"message number {i} " + "x" * 600} for i in range(20)
        ]
        segments = extract_segments(messages, max_messages=3, max_chars=500)

        assert len(segments) == 3
        assert segments[0].content.startswith("message number 17")
        assert segments[-1].content.startswith("message number 19")
        assert all(len(s.content) == 500 for s in segments)


class TestBuildMetadata:
    """Tests for ``build_metadata``."""

    def test_expiring_result(self):
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        result = ScoringResult(
            score=3,
            tier=MemoryTier.EPHEMERAL,
            reasoning="r",
            recommended_action=RecommendedAction.STORE_EPHEMERAL,
            expires_in_hours=72,
        )
        metadata = build_metadata(result, session_id="s1", now=now)

        assert metadata.expires_at == now + timedelta(hours=72)
        assert metadata.created_at == now
        assert metadata.session_id == "s1"
        assert metadata.source is MemorySource.AUTO_CAPTURE

    def test_explicit_result_is_permanent(self):
        result = ScoringResult(
            score=9,
            tier=MemoryTier.EXPLICIT,
            reasoning="r",
            recommended_action=RecommendedAction.STORE_EXPLICIT,
        )
        assert build_metadata(result).expires_at is None


# =====================================================================
# Facade
# =====================================================================


class TestCapture:
    """Tests for ``MemoryCortex.capture``."""

    async def test_stores_scored_conversation(self):
        store = InMemoryMemoryStore()
        cortex = MemoryCortex(MemoryScorer(store))

        outcome = await cortex.capture([{"role": "user", "content": DARK_MODE}], session_id="s1")

        assert outcome is not None
        assert outcome.result.tier is MemoryTier.EXPLICIT
        assert outcome.notify_user is True
        [record] = await store.list()
        assert record.id == outcome.memory_id
        assert record.content == f"[EXPLICIT] Session s1\nuser: {DARK_MODE}"
        assert record.metadata.expires_at is None

    async def test_expiring_capture_sets_expiry(self):
        store = FakeStore()
        cortex = MemoryCortex(MemoryScorer(store))

        outcome = await cortex.capture(
            [{"role": "user", "content": "We discussed the quarterly numbers at length"}]
        )

        content, metadata = store.stored[0]
        assert content.startswith("[EPHEMERAL] Session unknown\n")
        assert metadata.tier is MemoryTier.EPHEMERAL
        assert metadata.expires_at == metadata.created_at + timedelta(hours=72)
        assert outcome.notify_user is False

    async def test_nothing_to_capture(self, fake_store: FakeStore):
        cortex = MemoryCortex(MemoryScorer(fake_store))
        assert await cortex.capture([{"role": "user", "content": "thanks"}]) is None
        assert fake_store.stored == []

    async def test_store_failure_is_swallowed(self):
        store = FakeStore(store_error=MemoryConnectionError("down"))
        cortex = MemoryCortex(MemoryScorer(store))

        assert await cortex.capture([{"role": "user", "content": DARK_MODE}]) is None

    async def test_notify_respects_config(self):
        scorer = MemoryScorer(FakeStore(), ScoringConfig(notify_on_explicit=False))
        outcome = await MemoryCortex(scorer).capture([{"role": "user", "content": DARK_MODE}])
        assert outcome.notify_user is False

    def test_from_settings(self, fake_store: FakeStore):
        settings = CaptureSettings(max_messages=4, recall_max_facts=2)
        cortex = MemoryCortex.from_settings(MemoryScorer(fake_store), settings)
        assert cortex.max_messages == 4
        assert cortex.recall_max_facts == 2

    async def test_auto_capture_off(self, fake_store: FakeStore):
        settings = CaptureSettings(auto_capture=False)
        cortex = MemoryCortex.from_settings(MemoryScorer(fake_store), settings)

        assert await cortex.capture([{"role": "user", "content": DARK_MODE}]) is None
        assert fake_store.stored == []
        assert fake_store.recall_calls == []


class TestRecallContext:
    """Tests for ``MemoryCortex.recall_context``."""

    async def test_builds_memory_block(self):
        store = InMemoryMemoryStore()
        await store.store(
            "user prefers dark mode in the editor",
            MemoryMetadata(tier=MemoryTier.EXPLICIT, score=9),
        )
        cortex = MemoryCortex(MemoryScorer(store))

        block = await cortex.recall_context("what mode does the user prefer in the editor")

        assert block == (
            "<memory>\nRelevant memories:\n• user prefers dark mode in the editor\n</memory>"
        )

    async def test_short_prompt(self, fake_store: FakeStore):
        cortex = MemoryCortex(MemoryScorer(fake_store))
        assert await cortex.recall_context("hi there") is None
        assert fake_store.recall_calls == []

    async def test_no_hits(self, fake_store: FakeStore):
        cortex = MemoryCortex(MemoryScorer(fake_store))
        assert await cortex.recall_context("a prompt that is long enough") is None

    async def test_store_failure(self):
        store = FakeStore(recall_error=MemoryConnectionError("down"))
        cortex = MemoryCortex(MemoryScorer(store))
        assert await cortex.recall_context("a prompt that is long enough") is None

    async def test_auto_recall_off(self):
        store = InMemoryMemoryStore()
        await store.store(
            "user prefers dark mode in the editor",
            MemoryMetadata(tier=MemoryTier.EXPLICIT, score=9),
        )
        settings = CaptureSettings(auto_recall=False)
        cortex = MemoryCortex.from_settings(MemoryScorer(store), settings)

        assert await cortex.recall_context("what mode does the user prefer in the editor") is None

    async def test_respects_max_facts(self):
        store = InMemoryMemoryStore()
        for i in range(4):
            await store.store(f"dark mode fact {i}", MemoryMetadata(tier=MemoryTier.SILENT, score=5))
        cortex = MemoryCortex(MemoryScorer(store), recall_max_facts=2)

        block = await cortex.recall_context("tell me about dark mode settings")

        assert block.count("•") == 2


class TestHeartbeat:
    """Tests for ``MemoryCortex.heartbeat``."""

    async def test_runs_cleanup_then_reinforcement(self, fake_store: FakeStore):
        cortex = MemoryCortex(MemoryScorer(fake_store))
        cleanup, reinforcements = await cortex.heartbeat()

        assert fake_store.cleanup_calls == 1
        assert fake_store.list_calls == [(50, MemoryTier.EPHEMERAL)]
        assert reinforcements.upgraded == 0
