"""Tests for the external-model scorer.

No network access: providers are either the in-process ``FakeProvider`` or
the real ``OllamaProvider`` with ``_post_json`` patched.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from conftest import FakeProvider, FakeStore

from memcortex.config.scoring import ExternalModelConfig, ScoringConfig
from memcortex.core.types import ConversationSegment, LLMProvider, RecommendedAction
from memcortex.exceptions import ExternalModelError, LLMConnectionError
from memcortex.llm.providers.ollama_ import OllamaProvider
from memcortex.memory.base import MemoryTier
from memcortex.scoring.external import (
    ExternalModelScorer,
    build_system_prompt,
    build_transcript,
    parse_verdict,
)
from memcortex.scoring.scorer import MemoryScorer

SEGMENTS = [
    ConversationSegment.user("I am moving to Lisbon next month for the new job"),
    ConversationSegment.assistant("Congratulations, I will keep that in mind"),
]


# =====================================================================
# Reply parsing
# =====================================================================


class TestParseVerdict:
    """Strict parsing of the model reply."""

    def test_plain_json(self):
        verdict = parse_verdict('{"score": 9, "tier": "explicit", "reasoning": "preference"}')
        assert verdict.score == 9
        assert verdict.tier == "explicit"
        assert verdict.reasoning == "preference"

    def test_fenced_json_and_half_up(self):
        text = '```json\n{"score": 7.5, "tier": "silent", "reasoning": "plan"}\n```'
        assert parse_verdict(text).score == 8

    @pytest.mark.parametrize(
        "text",
        [
            "not json at all",
            "[1, 2, 3]",
            '{"score": 11, "tier": "explicit", "reasoning": "x"}',
            '{"score": -1, "tier": "ephemeral", "reasoning": "x"}',
            '{"score": true, "tier": "explicit", "reasoning": "x"}',
            '{"score": "7", "tier": "silent", "reasoning": "x"}',
            '{"score": NaN, "tier": "silent", "reasoning": "x"}',
            '{"score": 7, "tier": "silent"}',
            '{"score": 7, "reasoning": "x"}',
        ],
    )
    def test_rejects_unusable_reply(self, text):
        with pytest.raises(ExternalModelError):
            parse_verdict(text)


class TestPrompts:
    """Prompt construction."""

    def test_system_prompt_uses_live_thresholds(self):
        prompt = build_system_prompt(ScoringConfig(explicit_threshold=7, ephemeral_threshold=2))
        assert "score >= 7" in prompt
        assert "2 <= score < 7" in prompt

    def test_transcript_lines(self):
        assert build_transcript(SEGMENTS) == (
            "user: I am moving to Lisbon next month for the new job\n"
            "assistant: Congratulations, I will keep that in mind"
        )


# =====================================================================
# Scorer
# =====================================================================


class TestExternalModelScorer:
    """Tests for ``ExternalModelScorer.score``."""

    async def test_tier_is_rederived_from_score(self):
        provider = FakeProvider('{"score": 9, "tier": "silent", "reasoning": "r"}')
        scorer = ExternalModelScorer(provider, ExternalModelConfig())

        result = await scorer.score(SEGMENTS, ScoringConfig())

        assert result.score == 9
        assert result.tier is MemoryTier.EXPLICIT
        assert result.expires_in_hours is None

    async def test_local_marker_override(self):
        provider = FakeProvider('{"score": 2, "tier": "ephemeral", "reasoning": "r"}')
        scorer = ExternalModelScorer(provider, ExternalModelConfig())

        result = await scorer.score(SEGMENTS, ScoringConfig(), has_explicit_marker=True)

        assert result.score == 2
        assert result.recommended_action is RecommendedAction.STORE_EXPLICIT

    async def test_request_shape(self):
        provider = FakeProvider('{"score": 5, "tier": "silent", "reasoning": "r"}')
        config = ExternalModelConfig(model="scorer-small", temperature=0.1, max_tokens=256)

        await ExternalModelScorer(provider, config).score(SEGMENTS, ScoringConfig())

        call = provider.calls[0]
        assert call["config"].model_id == "scorer-small"
        assert call["config"].temperature == 0.1
        assert call["config"].max_tokens == 256
        assert call["messages"][0].role == "user"
        assert "explicit" in call["system_prompt"]
        assert call["json_mode"] is True

    async def test_timeout(self):
        provider = FakeProvider('{"score": 5, "tier": "silent", "reasoning": "r"}', delay=1.0)
        scorer = ExternalModelScorer(provider, ExternalModelConfig(timeout_seconds=0.01))

        with pytest.raises(ExternalModelError) as exc_info:
            await scorer.score(SEGMENTS, ScoringConfig())
        assert "timed out" in str(exc_info.value)

    async def test_transport_error_wrapped(self):
        provider = FakeProvider(error=LLMConnectionError("refused"))
        scorer = ExternalModelScorer(provider, ExternalModelConfig())

        with pytest.raises(ExternalModelError):
            await scorer.score(SEGMENTS, ScoringConfig())

    async def test_truncated_reply(self):
        provider = FakeProvider('{"score": 5, "tier": "sil', truncated=True)
        scorer = ExternalModelScorer(provider, ExternalModelConfig())

        with pytest.raises(ExternalModelError) as exc_info:
            await scorer.score(SEGMENTS, ScoringConfig())
        assert "max_tokens" in str(exc_info.value)

    async def test_malformed_reply(self):
        scorer = ExternalModelScorer(FakeProvider("I think about a 7"), ExternalModelConfig())
        with pytest.raises(ExternalModelError):
            await scorer.score(SEGMENTS, ScoringConfig())


class TestConfiguredExternalModel:
    """The engine builds the provider from ``ScoringConfig.external_model``."""

    async def test_connection_refused_equals_heuristic(self):
        heuristic = await MemoryScorer(FakeStore()).score_conversation(SEGMENTS)

        config = ScoringConfig(
            external_model=ExternalModelConfig(
                provider=LLMProvider.OLLAMA,
                model="llama3",
                base_url="http://127.0.0.1:9",
            )
        )
        with patch.object(
            OllamaProvider,
            "_post_json",
            side_effect=LLMConnectionError("Connection refused"),
        ):
            result = await MemoryScorer(FakeStore(), config).score_conversation(SEGMENTS)

        assert result == heuristic

    async def test_ollama_reply_is_used(self):
        config = ScoringConfig(
            external_model=ExternalModelConfig(provider=LLMProvider.OLLAMA, model="llama3")
        )
        reply = {
            "model": "llama3",
            "message": {
                "role": "assistant",
                "content": '{"score": 5, "tier": "silent", "reasoning": "relocation"}',
            },
            "done": True,
        }
        with patch.object(OllamaProvider, "_post_json", return_value=reply):
            result = await MemoryScorer(FakeStore(), config).score_conversation(SEGMENTS)

        assert result.score == 5
        assert result.reasoning == "relocation"
