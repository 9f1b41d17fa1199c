"""Host-facing hooks: auto-capture, auto-recall and heartbeat maintenance.

An agent host calls these around every turn:

- before the turn, ``recall_context`` turns the user prompt into a
  ``<memory>`` block to prepend to the model context;
- after the turn, ``capture`` extracts the meaningful messages, scores them
  and stores the conversation with the tier and expiry the score implies;
- on a timer, ``heartbeat`` runs cleanup and reinforcement.

None of the hooks ever raises for a store failure: memory is best-effort
and must not break the agent turn it is attached to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Sequence

from memcortex.core.types import ConversationSegment, RecommendedAction, Role, ScoringResult
from memcortex.memory.base import (
    CleanupResult,
    MemoryMetadata,
    MemorySource,
    MemoryStore,
    RecallOptions,
    ReinforcementResult,
)
from memcortex.scoring.scorer import MemoryScorer

if TYPE_CHECKING:
    from memcortex.config.settings import CaptureSettings

logger = logging.getLogger(__name__)

MAX_CAPTURE_MESSAGES = 15
MIN_MESSAGE_LENGTH = 20
MAX_SEGMENT_CHARS = 500
RECALL_MAX_FACTS = 5
MIN_PROMPT_LENGTH = 20

#: Markers of context this package injected itself; never captured back.
INJECTED_CONTEXT_MARKERS = ("<memory>", "<relevant-memories>")


@dataclass(frozen=True)
class CaptureOutcome:
    """What ``MemoryCortex.capture`` stored."""

    memory_id: str
    result: ScoringResult
    metadata: MemoryMetadata
    notify_user: bool = False


# =====================================================================
# Message extraction
# =====================================================================


def extract_segments(
    messages: Sequence[Any],
    max_messages: int = MAX_CAPTURE_MESSAGES,
    min_length: int = MIN_MESSAGE_LENGTH,
    max_chars: int = MAX_SEGMENT_CHARS,
) -> list[ConversationSegment]:
    """Turn raw host messages into conversation segments.

    Messages are ``{"role": ..., "content": ...}`` dicts where ``content``
    is a string or a list of ``{"type": "text", "text": ...}`` blocks.  Only
    user and assistant messages are kept; short texts and previously
    injected memory context are skipped.  The most recent ``max_messages``
    survive, truncated to ``max_chars``, in chronological order.
    """
    segments: list[ConversationSegment] = []

    for message in reversed(messages):
        if len(segments) >= max_messages:
            break
        if not isinstance(message, dict):
            continue

        role = message.get("role")
        if role not in (Role.USER.value, Role.ASSISTANT.value):
            continue

        text = _message_text(message.get("content"))
        if len(text) < min_length:
            continue
        if any(marker in text for marker in INJECTED_CONTEXT_MARKERS):
            continue

        segments.append(ConversationSegment(content=text[:max_chars], role=Role(role)))

    segments.reverse()
    return segments


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [
            str(block.get("text") or "")
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        return " ".join(part for part in parts if part)
    return ""


def format_conversation(segments: Sequence[ConversationSegment]) -> str:
    return "\n\n".join(f"{segment.role.value}: {segment.content}" for segment in segments)


def build_metadata(
    result: ScoringResult,
    source: MemorySource = MemorySource.AUTO_CAPTURE,
    session_id: str | None = None,
    now: datetime | None = None,
) -> MemoryMetadata:
    """Metadata for persisting a scored conversation.

    ``expires_at`` is ``now + expires_in_hours``, or ``None`` for explicit
    results.
    """
    now = now or datetime.now(timezone.utc)
    expires_at = None
    if result.expires_in_hours is not None:
        expires_at = now + timedelta(hours=result.expires_in_hours)

    return MemoryMetadata(
        tier=result.tier,
        score=result.score,
        source=source,
        created_at=now,
        expires_at=expires_at,
        session_id=session_id,
    )


# =====================================================================
# Facade
# =====================================================================


class MemoryCortex:
    """Wires a ``MemoryScorer`` and its store into the host hooks.

    Args:
        scorer: The scoring engine; its store is used for capture and recall.
        max_messages: Most recent messages considered per capture.
        min_message_length: Shorter messages are ignored.
        max_chars: Per-message truncation.
        recall_max_facts: Maximum memories injected per recall.
        min_prompt_length: Shorter prompts do not trigger a recall.
        auto_capture: When ``False``, ``capture`` stores nothing.
        auto_recall: When ``False``, ``recall_context`` returns ``None``.

    Example::

        cortex = MemoryCortex(MemoryScorer(store))
        context = await cortex.recall_context(prompt)
        ...
        await cortex.capture(messages, session_id="abc")
    """

    def __init__(
        self,
        scorer: MemoryScorer,
        max_messages: int = MAX_CAPTURE_MESSAGES,
        min_message_length: int = MIN_MESSAGE_LENGTH,
        max_chars: int = MAX_SEGMENT_CHARS,
        recall_max_facts: int = RECALL_MAX_FACTS,
        min_prompt_length: int = MIN_PROMPT_LENGTH,
        auto_capture: bool = True,
        auto_recall: bool = True,
    ) -> None:
        self.scorer = scorer
        self.max_messages = max_messages
        self.min_message_length = min_message_length
        self.max_chars = max_chars
        self.recall_max_facts = recall_max_facts
        self.min_prompt_length = min_prompt_length
        self.auto_capture = auto_capture
        self.auto_recall = auto_recall

    @classmethod
    def from_settings(cls, scorer: MemoryScorer, settings: CaptureSettings) -> MemoryCortex:
        return cls(
            scorer,
            max_messages=settings.max_messages,
            min_message_length=settings.min_message_length,
            max_chars=settings.max_chars,
            recall_max_facts=settings.recall_max_facts,
            min_prompt_length=settings.min_prompt_length,
            auto_capture=settings.auto_capture,
            auto_recall=settings.auto_recall,
        )

    @property
    def store(self) -> MemoryStore:
        return self.scorer.store

    async def capture(
        self, messages: Sequence[Any], session_id: str | None = None
    ) -> CaptureOutcome | None:
        """Score the turn's messages and store them.

        Returns:
            ``CaptureOutcome``, or ``None`` when nothing was stored (capture
            turned off, no meaningful messages, a ``skip`` recommendation, or
            a store failure).
        """
        if not self.auto_capture:
            return None

        segments = extract_segments(
            messages,
            max_messages=self.max_messages,
            min_length=self.min_message_length,
            max_chars=self.max_chars,
        )
        if not segments:
            logger.debug("Auto-capture: no meaningful messages to capture")
            return None

        result = await self.scorer.score_conversation(segments)
        logger.info(
            "Auto-capture scored %d/10 (%s), action %s",
            result.score,
            result.tier.value,
            result.recommended_action.value,
        )
        if result.recommended_action is RecommendedAction.SKIP:
            return None

        session = session_id or "unknown"
        content = f"[{result.tier.value.upper()}] Session {session}\n{format_conversation(segments)}"
        metadata = build_metadata(result, session_id=session)

        try:
            memory_id = await self.store.store(content, metadata)
        except Exception as exc:
            logger.error("Auto-capture failed to store conversation: %s", exc)
            return None

        notify = (
            result.recommended_action is RecommendedAction.STORE_EXPLICIT
            and self.scorer.config.notify_on_explicit
        )
        return CaptureOutcome(
            memory_id=memory_id, result=result, metadata=metadata, notify_user=notify
        )

    async def recall_context(self, prompt: str) -> str | None:
        """Build a ``<memory>`` block of memories relevant to ``prompt``.

        Returns:
            The block, or ``None`` when recall is turned off, for short
            prompts, no hits or a store failure.
        """
        if not self.auto_recall:
            return None
        if not prompt or len(prompt) < self.min_prompt_length:
            return None

        try:
            results = await self.store.recall(prompt, RecallOptions(limit=self.recall_max_facts))
        except Exception as exc:
            logger.error("Auto-recall failed: %s", exc)
            return None

        if not results:
            logger.debug("Auto-recall: no relevant memories found")
            return None

        logger.info("Auto-recall: found %d relevant memories", len(results))
        facts = "\n".join(f"• {r.content.strip()}" for r in results[: self.recall_max_facts])
        return f"<memory>\nRelevant memories:\n{facts}\n</memory>"

    async def heartbeat(self) -> tuple[CleanupResult, ReinforcementResult]:
        """Periodic maintenance: cleanup, then reinforcement."""
        return await self.scorer.run_maintenance()
