"""Engine facade: scores conversations and drives the memory lifecycle.

``MemoryScorer`` is what a host holds on to.  It owns the injected
``ScoringConfig``, the storage collaborator and, optionally, an external
scoring model, and exposes the three engine operations:

- ``score_conversation``: segments in, ``ScoringResult`` out.
- ``cleanup_expired_memories`` / ``process_reinforcements``: delegated to
  ``MemoryLifecycle``.

Scoring never raises for a store or model failure.  The order of the
checks is fixed: disabled, then gating, then the external model (if any),
then the heuristic pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Sequence

from memcortex.config.scoring import (
    DEFAULT_SCORING_CONFIG,
    ExternalModelConfig,
    ScoringConfig,
)
from memcortex.core.types import ConversationSegment, ScoringFactors, ScoringResult
from memcortex.exceptions import ExternalModelError
from memcortex.llm.base import BaseLLMProvider
from memcortex.memory.base import CleanupResult, MemoryStore, ReinforcementResult
from memcortex.memory.lifecycle import MemoryLifecycle
from memcortex.scoring.aggregate import (
    build_result,
    calculate_weighted_score,
    disabled_result,
    generate_reasoning,
    trivial_result,
)
from memcortex.scoring.external import ExternalModelScorer
from memcortex.scoring.features import (
    MAX_FACTOR,
    detect_emotional_weight,
    detect_explicit_markers,
    detect_time_sensitivity,
    predict_future_utility,
)
from memcortex.scoring.similarity import compute_similarity_factors

logger = logging.getLogger(__name__)


class MemoryScorer:
    """Importance scorer and lifecycle driver.

    Args:
        store: Storage collaborator used for similarity lookups and the
            lifecycle sweeps.
        config: Immutable scoring configuration.
        llm_provider: Provider for the external scoring model.  An injected
            provider is always used.  When omitted and ``config.external_model``
            is set, one is created from it and rebuilt whenever
            ``update_config`` changes ``external_model``.

    Example::

        scorer = MemoryScorer(InMemoryMemoryStore())
        result = await scorer.score_conversation(
            [ConversationSegment.user("I prefer dark mode, remember that")]
        )
        result.tier  # MemoryTier.EXPLICIT
    """

    def __init__(
        self,
        store: MemoryStore,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
        llm_provider: BaseLLMProvider | None = None,
    ) -> None:
        self.store = store
        self._config = config
        self._llm_provider = llm_provider
        self._configured_provider: BaseLLMProvider | None = None
        self.lifecycle = MemoryLifecycle(store, config)

    # ==================================================================
    # Configuration
    # ==================================================================

    @property
    def config(self) -> ScoringConfig:
        """The configuration currently in force."""
        return self._config

    def update_config(self, **changes: Any) -> ScoringConfig:
        """Swap in a new configuration built from ``changes``.

        An invalid threshold pair is rejected with a warning and the
        previous thresholds stay in force; the remaining changes apply.

        Returns:
            The new configuration.
        """
        previous = self._config
        self._config = previous.with_updates(**changes)
        self.lifecycle.config = self._config
        if self._config.external_model != previous.external_model:
            self._configured_provider = None
        logger.info(
            "Scoring config updated: thresholds %d/%d, enabled=%s",
            self._config.ephemeral_threshold,
            self._config.explicit_threshold,
            self._config.enabled,
        )
        return self._config

    # ==================================================================
    # Scoring
    # ==================================================================

    async def score_conversation(
        self, segments: Sequence[ConversationSegment]
    ) -> ScoringResult:
        """Score a conversation and decide its retention tier.

        Args:
            segments: Role-tagged conversation spans, oldest first.

        Returns:
            ``ScoringResult``.  Store and model failures degrade to neutral
            factors or the heuristic pipeline; they never propagate.
        """
        config = self._config

        if not config.enabled:
            return disabled_result(config)

        content = "\n".join(segment.content for segment in segments)
        has_explicit_marker = detect_explicit_markers(content)

        if not has_explicit_marker and (
            len(content) < config.min_conversation_length
            or len(segments) < config.min_message_count
        ):
            logger.debug(
                "Conversation gated as trivial (%d chars, %d segments)",
                len(content),
                len(segments),
            )
            return trivial_result(config)

        external = self._external_scorer(config)
        if external is not None:
            try:
                return await external.score(segments, config, has_explicit_marker)
            except ExternalModelError as exc:
                logger.warning("External scoring failed, using heuristics: %s", exc)

        return await self._score_heuristically(content, len(segments), has_explicit_marker)

    async def _score_heuristically(
        self, content: str, segment_count: int, has_explicit_marker: bool
    ) -> ScoringResult:
        config = self._config
        similarity = await compute_similarity_factors(self.store, content)

        factors = ScoringFactors(
            explicit_emphasis=MAX_FACTOR if has_explicit_marker else 0,
            emotional_weight=detect_emotional_weight(content),
            future_utility=predict_future_utility(content, segment_count),
            repetition=similarity.repetition,
            time_sensitivity=detect_time_sensitivity(content),
            context_anchoring=similarity.context_anchoring,
            novelty=similarity.novelty,
        )
        logger.debug("Scoring factors: %s", factors.as_dict())

        score = calculate_weighted_score(factors)
        result = build_result(score, config, reasoning="", has_explicit_marker=has_explicit_marker)
        return replace(result, reasoning=generate_reasoning(score, result.tier, factors))

    def _external_scorer(self, config: ScoringConfig) -> ExternalModelScorer | None:
        if self._llm_provider is not None:
            model_config = config.external_model or ExternalModelConfig()
            return ExternalModelScorer(self._llm_provider, model_config)
        if config.external_model is None:
            return None

        if self._configured_provider is None:
            from memcortex.llm.factory import create_provider

            self._configured_provider = create_provider(config.external_model)
        return ExternalModelScorer(self._configured_provider, config.external_model)

    # ==================================================================
    # Lifecycle
    # ==================================================================

    async def cleanup_expired_memories(self) -> CleanupResult:
        """Run the store's expiry sweep.  Never raises."""
        return await self.lifecycle.cleanup_expired_memories()

    async def process_reinforcements(self) -> ReinforcementResult:
        """Promote reinforced ephemeral records.  Never raises."""
        return await self.lifecycle.process_reinforcements()

    async def run_maintenance(self) -> tuple[CleanupResult, ReinforcementResult]:
        """Cleanup followed by reinforcement."""
        return await self.lifecycle.run_maintenance()


def create_memory_scorer(
    store: MemoryStore,
    config: ScoringConfig | None = None,
    **overrides: Any,
) -> MemoryScorer:
    """Build a ``MemoryScorer``, applying ``overrides`` on top of ``config``.

    Example::

        scorer = create_memory_scorer(store, explicit_threshold=7)
    """
    base = config or DEFAULT_SCORING_CONFIG
    return MemoryScorer(store, base.with_updates(**overrides) if overrides else base)
