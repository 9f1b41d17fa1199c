"""Similarity-dependent feature extractors.

Repetition, context anchoring and novelty all need to know what the store
already holds.  They share one ``recall`` over the full conversation text so
a scoring call costs at most one round trip to the store, and a store
failure can never fail the scoring call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from memcortex.memory.base import MemoryResult, MemoryStore, MemoryTier, RecallOptions
from memcortex.scoring.rounding import round_half_up

logger = logging.getLogger(__name__)

#: Content shorter than this is not worth a recall.
MIN_RECALL_LENGTH = 20
#: Number of neighbours considered.
RECALL_LIMIT = 10
#: Neutral value for all three factors when the store cannot be reached.
FALLBACK_VALUE = 3


@dataclass(frozen=True)
class SimilarityFactors:
    """The three factors derived from one recall."""

    repetition: int
    context_anchoring: int
    novelty: int


#: Used when the content is too short to look up.
SHORT_CONTENT_FACTORS = SimilarityFactors(repetition=0, context_anchoring=0, novelty=5)
#: Used when the store raised.
FALLBACK_FACTORS = SimilarityFactors(
    repetition=FALLBACK_VALUE,
    context_anchoring=FALLBACK_VALUE,
    novelty=FALLBACK_VALUE,
)


async def compute_similarity_factors(
    store: MemoryStore,
    content: str,
    limit: int = RECALL_LIMIT,
) -> SimilarityFactors:
    """Recall neighbours of ``content`` once and derive all three factors.

    Args:
        store: The storage collaborator.
        content: Concatenated conversation text.
        limit: Maximum neighbours to recall.

    Returns:
        ``SimilarityFactors``; ``FALLBACK_FACTORS`` if the store errored.
    """
    if not content or len(content) < MIN_RECALL_LENGTH:
        return SHORT_CONTENT_FACTORS

    try:
        results = await store.recall(content, RecallOptions(limit=limit))
    except Exception as exc:
        logger.warning("Similarity lookup failed, using neutral factors: %s", exc)
        return FALLBACK_FACTORS

    return factors_from_results(results)


def factors_from_results(results: Sequence[MemoryResult]) -> SimilarityFactors:
    """Derive repetition, anchoring and novelty from a recall result set.

    Novelty is computed from the same mean similarity as repetition but
    rounded independently, so ``novelty`` may differ from
    ``10 - repetition`` by one.
    """
    return SimilarityFactors(
        repetition=repetition_score(results),
        context_anchoring=context_anchoring_score(results),
        novelty=novelty_score(results),
    )


def repetition_score(results: Sequence[MemoryResult]) -> int:
    """High similarity to existing memories means high repetition."""
    if not results:
        return 0
    return round_half_up(_mean_relevance(results) * 10)


def context_anchoring_score(results: Sequence[MemoryResult]) -> int:
    """High-value neighbours (explicit 3, silent 2 each) anchor the content."""
    if not results:
        return 0
    explicit = sum(1 for r in results if r.metadata.tier is MemoryTier.EXPLICIT)
    silent = sum(1 for r in results if r.metadata.tier is MemoryTier.SILENT)
    return min(explicit * 3 + silent * 2, 10)


def novelty_score(results: Sequence[MemoryResult]) -> int:
    """Nothing similar stored means fully novel."""
    if not results:
        return 10
    return round_half_up((1 - _mean_relevance(results)) * 10)


def _mean_relevance(results: Sequence[MemoryResult]) -> float:
    total = sum(min(max(r.relevance_score, 0.0), 1.0) for r in results)
    return total / len(results)
