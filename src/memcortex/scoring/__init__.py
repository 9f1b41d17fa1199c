"""Importance scoring.

A conversation is reduced to seven factors, combined into a weighted score
in [0, 10] and classified into a retention tier:

    features.py     explicit markers, emotion, time sensitivity, utility
    similarity.py   repetition, anchoring and novelty from one store recall
    aggregate.py    weights, tier thresholds, actions and expiry
    external.py     optional remote model with heuristic fallback
    scorer.py       the ``MemoryScorer`` facade
"""

from memcortex.scoring.aggregate import (
    WEIGHTS,
    build_result,
    calculate_weighted_score,
    determine_action,
    determine_tier,
)
from memcortex.scoring.external import ExternalModelScorer, parse_verdict
from memcortex.scoring.scorer import MemoryScorer, create_memory_scorer

__all__ = [
    "MemoryScorer",
    "create_memory_scorer",
    "ExternalModelScorer",
    "parse_verdict",
    "WEIGHTS",
    "calculate_weighted_score",
    "determine_tier",
    "determine_action",
    "build_result",
]
