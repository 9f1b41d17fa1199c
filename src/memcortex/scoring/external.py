"""External-model scorer.

Delegates importance scoring to a remote completion model.  The model sees
the three tiers with the live thresholds and the role-tagged transcript, and
must answer with ``{"score": n, "tier": "...", "reasoning": "..."}``.

The reply is parsed strictly: anything other than a well-formed object is an
``ExternalModelError``, exactly like a timeout or a refused connection, and
the caller falls back to the heuristic pipeline.  The tier label in the reply
is ignored; the tier is re-derived from the returned score.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Sequence

from memcortex.config.scoring import ExternalModelConfig, ScoringConfig
from memcortex.core.types import ConversationSegment, Message, ModelConfig, ScoringResult
from memcortex.exceptions import ExternalModelError
from memcortex.llm.base import BaseLLMProvider
from memcortex.scoring.aggregate import build_result
from memcortex.scoring.rounding import round_half_up

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)

SYSTEM_PROMPT_TEMPLATE = """\
You are the importance scorer of an assistant's long-term memory.
Rate how important it is to remember the conversation you are given, on an
integer scale from 0 to 10, and pick one of three retention tiers:

- explicit (score >= {explicit}): keep permanently. Stated preferences,
  personal facts, credentials, goals, or anything the user asks to remember.
- silent ({ephemeral} <= score < {explicit}): keep for {silent_days} days unless
  it is reinforced. Useful context, ongoing work, decisions.
- ephemeral (score < {ephemeral}): keep for {ephemeral_hours} hours. Small talk,
  greetings, one-off questions.

Answer with a single JSON object and nothing else:
{{"score": <0-10>, "tier": "explicit|silent|ephemeral", "reasoning": "<one sentence>"}}"""


@dataclass(frozen=True)
class ModelVerdict:
    """A validated model reply."""

    score: int
    tier: str
    reasoning: str


def build_system_prompt(config: ScoringConfig) -> str:
    """Describe the tiers using the thresholds currently in force."""
    return SYSTEM_PROMPT_TEMPLATE.format(
        explicit=config.explicit_threshold,
        ephemeral=config.ephemeral_threshold,
        silent_days=config.default_silent_days,
        ephemeral_hours=config.default_ephemeral_hours,
    )


def build_transcript(segments: Sequence[ConversationSegment]) -> str:
    """Render segments as ``role: content`` lines."""
    return "\n".join(f"{segment.role.value}: {segment.content}" for segment in segments)


def parse_verdict(text: str) -> ModelVerdict:
    """Parse and validate a model reply.

    Optional markdown code fences are stripped first.

    Raises:
        ExternalModelError: If the reply is not a JSON object with a numeric
            ``score`` in [0, 10] and string ``tier`` and ``reasoning``.
    """
    stripped = text.strip()
    match = _FENCE_RE.match(stripped)
    if match:
        stripped = match.group(1)

    try:
        data: Any = json.loads(stripped)
    except json.JSONDecodeError as exc:
        raise ExternalModelError(
            "Scoring model returned malformed JSON", raw_response=text[:500], cause=exc
        )

    if not isinstance(data, dict):
        raise ExternalModelError("Scoring model reply is not an object", raw_response=text[:500])

    score = data.get("score")
    tier = data.get("tier")
    reasoning = data.get("reasoning")

    if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
        raise ExternalModelError("Scoring model reply has no numeric score", raw_response=text[:500])
    if not 0 <= score <= 10:
        raise ExternalModelError(f"Scoring model score out of range: {score}", raw_response=text[:500])
    if not isinstance(tier, str) or not isinstance(reasoning, str):
        raise ExternalModelError(
            "Scoring model reply is missing tier or reasoning", raw_response=text[:500]
        )

    return ModelVerdict(score=round_half_up(score), tier=tier, reasoning=reasoning)


class ExternalModelScorer:
    """Scores conversations with a remote completion model.

    Args:
        provider: LLM provider that reaches the endpoint.
        config: Model name, timeout and sampling settings.

    Example::

        scorer = ExternalModelScorer(OpenAIProvider(), ExternalModelConfig())
        result = await scorer.score(segments, scoring_config, has_explicit_marker=False)
    """

    def __init__(self, provider: BaseLLMProvider, config: ExternalModelConfig) -> None:
        self.provider = provider
        self.config = config

    async def score(
        self,
        segments: Sequence[ConversationSegment],
        scoring_config: ScoringConfig,
        has_explicit_marker: bool = False,
    ) -> ScoringResult:
        """Ask the model for a score and turn it into a ``ScoringResult``.

        Raises:
            ExternalModelError: On timeout, transport failure or an unusable
                reply.  Callers treat every failure the same way.
        """
        model_config = ModelConfig(
            provider=self.config.provider,
            model_id=self.config.model,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        messages = [Message.user(build_transcript(segments))]

        try:
            response = await asyncio.wait_for(
                self.provider.generate(
                    messages=messages,
                    config=model_config,
                    system_prompt=build_system_prompt(scoring_config),
                    json_mode=True,
                ),
                timeout=self.config.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ExternalModelError(
                f"Scoring model timed out after {self.config.timeout_seconds}s",
                provider=self.provider.provider_name,
                model=self.config.model,
                cause=exc,
            )
        except ExternalModelError:
            raise
        except Exception as exc:
            raise ExternalModelError(
                "Scoring model request failed",
                provider=self.provider.provider_name,
                model=self.config.model,
                cause=exc,
            )

        if response.truncated:
            raise ExternalModelError(
                f"Scoring model reply was cut off at max_tokens={self.config.max_tokens}",
                raw_response=response.content[:500],
                provider=self.provider.provider_name,
                model=self.config.model,
            )

        verdict = parse_verdict(response.content)
        result = build_result(
            verdict.score,
            scoring_config,
            reasoning=verdict.reasoning,
            has_explicit_marker=has_explicit_marker,
        )
        if result.tier.value != verdict.tier.lower():
            logger.debug(
                "Model tier %r disagrees with thresholds for score %d; using %s",
                verdict.tier,
                verdict.score,
                result.tier.value,
            )
        return result
