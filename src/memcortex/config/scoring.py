"""Immutable scoring configuration.

``ScoringConfig`` is constructed once by the host and injected into the
engine.  It is never mutated in place: ``MemoryScorer.update_config``
builds a new value with ``with_updates`` so concurrent readers never see
half of a threshold pair.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any

from memcortex.core.types import LLMProvider
from memcortex.exceptions import ConfigurationError
from memcortex.memory.base import MemoryTier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalModelConfig:
    """Settings for delegating scoring to a remote completion model."""

    provider: LLMProvider = LLMProvider.OPENAI
    model: str = "gpt-4o-mini"
    base_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = 10.0
    temperature: float = 0.1
    max_tokens: int = 256

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )
        if not self.model:
            raise ConfigurationError("External scoring model name is required")

    def __repr__(self) -> str:
        # Never leak the API key into logs.
        key = "***" if self.api_key else None
        return (
            f"ExternalModelConfig(provider={self.provider.value!r}, model={self.model!r}, "
            f"base_url={self.base_url!r}, api_key={key!r}, "
            f"timeout_seconds={self.timeout_seconds})"
        )


@dataclass(frozen=True)
class ScoringConfig:
    """Process-wide scoring configuration.

    Attributes:
        enabled: When ``False`` every call returns a canned result for
            ``default_tier`` without running any extractor.
        explicit_threshold: Scores at or above this are explicit (1-10).
        ephemeral_threshold: Scores below this are ephemeral (0-9).  Must
            be strictly less than ``explicit_threshold``.
        default_ephemeral_hours: Lifetime of ephemeral memories.
        default_silent_days: Lifetime of silent memories before they need
            reinforcement.
        cleanup_interval_hours: How often the host should run maintenance.
        min_conversation_length: Conversations shorter than this (in
            characters) are gated as trivial unless explicitly marked.
        min_message_count: Conversations with fewer segments are gated.
        default_tier: Tier reported while scoring is disabled.
        notify_on_explicit: Host hint to tell the user about explicit
            captures.
        ask_before_downgrade: Host hint reserved for downgrade prompts.
        external_model: Optional remote model used instead of heuristics.
    """

    enabled: bool = True
    explicit_threshold: int = 8
    ephemeral_threshold: int = 4
    default_ephemeral_hours: int = 72
    default_silent_days: int = 30
    cleanup_interval_hours: int = 12
    min_conversation_length: int = 20
    min_message_count: int = 1
    default_tier: MemoryTier = MemoryTier.SILENT
    notify_on_explicit: bool = True
    ask_before_downgrade: bool = True
    external_model: ExternalModelConfig | None = None

    def __post_init__(self) -> None:
        if isinstance(self.default_tier, str):
            object.__setattr__(self, "default_tier", MemoryTier(self.default_tier))

        _check_range("explicit_threshold", self.explicit_threshold, 1, 10)
        _check_range("ephemeral_threshold", self.ephemeral_threshold, 0, 9)
        _check_range("default_ephemeral_hours", self.default_ephemeral_hours, 1)
        _check_range("default_silent_days", self.default_silent_days, 1)
        _check_range("cleanup_interval_hours", self.cleanup_interval_hours, 1)
        _check_range("min_conversation_length", self.min_conversation_length, 0)
        _check_range("min_message_count", self.min_message_count, 0)

        if self.ephemeral_threshold >= self.explicit_threshold:
            raise ConfigurationError(
                f"Invalid scoring thresholds: ephemeral_threshold ({self.ephemeral_threshold}) "
                f"must be less than explicit_threshold ({self.explicit_threshold})",
                details={
                    "ephemeral_threshold": self.ephemeral_threshold,
                    "explicit_threshold": self.explicit_threshold,
                },
            )

    @property
    def silent_hours(self) -> int:
        """Lifetime of silent memories in hours."""
        return self.default_silent_days * 24

    def with_updates(self, **changes: Any) -> ScoringConfig:
        """Return a new config with ``changes`` applied.

        A change that would leave the threshold pair invalid (out of range
        or ephemeral >= explicit) is dropped with a warning and the current
        pair is kept; every other field is still applied.  Range violations
        in other fields raise.

        Raises:
            ConfigurationError: If a non-threshold field is out of range,
                or an unknown field is given.
        """
        unknown = set(changes) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise ConfigurationError(f"Unknown scoring config fields: {sorted(unknown)}")

        explicit = changes.get("explicit_threshold", self.explicit_threshold)
        ephemeral = changes.get("ephemeral_threshold", self.ephemeral_threshold)
        if not (1 <= explicit <= 10 and 0 <= ephemeral <= 9 and ephemeral < explicit):
            logger.warning(
                "Invalid thresholds in config update: ephemeral_threshold=%s, "
                "explicit_threshold=%s. Keeping previous thresholds, applying other fields.",
                ephemeral,
                explicit,
            )
            changes = {
                k: v
                for k, v in changes.items()
                if k not in ("explicit_threshold", "ephemeral_threshold")
            }

        return dataclasses.replace(self, **changes)


def _check_range(name: str, value: int, minimum: int, maximum: int | None = None) -> None:
    if value < minimum or (maximum is not None and value > maximum):
        bound = f">= {minimum}" if maximum is None else f"in [{minimum}, {maximum}]"
        raise ConfigurationError(f"{name} must be {bound}, got {value}")


DEFAULT_SCORING_CONFIG = ScoringConfig()
