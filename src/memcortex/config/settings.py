"""
Host settings for memcortex.

Uses Pydantic Settings for environment variable and file-based configuration.
The engine itself only ever sees the resolved, immutable ``ScoringConfig``;
this module is where a host turns ``MEMCORTEX_*`` variables, a ``.env``
file or a YAML/JSON file into one.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from memcortex.config.scoring import ExternalModelConfig, ScoringConfig
from memcortex.core.types import LLMProvider
from memcortex.memory.base import MemoryTier

logger = logging.getLogger(__name__)


class ScoringSettings(BaseSettings):
    """Importance scoring and lifecycle settings."""

    model_config = SettingsConfigDict(
        env_prefix="MEMCORTEX_SCORING_",
        env_file=".env",
        extra="ignore",
    )

    enabled: bool = True

    # Tier thresholds
    explicit_threshold: int = 8
    ephemeral_threshold: int = 4

    # Retention windows
    ephemeral_hours: int = 72
    silent_days: int = 30
    cleanup_hours: int = 12

    # Gating
    min_conversation_length: int = 20
    min_message_count: int = 1

    default_tier: Literal["explicit", "silent", "ephemeral"] = "silent"
    notify_on_explicit: bool = True
    ask_before_downgrade: bool = True

    def to_scoring_config(self, external_model: ExternalModelConfig | None = None) -> ScoringConfig:
        """Build a ``ScoringConfig``, clamping out-of-range values.

        Host files are edited by hand, so bad values are corrected with a
        warning rather than refusing to start.
        """
        ephemeral = _clamp("ephemeral_threshold", self.ephemeral_threshold, 0, 9)
        explicit = _clamp("explicit_threshold", self.explicit_threshold, 1, 10)
        if explicit <= ephemeral:
            logger.warning(
                "explicit_threshold (%d) must exceed ephemeral_threshold (%d), using %d",
                explicit,
                ephemeral,
                ephemeral + 1,
            )
            explicit = ephemeral + 1

        return ScoringConfig(
            enabled=self.enabled,
            explicit_threshold=explicit,
            ephemeral_threshold=ephemeral,
            default_ephemeral_hours=_clamp("ephemeral_hours", self.ephemeral_hours, 1),
            default_silent_days=_clamp("silent_days", self.silent_days, 1),
            cleanup_interval_hours=_clamp("cleanup_hours", self.cleanup_hours, 1),
            min_conversation_length=_clamp(
                "min_conversation_length", self.min_conversation_length, 0
            ),
            min_message_count=_clamp("min_message_count", self.min_message_count, 0),
            default_tier=MemoryTier(self.default_tier),
            notify_on_explicit=self.notify_on_explicit,
            ask_before_downgrade=self.ask_before_downgrade,
            external_model=external_model,
        )


class ExternalModelSettings(BaseSettings):
    """Optional remote scoring model."""

    model_config = SettingsConfigDict(
        env_prefix="MEMCORTEX_EXTERNAL_",
        env_file=".env",
        extra="ignore",
    )

    enabled: bool = False
    provider: LLMProvider = LLMProvider.OPENAI
    model: str = "gpt-4o-mini"
    base_url: str | None = None
    api_key: SecretStr | None = None

    timeout_seconds: float = 10.0
    temperature: float = 0.1
    max_tokens: int = 256

    def to_external_model_config(self) -> ExternalModelConfig | None:
        """``ExternalModelConfig`` for the engine, or ``None`` when disabled."""
        if not self.enabled:
            return None
        return ExternalModelConfig(
            provider=self.provider,
            model=self.model,
            base_url=self.base_url,
            api_key=self.api_key.get_secret_value() if self.api_key else None,
            timeout_seconds=self.timeout_seconds,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )


class CaptureSettings(BaseSettings):
    """Auto-capture and auto-recall hook settings."""

    model_config = SettingsConfigDict(
        env_prefix="MEMCORTEX_CAPTURE_",
        env_file=".env",
        extra="ignore",
    )

    auto_capture: bool = True
    auto_recall: bool = True

    max_messages: int = 15
    min_message_length: int = 20
    max_chars: int = 500

    recall_max_facts: int = 5
    min_prompt_length: int = 20


class CortexSettings(BaseSettings):
    """
    Main configuration for memcortex.

    Supports loading from:
    - Environment variables (MEMCORTEX_* prefix)
    - .env file
    - YAML/JSON config files
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMCORTEX_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Nested configurations
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    external: ExternalModelSettings = Field(default_factory=ExternalModelSettings)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)

    # Logging
    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"

    @classmethod
    def from_file(cls, path: str | Path) -> CortexSettings:
        """Load settings from a YAML or JSON file."""
        import json

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        content = path.read_text()

        if path.suffix in (".yaml", ".yml"):
            try:
                import yaml
            except ImportError:
                raise ImportError("PyYAML required for YAML config files: pip install pyyaml")
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            data = json.loads(content)
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        return cls(**data)

    def scoring_config(self) -> ScoringConfig:
        """The resolved engine configuration."""
        return self.scoring.to_scoring_config(self.external.to_external_model_config())

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary (excludes secrets)."""
        return self.model_dump(mode="json", exclude={"external": {"api_key"}})


def _clamp(name: str, value: int, minimum: int, maximum: int | None = None) -> int:
    clamped = max(value, minimum)
    if maximum is not None:
        clamped = min(clamped, maximum)
    if clamped != value:
        logger.warning("%s=%d out of range, using %d", name, value, clamped)
    return clamped


# Global settings instance (lazy-loaded)
_settings: CortexSettings | None = None


def get_settings() -> CortexSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = CortexSettings()
    return _settings


def configure(
    settings: CortexSettings | None = None,
    *,
    enabled: bool | None = None,
    explicit_threshold: int | None = None,
    ephemeral_threshold: int | None = None,
    log_level: str | None = None,
) -> CortexSettings:
    """
    Configure memcortex globally.

    Simple usage:
        import memcortex
        memcortex.configure(explicit_threshold=7)

    Full settings:
        from memcortex.config import CortexSettings
        memcortex.configure(settings=CortexSettings.from_file("memcortex.yaml"))

    Args:
        settings: Full settings object (optional)
        enabled: Turn scoring on or off
        explicit_threshold: Minimum score for the explicit tier
        ephemeral_threshold: Scores below this are ephemeral
        log_level: Logging level name

    Returns:
        The settings now in force.
    """
    global _settings

    if settings is not None:
        _settings = settings
        return _settings

    current = get_settings()
    scoring_updates = {
        key: value
        for key, value in {
            "enabled": enabled,
            "explicit_threshold": explicit_threshold,
            "ephemeral_threshold": ephemeral_threshold,
        }.items()
        if value is not None
    }
    updates: dict[str, Any] = {}
    if scoring_updates:
        updates["scoring"] = current.scoring.model_copy(update=scoring_updates)
    if log_level is not None:
        updates["log_level"] = log_level

    _settings = current.model_copy(update=updates) if updates else current
    return _settings
