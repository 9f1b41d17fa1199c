"""Configuration module for memcortex."""

from memcortex.config.scoring import DEFAULT_SCORING_CONFIG, ExternalModelConfig, ScoringConfig
from memcortex.config.settings import (
    CaptureSettings,
    CortexSettings,
    ExternalModelSettings,
    ScoringSettings,
    configure,
    get_settings,
)

__all__ = [
    "ScoringConfig",
    "ExternalModelConfig",
    "DEFAULT_SCORING_CONFIG",
    "CortexSettings",
    "ScoringSettings",
    "ExternalModelSettings",
    "CaptureSettings",
    "configure",
    "get_settings",
]
