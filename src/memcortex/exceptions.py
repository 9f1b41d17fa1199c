"""
Exception hierarchy for memcortex.

All exceptions inherit from MemCortexError.

Only ``ConfigurationError`` ever reaches callers of the scoring engine.
Store and model failures are caught inside the engine and turned into
degraded but valid results.
"""

from __future__ import annotations

from typing import Any


class MemCortexError(Exception):
    """Base exception for all memcortex errors."""

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


class ConfigurationError(MemCortexError):
    """Invalid engine configuration, e.g. an inverted threshold pair."""


# Storage collaborator


class MemoryStoreError(MemCortexError):
    """A ``MemoryStore`` call failed."""

    def __init__(
        self,
        message: str,
        *,
        backend: str | None = None,
        memory_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.backend = backend
        self.memory_id = memory_id


class MemoryConnectionError(MemoryStoreError):
    """The backend is unreachable."""


class MemoryQueryError(MemoryStoreError):
    """A read or write was rejected by the backend."""


class MemoryNotFoundError(MemoryStoreError):
    """No record with the given id."""


# External scoring model


class LLMError(MemCortexError):
    """A completion backend failed."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        model: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.provider = provider
        self.model = model


class LLMConnectionError(LLMError):
    """The completion endpoint could not be reached or timed out."""


class LLMRequestError(LLMError):
    """The endpoint answered with an error status."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


class AuthenticationError(LLMRequestError):
    """Missing or rejected API key."""


class RateLimitError(LLMRequestError):
    """The endpoint is throttling requests."""


class ExternalModelError(LLMError):
    """The scoring model gave no usable verdict.

    Raised for timeouts, transport failures and malformed replies alike;
    the scorer falls back to heuristics on any of them.
    """

    def __init__(
        self,
        message: str,
        *,
        raw_response: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.raw_response = raw_response
