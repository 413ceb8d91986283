"""Error taxonomy for the receipt extraction pipeline.

Every failure the pipeline can produce is one of the classes below.
Each carries the terminal :class:`PipelineState` it represents so that
logs and error reports can say where a request stopped. Translation to
HTTP responses lives in ``receiptflow.api.error_handlers``.
"""

from __future__ import annotations

from typing import Optional

from receiptflow.models.enums import PipelineState


class ReceiptPipelineError(Exception):
    """Base class for all pipeline failures."""

    state: PipelineState = PipelineState.PROVIDER_ERROR

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(ReceiptPipelineError):
    """Missing, malformed or unverifiable bearer credential."""

    state = PipelineState.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class InvalidInput(ReceiptPipelineError):
    """The request payload failed validation before any model call."""

    state = PipelineState.INVALID_INPUT


class ConfigurationError(ReceiptPipelineError):
    """A required setting is missing. Fatal for the whole process."""

    state = PipelineState.CONFIG_ERROR


class RateLimited(ReceiptPipelineError):
    """The provider asked us to slow down. Callers may retry later."""

    state = PipelineState.RATE_LIMITED


class QuotaExceeded(ReceiptPipelineError):
    """Provider credits are exhausted. Not retryable without operator action."""

    state = PipelineState.QUOTA_EXCEEDED


class ProviderError(ReceiptPipelineError):
    """Any other upstream failure, including timeouts and connection errors."""

    state = PipelineState.PROVIDER_ERROR

    def __init__(self, status_code: int, body: Optional[str] = None) -> None:
        super().__init__(f"AI gateway error: {status_code}")
        self.status_code = status_code
        self.body = body


class NormalizationError(ReceiptPipelineError):
    """The model reply was not valid JSON or did not match the receipt schema."""

    state = PipelineState.NORMALIZATION_FAILED


__all__ = [
    "ReceiptPipelineError",
    "Unauthorized",
    "InvalidInput",
    "ConfigurationError",
    "RateLimited",
    "QuotaExceeded",
    "ProviderError",
    "NormalizationError",
]
