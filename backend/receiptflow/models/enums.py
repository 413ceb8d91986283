"""Enumeration types used throughout the receipt extraction service.

Enumerations make it easier to constrain the values that can be passed
through the API. ``ExpenseCategory`` is shared by the prompt, the tool
schema sent to the model and the pydantic validation of the reply, so
all three stay in sync when a category is added.
"""

from enum import Enum


class ExpenseCategory(str, Enum):
    """Closed set of spending categories for receipts and line items."""

    FOOD = "food"
    GROCERIES = "groceries"
    TRANSPORT = "transport"
    HEALTH = "health"
    ENTERTAINMENT = "entertainment"
    UTILITIES = "utilities"
    SHOPPING = "shopping"
    OTHER = "other"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class PipelineState(str, Enum):
    """Stages of a single extraction request.

    ``SUCCEEDED`` and every state after it are terminal.
    """

    START = "start"
    AUTHENTICATING = "authenticating"
    VALIDATING = "validating"
    BUILDING = "building"
    INVOKING = "invoking"
    NORMALIZING = "normalizing"
    SUCCEEDED = "succeeded"
    UNAUTHORIZED = "unauthorized"
    INVALID_INPUT = "invalid_input"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    PROVIDER_ERROR = "provider_error"
    NORMALIZATION_FAILED = "normalization_failed"
    CONFIG_ERROR = "config_error"
