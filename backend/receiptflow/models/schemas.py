"""Pydantic schemas for the extraction pipeline.

Pydantic models are used for validating and serialising data that
crosses the boundary of the service. ``ReceiptExtraction`` is the
canonical output: the normaliser only ever returns an instance that
passed validation, so callers can persist it without further checks.
The remaining models describe the transient, request-scoped values
passed between pipeline stages.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from .enums import ExpenseCategory


# ---------------------------------------------------------------------------
# Domain schemas matching the extraction tool contract


def _coerce_category(value: Any) -> Any:
    # Models occasionally answer "Groceries" or " food "
    if isinstance(value, str):
        return value.strip().lower()
    return value


Category = Annotated[ExpenseCategory, BeforeValidator(_coerce_category)]


class ExpenseItem(BaseModel):
    """Individual line item on a receipt."""

    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    item_name: str
    quantity: Optional[float] = Field(default=None, ge=0, strict=True)
    unit_price: Optional[float] = Field(default=None, ge=0, strict=True)
    total_price: float = Field(ge=0, strict=True)
    category: Category


class ReceiptExtraction(BaseModel):
    """Complete structured receipt returned by the extraction pipeline."""

    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    store_name: Optional[str]
    receipt_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    items: List[ExpenseItem]
    total_amount: float = Field(ge=0, strict=True)
    category: Category

    @field_validator("receipt_date")
    @classmethod
    def check_iso_date(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        try:
            date.fromisoformat(value)
        except ValueError as exc:
            raise ValueError(f"receipt_date must be an ISO 8601 date, got {value!r}") from exc
        return value


# ---------------------------------------------------------------------------
# Pipeline values


class AuthenticatedPrincipal(BaseModel):
    """Identity resolved from a verified bearer token."""

    model_config = ConfigDict(frozen=True)

    subject: str
    email: Optional[str] = None
    role: Optional[str] = None
    claims: Dict[str, Any] = Field(default_factory=dict)


class InvocationRequest(BaseModel):
    """A fully assembled chat-completion request for the AI gateway."""

    model_config = ConfigDict(frozen=True)

    model: str
    messages: List[Dict[str, Any]]
    tools: List[Dict[str, Any]]
    tool_choice: Dict[str, Any]

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()


class ModelInvocationResult(BaseModel):
    """The provider reply reduced to the two channels we can read data from."""

    model_config = ConfigDict(frozen=True)

    tool_name: Optional[str] = None
    tool_arguments: Optional[str] = None
    content: Optional[str] = None
    finish_reason: Optional[str] = None

    @property
    def has_tool_call(self) -> bool:
        return self.tool_arguments is not None


# ---------------------------------------------------------------------------
# API response schemas


class AnalyzeReceiptResponse(BaseModel):
    data: ReceiptExtraction


class ErrorResponse(BaseModel):
    error: str
