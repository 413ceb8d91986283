"""Turn a model reply into a validated :class:`ReceiptExtraction`.

The tool-call arguments are the preferred source. Only when the model
produced no tool call at all do we fall back to its free-text content,
stripping markdown code fences first. A tool call whose arguments do
not parse is an error in its own right and does not fall back.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from receiptflow.core.exceptions import NormalizationError
from receiptflow.models.schemas import ModelInvocationResult, ReceiptExtraction

_LEADING_FENCE_RE = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
_TRAILING_FENCE_RE = re.compile(r"\n?[ \t]*```$")


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence, a trailing ``` and surrounding whitespace."""
    text = text.strip()
    text = _LEADING_FENCE_RE.sub("", text, count=1)
    text = _TRAILING_FENCE_RE.sub("", text, count=1)
    return text.strip()


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"non-finite number {name}")


def _parse(raw: str, source: str) -> Any:
    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except ValueError as exc:
        detail = exc.msg if isinstance(exc, json.JSONDecodeError) else str(exc)
        raise NormalizationError(f"Model returned invalid JSON in {source}: {detail}") from exc


def normalize(result: ModelInvocationResult) -> ReceiptExtraction:
    """Validate the model reply against the receipt schema.

    Raises:
        NormalizationError: If the selected channel is not valid JSON or
            the parsed object does not match ``ReceiptExtraction``.
    """
    if result.has_tool_call:
        data = _parse(result.tool_arguments or "", "tool call")
    else:
        data = _parse(strip_code_fences(result.content or ""), "message content")

    if not isinstance(data, dict):
        raise NormalizationError("Model output is not a JSON object")
    try:
        return ReceiptExtraction.model_validate(data)
    except ValidationError as exc:
        raise NormalizationError(f"Model output does not match receipt schema: {_describe(exc)}") from exc
