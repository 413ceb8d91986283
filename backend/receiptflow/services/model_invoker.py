"""Outbound call to the OpenAI-compatible AI gateway.

The invoker makes exactly one request per extraction. The SDK's own
retry loop is disabled: whether to retry is the caller's decision,
informed by the difference between :class:`RateLimited` and
:class:`QuotaExceeded`. Provider failures are classified by HTTP status:

* 429 -> ``RateLimited``
* 402 -> ``QuotaExceeded``
* anything else -> ``ProviderError`` carrying status and raw body

Timeouts are reported as status 504 and connection failures as 502.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from receiptflow.core.config import Settings
from receiptflow.core.exceptions import (
    ConfigurationError,
    ProviderError,
    QuotaExceeded,
    RateLimited,
    ReceiptPipelineError,
)
from receiptflow.models.schemas import InvocationRequest, ModelInvocationResult

logger = logging.getLogger(__name__)

TIMEOUT_STATUS = 504
CONNECTION_ERROR_STATUS = 502


def classify_provider_status(status_code: int, body: Optional[str] = None) -> ReceiptPipelineError:
    """Map a non-success gateway status to the matching pipeline error."""
    if status_code == 429:
        return RateLimited("Rate limit exceeded")
    if status_code == 402:
        return QuotaExceeded("AI credits exhausted")
    return ProviderError(status_code, body)


def reduce_completion(completion: Any) -> ModelInvocationResult:
    """Keep only the parts of a chat completion the normaliser reads."""
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return ModelInvocationResult()
    choice = choices[0]
    message = getattr(choice, "message", None)
    tool_calls = getattr(message, "tool_calls", None) or []
    function = getattr(tool_calls[0], "function", None) if tool_calls else None
    return ModelInvocationResult(
        tool_name=getattr(function, "name", None),
        tool_arguments=getattr(function, "arguments", None),
        content=getattr(message, "content", None),
        finish_reason=getattr(choice, "finish_reason", None),
    )


class ModelInvoker:
    """Send an :class:`InvocationRequest` to the gateway and read the reply."""

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None) -> None:
        if not settings.AI_GATEWAY_API_KEY:
            raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")
        self.client = client or AsyncOpenAI(
            api_key=settings.AI_GATEWAY_API_KEY,
            base_url=settings.AI_GATEWAY_URL,
            timeout=settings.EXTRACTION_TIMEOUT_SECONDS,
            max_retries=0,
        )

    async def invoke(self, invocation: InvocationRequest) -> ModelInvocationResult:
        try:
            completion = await self.client.chat.completions.create(**invocation.to_payload())
        except openai.APITimeoutError as exc:
            logger.error("AI gateway timeout model=%s", invocation.model)
            raise ProviderError(TIMEOUT_STATUS, "timeout") from exc
        except openai.APIConnectionError as exc:
            logger.error("AI gateway unreachable model=%s err=%s", invocation.model, exc)
            raise ProviderError(CONNECTION_ERROR_STATUS, str(exc)) from exc
        except openai.APIStatusError as exc:
            body = exc.response.text
            logger.error("AI gateway error: %s %s", exc.status_code, body)
            raise classify_provider_status(exc.status_code, body) from exc
        return reduce_completion(completion)
