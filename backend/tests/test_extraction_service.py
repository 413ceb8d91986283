from __future__ import annotations

import json
import logging

import pytest

from receiptflow.api.error_handlers import resolve_error
from receiptflow.core.exceptions import (
    ConfigurationError,
    InvalidInput,
    NormalizationError,
    ProviderError,
    QuotaExceeded,
    RateLimited,
    Unauthorized,
)
from receiptflow.models.enums import ExpenseCategory, PipelineState
from receiptflow.models.schemas import ModelInvocationResult
from receiptflow.services.extraction_service import ExtractionService

from conftest import ACME_RECEIPT, JPEG_BASE64, StubInvoker, make_settings


async def test_extract_returns_validated_receipt():
    invoker = StubInvoker()
    service = ExtractionService(make_settings(EXTRACTION_MODEL="openai/gpt-4o"), invoker=invoker)

    receipt = await service.extract(JPEG_BASE64)

    assert receipt.store_name == "ACME Mart"
    assert receipt.category is ExpenseCategory.GROCERIES
    assert [call.model for call in invoker.calls] == ["openai/gpt-4o"]


async def test_provider_errors_propagate_unchanged(caplog):
    error = QuotaExceeded("AI credits exhausted")
    service = ExtractionService(make_settings(), invoker=StubInvoker(error=error))

    with caplog.at_level(logging.WARNING, logger="receiptflow.services.extraction_service"):
        with pytest.raises(QuotaExceeded) as exc_info:
            await service.extract(JPEG_BASE64)

    assert exc_info.value is error
    assert "state=quota_exceeded" in caplog.text


async def test_normalization_failure_surfaces():
    bad = dict(ACME_RECEIPT, total_amount="lots")
    invoker = StubInvoker(result=ModelInvocationResult(tool_arguments=json.dumps(bad)))
    service = ExtractionService(make_settings(), invoker=invoker)

    with pytest.raises(NormalizationError) as exc_info:
        await service.extract(JPEG_BASE64)
    assert exc_info.value.state is PipelineState.NORMALIZATION_FAILED


def test_service_without_gateway_key_cannot_be_built():
    with pytest.raises(ConfigurationError):
        ExtractionService(make_settings(AI_GATEWAY_API_KEY=None))


@pytest.mark.parametrize(
    "exc,expected",
    [
        (Unauthorized(), (401, "Unauthorized")),
        (Unauthorized("token expired"), (401, "Unauthorized")),
        (InvalidInput("Invalid image format"), (400, "Invalid image format")),
        (RateLimited("upstream text"), (429, "Rate limit exceeded. Please try again later.")),
        (QuotaExceeded("upstream text"), (402, "AI credits exhausted. Please add credits.")),
        (ProviderError(418, "teapot"), (500, "AI gateway error: 418")),
        (NormalizationError("bad reply"), (500, "bad reply")),
        (ConfigurationError("AI_GATEWAY_API_KEY is not configured"), (500, "AI_GATEWAY_API_KEY is not configured")),
    ],
)
def test_error_status_table(exc, expected):
    assert resolve_error(exc) == expected
