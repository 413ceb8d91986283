"""API routes for receipt analysis."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response

from receiptflow.api.dependencies import get_claims_verifier, get_extraction_service, get_settings
from receiptflow.core.config import CORS_ALLOW_HEADERS, Settings
from receiptflow.core.security import ClaimsVerifier
from receiptflow.models.schemas import AnalyzeReceiptResponse, ErrorResponse
from receiptflow.services.extraction_service import ExtractionService
from receiptflow.services.gatekeeper import authenticate_and_validate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["receipts"])

_error_responses: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorResponse} for code in (400, 401, 402, 429, 500)
}


async def _read_json(request: Request) -> Any:
    """Decoded JSON body, or ``None`` if the body is not valid JSON."""
    try:
        return await request.json()
    except ValueError:
        return None


@router.options("/analyze-receipt", include_in_schema=False)
async def analyze_receipt_preflight() -> Response:
    # Browser preflights are answered by CORSMiddleware; this covers bare OPTIONS calls.
    return Response(
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
        }
    )


@router.post("/analyze-receipt", response_model=AnalyzeReceiptResponse, responses=_error_responses)
async def analyze_receipt(
    request: Request,
    settings: Settings = Depends(get_settings),
    verifier: ClaimsVerifier = Depends(get_claims_verifier),
    service: ExtractionService = Depends(get_extraction_service),
) -> AnalyzeReceiptResponse:
    """Extract structured data from a base64-encoded receipt image.

    The caller is authenticated before the body is inspected, and the
    body is validated before the model is called.
    """
    payload = await _read_json(request)
    principal, image = await authenticate_and_validate(
        request.headers.get("Authorization"),
        payload,
        verifier,
        max_bytes=settings.MAX_IMAGE_BYTES,
    )
    logger.info("analyze-receipt subject=%s", principal.subject)
    extraction = await service.extract(image)
    return AnalyzeReceiptResponse(data=extraction)
