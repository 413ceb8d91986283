"""
Exception handlers for FastAPI.

Every pipeline error is rendered as ``{"error": "<message>"}`` with the
status code from ``ERROR_STATUS_TABLE``. Kinds with a fixed message
ignore the exception text so provider bodies never reach the caller.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple, Type

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_402_PAYMENT_REQUIRED,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from receiptflow.core.exceptions import (
    ConfigurationError,
    InvalidInput,
    NormalizationError,
    ProviderError,
    QuotaExceeded,
    RateLimited,
    ReceiptPipelineError,
    Unauthorized,
)
from receiptflow.core.observability import capture_exception

logger = logging.getLogger(__name__)

# kind -> (status, fixed message). ``None`` means "use the exception's message".
ERROR_STATUS_TABLE: Dict[Type[ReceiptPipelineError], Tuple[int, Optional[str]]] = {
    Unauthorized: (HTTP_401_UNAUTHORIZED, "Unauthorized"),
    InvalidInput: (HTTP_400_BAD_REQUEST, None),
    RateLimited: (HTTP_429_TOO_MANY_REQUESTS, "Rate limit exceeded. Please try again later."),
    QuotaExceeded: (HTTP_402_PAYMENT_REQUIRED, "AI credits exhausted. Please add credits."),
    ProviderError: (HTTP_500_INTERNAL_SERVER_ERROR, None),
    NormalizationError: (HTTP_500_INTERNAL_SERVER_ERROR, None),
    ConfigurationError: (HTTP_500_INTERNAL_SERVER_ERROR, None),
}


def resolve_error(exc: ReceiptPipelineError) -> Tuple[int, str]:
    """Return ``(status_code, message)`` for a pipeline error."""
    for kind in type(exc).__mro__:
        if kind in ERROR_STATUS_TABLE:
            status_code, message = ERROR_STATUS_TABLE[kind]
            return status_code, message or exc.message or kind.__name__
    return HTTP_500_INTERNAL_SERVER_ERROR, exc.message or type(exc).__name__


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def pipeline_exception_handler(request: Request, exc: ReceiptPipelineError):
    status_code, message = resolve_error(exc)
    if status_code >= 500:
        capture_exception(exc)
    logger.info("%s %s -> %s (%s)", request.method, request.url.path, status_code, exc.state.value)
    return error_response(status_code, message)


def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    capture_exception(exc)
    return error_response(HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Unknown error")


async def catch_unhandled_exceptions(request: Request, call_next):
    """Render uncaught errors inside the CORS layer so browsers can read them."""
    try:
        return await call_next(request)
    except Exception as exc:
        return generic_exception_handler(request, exc)
