"""Entry point for the FastAPI application.

This module constructs the FastAPI app, includes the routers and sets
up the lifespan hook. Startup validates configuration and builds the
shared collaborators (claims verifier, extraction service); a missing
gateway key or identity setting aborts startup with a
``ConfigurationError``.

Run locally with::

    uvicorn receiptflow.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from receiptflow.api.endpoints.health import router as health_router
from receiptflow.api.error_handlers import (
    catch_unhandled_exceptions,
    generic_exception_handler,
    http_exception_handler,
    pipeline_exception_handler,
)
from receiptflow.api.routes.receipts import router as receipts_router
from receiptflow.core import config
from receiptflow.core.config import CORS_ALLOW_HEADERS, Settings
from receiptflow.core.exceptions import ReceiptPipelineError
from receiptflow.core.observability import init_sentry
from receiptflow.core.security import ClaimsVerifier
from receiptflow.services.extraction_service import ExtractionService

# Configure logging
logging.basicConfig(level=config.settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    settings: Settings = app.state.settings
    # Startup
    logger.info("Starting up...")
    settings.require()
    if init_sentry(settings, "api"):
        logger.info("Sentry SDK initialized (api)")
    app.state.claims_verifier = ClaimsVerifier(settings)
    app.state.extraction_service = ExtractionService(settings)
    logger.info("Extraction model=%s gateway=%s", settings.EXTRACTION_MODEL, settings.AI_GATEWAY_URL)
    yield
    # Shutdown
    logger.info("Shutting down...")
    await app.state.extraction_service.invoker.client.close()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or config.settings
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Registered first so CORSMiddleware wraps it
    app.middleware("http")(catch_unhandled_exceptions)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    # Register custom exception handlers
    app.add_exception_handler(ReceiptPipelineError, pipeline_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Include routers
    app.include_router(receipts_router, prefix="/functions/v1")
    app.include_router(receipts_router)
    app.include_router(health_router)
    return app


app = create_app()
