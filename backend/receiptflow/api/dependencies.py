"""Common dependencies for FastAPI routes.

Long-lived collaborators (settings, claims verifier, extraction service)
are created once in the application lifespan and stored on
``app.state``. Routes reach them through the functions below so tests
can swap them with ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from receiptflow.core.config import Settings
from receiptflow.core.security import ClaimsVerifier
from receiptflow.services.extraction_service import ExtractionService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_claims_verifier(request: Request) -> ClaimsVerifier:
    return request.app.state.claims_verifier


def get_extraction_service(request: Request) -> ExtractionService:
    return request.app.state.extraction_service
