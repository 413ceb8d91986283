"""Observability helpers (Sentry init & common scrubbing).

Keeps initialisation a no-op when no DSN is configured. Receipt images
and bearer tokens must never leave the process, so ``_before_send``
drops request bodies and credential headers from every event.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from receiptflow.core.config import Settings

_SCRUBBED_HEADERS = ("authorization", "apikey", "cookie", "set-cookie", "x-api-key")

_initialised = False


def _before_send(event: Dict[str, Any], hint: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Scrub secrets and payloads before sending to Sentry.

    - Drop Authorization, apikey & Cookie headers
    - Remove request data/body (keep method + URL)
    """
    req = event.get("request") or {}
    headers = req.get("headers") or {}
    for k in list(headers.keys()):
        if k.lower() in _SCRUBBED_HEADERS:
            headers.pop(k, None)
    req.pop("data", None)
    event["request"] = req
    return event


def init_sentry(settings: Settings, service: str) -> bool:
    """Initialise Sentry once for this process.

    Returns True if Sentry is active; False otherwise.
    """
    global _initialised
    if not settings.SENTRY_DSN:
        return False
    if _initialised:
        return True
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        integrations=[FastApiIntegration()],
        traces_sample_rate=float(settings.SENTRY_TRACES_SAMPLE_RATE or 0),
        environment=settings.ENVIRONMENT,
        release=settings.SENTRY_RELEASE,
        send_default_pii=False,
        before_send=_before_send,
    )
    sentry_sdk.set_tag("service", service)
    _initialised = True
    return True


def sentry_breadcrumb(category: str, message: str, level: str = "info", data: Optional[Dict[str, Any]] = None) -> None:
    """Add a breadcrumb for a pipeline step. No-op without an active client."""
    sentry_sdk.add_breadcrumb(category=category, message=message, level=level, data=data or {})


def capture_exception(exc: BaseException) -> None:
    sentry_sdk.capture_exception(exc)


__all__ = ["init_sentry", "sentry_breadcrumb", "capture_exception"]
