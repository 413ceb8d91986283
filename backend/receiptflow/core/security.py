"""Bearer token verification against the identity provider.

This module verifies JWTs issued by the hosted auth provider and turns
their claims into an :class:`AuthenticatedPrincipal`. Two key sources
are supported:

* a shared HS256 secret (``AUTH_JWT_SECRET``), the legacy Supabase
  setup, verified locally;
* a JWKS endpoint (``AUTH_JWKS_URL``) for asymmetric keys. The key set
  is fetched on first use and cached in memory; an unknown ``kid``
  clears the cache and triggers one refetch (rotation scenario).

If ``AUTH_JWT_AUDIENCE`` and/or ``AUTH_JWT_ISSUER`` are set the
corresponding claims are validated, otherwise that check is skipped.
Every failure, including an unreachable JWKS endpoint, surfaces as
:class:`Unauthorized`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from jose import JWTError, jwt
from jose.exceptions import JOSEError

from receiptflow.core.config import Settings
from receiptflow.core.exceptions import Unauthorized
from receiptflow.models.schemas import AuthenticatedPrincipal

logger = logging.getLogger(__name__)


def parse_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized()
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise Unauthorized()
    return token


class ClaimsVerifier:
    """Verify bearer tokens and resolve the authenticated principal."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.secret = settings.AUTH_JWT_SECRET
        self.jwks_url = settings.AUTH_JWKS_URL
        self.audience = settings.AUTH_JWT_AUDIENCE
        self.issuer = settings.AUTH_JWT_ISSUER
        self.algorithms = list(settings.AUTH_JWT_ALGORITHMS)
        self.timeout = settings.AUTH_JWKS_TIMEOUT_SECONDS
        self._transport = transport
        # JWKS cache. Replaced wholesale, never mutated in place.
        self._jwks: Optional[Dict[str, Any]] = None

    async def _fetch_jwks(self) -> Dict[str, Any]:
        if not self.jwks_url:
            raise Unauthorized()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(self.jwks_url)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("JWKS fetch failed url=%s err=%s", self.jwks_url, exc)
            raise Unauthorized() from exc
        # basic shape check
        if not isinstance(data, dict) or not isinstance(data.get("keys"), list):
            logger.warning("JWKS payload has no keys url=%s", self.jwks_url)
            raise Unauthorized()
        self._jwks = data
        return data

    async def _signing_key(self, kid: Optional[str]) -> Dict[str, Any]:
        jwks = self._jwks or await self._fetch_jwks()
        key = next((k for k in jwks["keys"] if k.get("kid") == kid), None)
        if key is None:
            # Clear cache and retry once
            self._jwks = None
            jwks = await self._fetch_jwks()
            key = next((k for k in jwks["keys"] if k.get("kid") == kid), None)
            if key is None:
                raise Unauthorized()
        return key

    async def verify(self, token: str) -> AuthenticatedPrincipal:
        """Decode and verify ``token``.

        Raises:
            Unauthorized: If the token is malformed, expired, signed by an
                unknown key or lacks a ``sub`` claim.
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise Unauthorized() from exc

        alg = header.get("alg")
        if alg not in self.algorithms:
            raise Unauthorized()

        key: Any
        if alg.startswith("HS"):
            if not self.secret:
                raise Unauthorized()
            key = self.secret
        else:
            key = await self._signing_key(header.get("kid"))

        # Only verify audience/issuer when configured
        decode_kwargs: Dict[str, Any] = {"algorithms": [alg], "options": {}}
        if self.audience:
            decode_kwargs["audience"] = self.audience
        else:
            decode_kwargs["options"]["verify_aud"] = False
        if self.issuer:
            decode_kwargs["issuer"] = self.issuer

        try:
            payload = jwt.decode(token, key, **decode_kwargs)
        except JOSEError as exc:
            logger.info("Token rejected: %s", exc)
            raise Unauthorized() from exc

        subject = payload.get("sub")
        if not subject:
            raise Unauthorized()
        return AuthenticatedPrincipal(
            subject=str(subject),
            email=payload.get("email"),
            role=payload.get("role"),
            claims=payload,
        )
