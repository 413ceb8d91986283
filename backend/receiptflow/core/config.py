"""Configuration management.

This module defines a ``Settings`` class that reads configuration
values from environment variables and provides sensible defaults.
``.env`` support is implemented by loading files from the repository
root in a defined order. You can override any value via environment
variables.

The settings object is built once at process start and handed to the
components that need it. Call :meth:`Settings.require` during startup
so that a missing gateway key or identity configuration stops the
process instead of failing individual requests.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from receiptflow.core.exceptions import ConfigurationError

# -----------------------------------------------------------------------------
# .env loading
#
# Prefer a .env in the repository root but allow fallback to whatever
# python-dotenv discovers from the current working directory. Files are
# loaded in order without overriding already-set variables.

_THIS_FILE = Path(__file__).resolve()
_REPO_ROOT = _THIS_FILE.parents[3]
_ROOT_ENV = _REPO_ROOT / ".env"

_candidate_envs: list[str] = []
if _ROOT_ENV.exists():
    _candidate_envs.append(str(_ROOT_ENV))

_FOUND_ENV = find_dotenv(usecwd=True)
if _FOUND_ENV and _FOUND_ENV not in _candidate_envs:
    _candidate_envs.append(_FOUND_ENV)

for _env_path in _candidate_envs:
    load_dotenv(dotenv_path=_env_path, override=False)


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from the environment with sensible defaults. Any
    attribute defined here can be overridden by setting the corresponding
    environment variable.
    """

    model_config = SettingsConfigDict(
        env_file=tuple(_candidate_envs) if _candidate_envs else (".env",),
        case_sensitive=True,
        extra="ignore",
    )

    # API Settings
    PROJECT_NAME: str = "receiptflow"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # AI gateway (OpenAI-compatible chat completions endpoint)
    AI_GATEWAY_API_KEY: Optional[str] = Field(default=None)
    AI_GATEWAY_URL: str = Field(default="https://ai.gateway.lovable.dev/v1")
    EXTRACTION_MODEL: str = Field(default="google/gemini-3-flash-preview")
    EXTRACTION_TIMEOUT_SECONDS: float = Field(default=60.0, gt=0)

    # Upload limits
    MAX_IMAGE_BYTES: int = Field(default=10 * 1024 * 1024, gt=0)  # 10MB

    # Identity provider. Either a shared HS256 secret or a JWKS endpoint
    # (e.g. `https://<project>.supabase.co/auth/v1/.well-known/jwks.json`).
    AUTH_JWT_SECRET: Optional[str] = Field(default=None)
    AUTH_JWKS_URL: Optional[str] = Field(default=None)
    AUTH_JWT_AUDIENCE: Optional[str] = Field(default=None)
    AUTH_JWT_ISSUER: Optional[str] = Field(default=None)
    AUTH_JWT_ALGORITHMS: List[str] = Field(default=["HS256", "RS256", "ES256"])
    AUTH_JWKS_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    # Sentry
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.0)
    SENTRY_RELEASE: Optional[str] = Field(default=None)

    def require(self) -> "Settings":
        """Fail fast when settings needed to serve requests are missing.

        Returns ``self`` so the call can be chained at startup.
        """
        if not self.AI_GATEWAY_API_KEY:
            raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")
        if not (self.AUTH_JWT_SECRET or self.AUTH_JWKS_URL):
            raise ConfigurationError(
                "Either AUTH_JWT_SECRET or AUTH_JWKS_URL must be configured"
            )
        return self


# Instantiate global settings
settings = Settings()


# Request headers browsers may send to the extraction endpoint
CORS_ALLOW_HEADERS: list[str] = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
    "x-supabase-client-platform",
    "x-supabase-client-platform-version",
    "x-supabase-client-runtime",
    "x-supabase-client-runtime-version",
]
