"""Request gatekeeping: authenticate first, then validate the payload.

Nothing in here talks to the model. A request only reaches the
extraction service once :func:`authenticate_and_validate` has resolved
a principal and returned a clean base64 string, so a rejected request
never costs gateway credits.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from receiptflow.core.exceptions import InvalidInput
from receiptflow.core.observability import sentry_breadcrumb
from receiptflow.core.security import ClaimsVerifier, parse_bearer_token
from receiptflow.models.enums import PipelineState
from receiptflow.models.schemas import AuthenticatedPrincipal
from receiptflow.utils.image_processing import is_base64_text, max_encoded_length

logger = logging.getLogger(__name__)

MSG_NO_IMAGE = "No image provided"
MSG_IMAGE_TOO_LARGE = "Image too large (max %dMB)"
MSG_INVALID_FORMAT = "Invalid image format"

DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024


def validate_image_payload(payload: Any, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> str:
    """Return the ``imageBase64`` field of ``payload`` if it is acceptable.

    Checks run in a fixed order: presence, size, then alphabet.
    """
    image = payload.get("imageBase64") if isinstance(payload, dict) else None
    if not image or not isinstance(image, str):
        raise InvalidInput(MSG_NO_IMAGE)
    if len(image) > max_encoded_length(max_bytes):
        raise InvalidInput(MSG_IMAGE_TOO_LARGE % (max_bytes // (1024 * 1024)))
    if not is_base64_text(image):
        raise InvalidInput(MSG_INVALID_FORMAT)
    return image


async def authenticate_and_validate(
    authorization: Optional[str],
    payload: Any,
    verifier: ClaimsVerifier,
    max_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> Tuple[AuthenticatedPrincipal, str]:
    """Resolve the caller and validate their upload.

    ``payload`` is the decoded JSON body, or ``None`` when the body could
    not be parsed; it is not looked at until authentication succeeded.
    """
    sentry_breadcrumb("gatekeeper", PipelineState.AUTHENTICATING.value)
    token = parse_bearer_token(authorization)
    principal = await verifier.verify(token)

    sentry_breadcrumb("gatekeeper", PipelineState.VALIDATING.value)
    image = validate_image_payload(payload, max_bytes=max_bytes)
    logger.debug("Gatekeeper passed subject=%s encoded_len=%d", principal.subject, len(image))
    return principal, image
