"""Helpers for base64-encoded receipt images.

Images arrive as base64 text and are forwarded to the model as a data
URI without being decoded, so everything here works on the encoded
form. The media type is sniffed from the leading characters of the
encoding, which correspond to each format's magic bytes.
"""

from __future__ import annotations

import re

# Base64 output is about 4/3 the size of the raw bytes
BASE64_EXPANSION = 1.37

DEFAULT_MEDIA_TYPE = "image/jpeg"

_BASE64_RE = re.compile(r"[A-Za-z0-9+/=]+")

# Encoded prefixes of common image signatures
_SIGNATURES: tuple[tuple[str, str], ...] = (
    ("/9j/", "image/jpeg"),
    ("iVBORw0KGgo", "image/png"),
    ("R0lGOD", "image/gif"),
    ("UklGR", "image/webp"),
    ("AAAAGGZ0eXBoZWlj", "image/heic"),
    ("AAAAHGZ0eXBoZWlj", "image/heic"),
)


def max_encoded_length(max_bytes: int) -> float:
    """Longest accepted base64 string for an image of ``max_bytes``."""
    return max_bytes * BASE64_EXPANSION


def is_base64_text(value: str) -> bool:
    return bool(_BASE64_RE.fullmatch(value))


def detect_media_type(image_base64: str) -> str:
    """Guess the image media type from the start of its base64 encoding.

    Falls back to ``image/jpeg`` when the signature is not recognised.
    """
    for prefix, media_type in _SIGNATURES:
        if image_base64.startswith(prefix):
            return media_type
    return DEFAULT_MEDIA_TYPE


def to_data_uri(image_base64: str) -> str:
    return f"data:{detect_media_type(image_base64)};base64,{image_base64}"
