from __future__ import annotations

import base64
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from jose import jwt

# Add backend folder to sys.path so `import receiptflow...` works in tests when running from backend root
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from receiptflow.core.config import Settings  # noqa: E402
from receiptflow.models.schemas import InvocationRequest, ModelInvocationResult  # noqa: E402

JWT_SECRET = "test-jwt-secret"

ACME_RECEIPT: Dict[str, Any] = {
    "store_name": "ACME Mart",
    "receipt_date": "2024-03-01",
    "items": [
        {
            "item_name": "Milk",
            "quantity": 2,
            "unit_price": 1.50,
            "total_price": 3.00,
            "category": "groceries",
        }
    ],
    "total_amount": 3.00,
    "category": "groceries",
}

# A few real JPEG header bytes followed by filler
JPEG_BASE64 = base64.b64encode(b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 500).decode()


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "AI_GATEWAY_API_KEY": "test-gateway-key",
        "AI_GATEWAY_URL": "https://gateway.test/v1",
        "AUTH_JWT_SECRET": JWT_SECRET,
        "SENTRY_DSN": None,
    }
    values.update(overrides)
    return Settings(**values)


def make_token(secret: str = JWT_SECRET, **claims: Any) -> str:
    now = int(time.time())
    payload = {
        "sub": "user-123",
        "email": "user@example.com",
        "role": "authenticated",
        "aud": "authenticated",
        "iat": now,
        "exp": now + 3600,
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


def completion_body(
    arguments: Optional[str] = None,
    content: Optional[str] = None,
) -> Dict[str, Any]:
    """A chat.completion JSON document as returned by the gateway."""
    message: Dict[str, Any] = {"role": "assistant", "content": content}
    if arguments is not None:
        message["tool_calls"] = [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "extract_receipt_data", "arguments": arguments},
            }
        ]
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "google/gemini-3-flash-preview",
        "choices": [
            {
                "index": 0,
                "finish_reason": "tool_calls" if arguments is not None else "stop",
                "message": message,
            }
        ],
    }


class StubInvoker:
    """Stands in for ModelInvoker; records calls and replays a result or error."""

    def __init__(self, result: Optional[ModelInvocationResult] = None, error: Optional[BaseException] = None):
        self.result = result or ModelInvocationResult(tool_arguments=json.dumps(ACME_RECEIPT))
        self.error = error
        self.calls: List[InvocationRequest] = []

    async def invoke(self, invocation: InvocationRequest) -> ModelInvocationResult:
        self.calls.append(invocation)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def token() -> str:
    return make_token()


@pytest.fixture
def acme_receipt() -> Dict[str, Any]:
    return json.loads(json.dumps(ACME_RECEIPT))
