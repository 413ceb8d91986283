"""Top-level package for the receipt extraction service.

The service exposes one operation: take a base64 receipt image, check
the caller's bearer token and the payload, ask a vision model for
structured line items through a forced function call, and return a
validated ``ReceiptExtraction``. Persistence, browsing and reporting
belong to the callers.

To run the API locally you can execute:

```bash
uvicorn receiptflow.api.main:app --reload
```

Configuration values come from environment variables or a ``.env``
file at the project root (see ``receiptflow.core.config``).
"""

__all__: list[str] = []
