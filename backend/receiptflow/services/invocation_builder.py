"""Assemble the chat-completion request sent to the AI gateway.

The request forces the model to answer through a single function,
``extract_receipt_data``, whose parameter schema mirrors
``ReceiptExtraction``. The system instruction repeats the same shape in
prose for models that answer in free text anyway.
"""

from __future__ import annotations

from typing import Any, Dict

from receiptflow.models.enums import ExpenseCategory
from receiptflow.models.schemas import InvocationRequest
from receiptflow.utils.image_processing import to_data_uri
from receiptflow.utils.prompts import USER_INSTRUCTION, get_default_extraction_prompt

EXTRACTION_TOOL_NAME = "extract_receipt_data"


def build_extraction_tool() -> Dict[str, Any]:
    """Return the function definition describing a receipt."""
    category = {"type": "string", "enum": ExpenseCategory.values()}
    return {
        "type": "function",
        "function": {
            "name": EXTRACTION_TOOL_NAME,
            "description": "Extract structured data from a receipt image",
            "parameters": {
                "type": "object",
                "properties": {
                    "store_name": {"type": "string"},
                    "receipt_date": {"type": "string", "description": "YYYY-MM-DD format"},
                    "items": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "item_name": {"type": "string"},
                                "quantity": {"type": "number"},
                                "unit_price": {"type": "number"},
                                "total_price": {"type": "number"},
                                "category": dict(category),
                            },
                            "required": ["item_name", "total_price", "category"],
                        },
                    },
                    "total_amount": {"type": "number"},
                    "category": dict(category),
                },
                "required": ["store_name", "items", "total_amount", "category"],
            },
        },
    }


def build_invocation(image_base64: str, model: str) -> InvocationRequest:
    """Build the gateway request for one receipt image. Pure."""
    return InvocationRequest(
        model=model,
        messages=[
            {"role": "system", "content": get_default_extraction_prompt()},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": USER_INSTRUCTION},
                    {"type": "image_url", "image_url": {"url": to_data_uri(image_base64)}},
                ],
            },
        ],
        tools=[build_extraction_tool()],
        tool_choice={"type": "function", "function": {"name": EXTRACTION_TOOL_NAME}},
    )
