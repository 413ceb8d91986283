"""Default prompt text for receipt extraction.

Keeping prompts in a central location makes it easier to iterate on
their content and ensure consistency between the system instruction
and the tool schema built in ``receiptflow.services.invocation_builder``.
"""

from __future__ import annotations

from textwrap import dedent

from receiptflow.models.enums import ExpenseCategory


USER_INSTRUCTION = (
    "Analyze this receipt image and extract all items, prices, store name, "
    "date, and total. Return JSON only."
)


def get_default_extraction_prompt() -> str:
    """Return the system instruction used for extracting receipt data.

    The prompt spells out the exact JSON shape of ``ReceiptExtraction``
    and the closed category set. It doubles as the contract for models
    that ignore the forced tool call and answer in free text.
    """
    categories = ", ".join(ExpenseCategory.values())
    return dedent(
        """
        You are a receipt analyzer. Extract data from receipt images and return structured JSON.
        Always respond with a JSON object using this exact schema:
        {
          "store_name": "string",
          "receipt_date": "YYYY-MM-DD",
          "items": [
            {
              "item_name": "string",
              "quantity": number,
              "unit_price": number,
              "total_price": number,
              "category": "string"
            }
          ],
          "total_amount": number,
          "category": "string"
        }

        Categories must be one of: %s.
        The main category should be the most common category among items.
        If you cannot read a value, use null. Always return valid JSON only, no markdown.
        """
    ).strip() % categories
