from __future__ import annotations

import base64

from receiptflow.models.enums import ExpenseCategory
from receiptflow.services.invocation_builder import (
    EXTRACTION_TOOL_NAME,
    build_extraction_tool,
    build_invocation,
)
from receiptflow.utils.image_processing import detect_media_type
from receiptflow.utils.prompts import get_default_extraction_prompt

from conftest import JPEG_BASE64

CATEGORIES = ["food", "groceries", "transport", "health", "entertainment", "utilities", "shopping", "other"]


def test_tool_schema_mirrors_receipt_shape():
    tool = build_extraction_tool()
    assert tool["type"] == "function"
    fn = tool["function"]
    assert fn["name"] == "extract_receipt_data"

    params = fn["parameters"]
    assert params["required"] == ["store_name", "items", "total_amount", "category"]
    assert set(params["properties"]) == {"store_name", "receipt_date", "items", "total_amount", "category"}
    assert params["properties"]["category"]["enum"] == CATEGORIES

    item = params["properties"]["items"]["items"]
    assert item["required"] == ["item_name", "total_price", "category"]
    assert set(item["properties"]) == {"item_name", "quantity", "unit_price", "total_price", "category"}
    assert item["properties"]["category"]["enum"] == CATEGORIES


def test_category_enum_matches_model_enum():
    assert ExpenseCategory.values() == CATEGORIES


def test_invocation_forces_tool_call():
    invocation = build_invocation(JPEG_BASE64, model="google/gemini-3-flash-preview")

    assert invocation.model == "google/gemini-3-flash-preview"
    assert invocation.tool_choice == {"type": "function", "function": {"name": EXTRACTION_TOOL_NAME}}
    assert [t["function"]["name"] for t in invocation.tools] == [EXTRACTION_TOOL_NAME]


def test_invocation_messages_carry_prompt_and_image():
    invocation = build_invocation(JPEG_BASE64, model="m")
    system, user = invocation.messages

    assert system["role"] == "system"
    assert system["content"] == get_default_extraction_prompt()
    assert user["role"] == "user"
    text, image = user["content"]
    assert text["type"] == "text"
    assert image["type"] == "image_url"
    assert image["image_url"]["url"] == f"data:image/jpeg;base64,{JPEG_BASE64}"


def test_system_prompt_lists_every_category():
    prompt = get_default_extraction_prompt()
    assert "Categories must be one of: " + ", ".join(CATEGORIES) + "." in prompt
    assert '"store_name"' in prompt
    assert "no markdown" in prompt


def test_builder_is_pure():
    assert build_invocation(JPEG_BASE64, "m") == build_invocation(JPEG_BASE64, "m")


def test_payload_is_plain_dict():
    payload = build_invocation(JPEG_BASE64, "m").to_payload()
    assert set(payload) == {"model", "messages", "tools", "tool_choice"}


def test_media_type_sniffing():
    png = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 8).decode()
    gif = base64.b64encode(b"GIF89a" + b"\x00" * 6).decode()
    webp = base64.b64encode(b"RIFF\x00\x00\x00\x00WEBPVP8 ").decode()

    assert detect_media_type(JPEG_BASE64) == "image/jpeg"
    assert detect_media_type(png) == "image/png"
    assert detect_media_type(gif) == "image/gif"
    assert detect_media_type(webp) == "image/webp"
    assert detect_media_type("AAAA") == "image/jpeg"


def test_png_upload_gets_png_data_uri():
    png = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 8).decode()
    url = build_invocation(png, "m").messages[1]["content"][1]["image_url"]["url"]
    assert url.startswith("data:image/png;base64,iVBORw0KGgo")
