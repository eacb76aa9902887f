"""Responses API output inspection."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from gptconnector.core.models import StructuredReply
from gptconnector.util.debug_excerpt import excerpt_for_debug
from gptconnector.util.logger import get_logger

logger = get_logger("output")


def _output_items(response: dict[str, Any]) -> list[dict[str, Any]]:
    items = response.get("output")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def consolidated_text(response: dict[str, Any]) -> str:
    """Return ``output_text`` when present, otherwise join the text parts of all output items."""
    output_text = response.get("output_text")
    if isinstance(output_text, str) and output_text:
        return output_text

    chunks: list[str] = []
    for item in _output_items(response):
        content = item.get("content")
        if not isinstance(content, list):
            continue
        texts: list[str] = []
        for part in content:
            if not isinstance(part, dict):
                continue
            text = part.get("text")
            if isinstance(text, dict):
                text = text.get("value")
            if isinstance(text, str):
                texts.append(text)
        chunks.append("".join(texts))
    return "\n".join(chunks).strip()


def function_calls(response: dict[str, Any]) -> list[dict[str, Any]]:
    return [item for item in _output_items(response) if item.get("type") == "function_call"]


def parse_structured_reply(text: str) -> StructuredReply | None:
    if not text or not text.strip():
        return None
    try:
        return StructuredReply.model_validate_json(text)
    except ValidationError as exc:
        logger.info(
            "structured reply rejected, falling back to plain text errors=%d excerpt=%s",
            exc.error_count(),
            excerpt_for_debug(text, max_len=200),
        )
        return None
