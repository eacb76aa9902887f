"""Responses API request parameter assembly."""

from __future__ import annotations

from typing import Any

from gptconnector.config.capabilities import ConnectorConfig
from gptconnector.tools.spreadsheet import SPREADSHEET_TOOL


STRUCTURED_REPLY_FORMAT_NAME = "structured_reply"

STRUCTURED_REPLY_INSTRUCTIONS = (
    "Always answer with a JSON object that has exactly these fields: "
    '"text" (the reply shown to the user, never omitted), '
    '"buttons" (quick replies as {"text", "payload"}), '
    '"media" (images or videos as {"uri", "altText", "mimeType"}), '
    '"attachments" (files as {"name", "mimeType", "base64"}), '
    '"cards" (rich cards as {"title", "subtitle", "imageUri", "buttons"}) '
    'and "intent" (a short intent name or null). '
    "Use empty lists for fields you do not need. "
    f"To deliver a spreadsheet, call the {SPREADSHEET_TOOL['name']} tool instead of filling attachments yourself."
)


def _nullable(type_name: str) -> dict[str, Any]:
    return {"type": [type_name, "null"]}


def _closed_object(properties: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


_BUTTON_SCHEMA = _closed_object({"text": {"type": "string"}, "payload": _nullable("string")})

STRUCTURED_REPLY_SCHEMA: dict[str, Any] = _closed_object(
    {
        "text": {"type": "string"},
        "buttons": {"type": "array", "items": _BUTTON_SCHEMA},
        "media": {
            "type": "array",
            "items": _closed_object(
                {"uri": {"type": "string"}, "altText": _nullable("string"), "mimeType": _nullable("string")}
            ),
        },
        "attachments": {
            "type": "array",
            "items": _closed_object(
                {"name": {"type": "string"}, "mimeType": {"type": "string"}, "base64": {"type": "string"}}
            ),
        },
        "cards": {
            "type": "array",
            "items": _closed_object(
                {
                    "title": {"type": "string"},
                    "subtitle": _nullable("string"),
                    "imageUri": _nullable("string"),
                    "buttons": {"type": "array", "items": _BUTTON_SCHEMA},
                }
            ),
        },
        "intent": _nullable("string"),
    }
)


def user_input(fragments: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{"role": "user", "content": fragments}]


def build_instructions(config: ConnectorConfig) -> str | None:
    parts = [config.prompt or ""]
    if config.respond_as_json:
        parts.append(STRUCTURED_REPLY_INSTRUCTIONS)
    combined = "\n\n".join(part.strip() for part in parts if part and part.strip())
    return combined or None


def build_tools(config: ConnectorConfig) -> list[dict[str, Any]]:
    tools: list[dict[str, Any]] = [dict(SPREADSHEET_TOOL)]
    tools.extend({"type": tool_type} for tool_type in config.tools)
    return tools


def build_request_params(
    input_items: list[dict[str, Any]],
    previous_response_id: str | None,
    config: ConnectorConfig,
) -> dict[str, Any]:
    params: dict[str, Any] = {"model": config.model}
    instructions = build_instructions(config)
    if instructions:
        params["instructions"] = instructions
    if previous_response_id:
        params["previous_response_id"] = previous_response_id
    params["input"] = input_items
    params["tools"] = build_tools(config)

    if config.respond_as_json:
        params["text"] = {
            "format": {
                "type": "json_schema",
                "name": STRUCTURED_REPLY_FORMAT_NAME,
                "schema": STRUCTURED_REPLY_SCHEMA,
                "strict": True,
            }
        }
    if config.include:
        params["include"] = list(config.include)
    if config.temperature is not None:
        params["temperature"] = config.temperature
    if config.max_tokens is not None:
        params["max_output_tokens"] = config.max_tokens
    if config.reasoning_effort:
        params["reasoning"] = {"effort": config.reasoning_effort}
    return params
