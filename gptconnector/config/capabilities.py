"""Capability names and the validated connector configuration."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from gptconnector.core.errors import ConfigurationError


CAPABILITY_PREFIX = "CHATGPT_"


class Capabilities:
    CHATGPT_API_KEY = "CHATGPT_API_KEY"
    CHATGPT_MODEL = "CHATGPT_MODEL"
    CHATGPT_PROMPT = "CHATGPT_PROMPT"
    CHATGPT_TEMPERATURE = "CHATGPT_TEMPERATURE"
    CHATGPT_MAX_TOKENS = "CHATGPT_MAX_TOKENS"
    CHATGPT_REASONING_EFFORT = "CHATGPT_REASONING_EFFORT"
    CHATGPT_TOOLS = "CHATGPT_TOOLS"
    CHATGPT_INCLUDE = "CHATGPT_INCLUDE"
    CHATGPT_FILE_SEND_MODE = "CHATGPT_FILE_SEND_MODE"
    CHATGPT_RESPOND_AS_BOTIUM_JSON = "CHATGPT_RESPOND_AS_BOTIUM_JSON"
    CHATGPT_BASE_URL = "CHATGPT_BASE_URL"


REQUIRED_CAPABILITIES = (Capabilities.CHATGPT_API_KEY, Capabilities.CHATGPT_MODEL)
FILE_SEND_MODES = ("inline", "upload")
# capability suffixes whose field name differs
_FIELD_ALIASES = {"respond_as_botium_json": "respond_as_json"}


def _split_csv(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        items = raw.split(",")
    else:
        items = list(raw)
    return [str(item).strip() for item in items if str(item).strip()]


class ConnectorConfig(BaseModel):
    """Connector options resolved once from the capability bag."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    api_key: str
    model: str
    prompt: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    reasoning_effort: str | None = None
    tools: tuple[str, ...] = ()
    include: tuple[str, ...] = ()
    file_send_mode: Literal["inline", "upload"] = "upload"
    respond_as_json: bool = False
    base_url: str | None = None

    @field_validator("tools", "include", mode="before")
    @classmethod
    def _parse_csv(cls, value: Any) -> tuple[str, ...]:
        return tuple(_split_csv(value))

    @field_validator("file_send_mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if value is None:
            return "upload"
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @classmethod
    def from_caps(cls, caps: Mapping[str, Any]) -> "ConnectorConfig":
        """Build from ``CHATGPT_*`` capabilities; blank values count as absent."""
        missing = [name for name in REQUIRED_CAPABILITIES if _is_blank(caps.get(name))]
        if missing:
            raise ConfigurationError(f"{missing[0]} capability required")

        mode = caps.get(Capabilities.CHATGPT_FILE_SEND_MODE)
        if not _is_blank(mode) and str(mode).strip().lower() not in FILE_SEND_MODES:
            raise ConfigurationError(
                f"{Capabilities.CHATGPT_FILE_SEND_MODE} must be one of {', '.join(FILE_SEND_MODES)}, got {mode!r}"
            )

        values: dict[str, Any] = {}
        for name, value in caps.items():
            if not isinstance(name, str) or not name.startswith(CAPABILITY_PREFIX):
                continue
            if _is_blank(value):
                continue
            field = name[len(CAPABILITY_PREFIX):].lower()
            values[_FIELD_ALIASES.get(field, field)] = value
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid capabilities: {exc}") from exc


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def plugin_capabilities() -> list[dict[str, Any]]:
    """Capability metadata advertised by the plugin descriptor."""
    return [
        {
            "name": Capabilities.CHATGPT_API_KEY,
            "label": "OpenAI API Key",
            "type": "secret",
            "required": True,
            "description": "OpenAI API key used for authentication.",
        },
        {
            "name": Capabilities.CHATGPT_MODEL,
            "label": "Model",
            "type": "string",
            "required": True,
            "description": "Model to use (e.g., gpt-4o, gpt-4o-mini).",
        },
        {
            "name": Capabilities.CHATGPT_PROMPT,
            "label": "System Prompt",
            "type": "string",
            "required": False,
            "description": "Optional instructions sent with every turn.",
        },
        {
            "name": Capabilities.CHATGPT_FILE_SEND_MODE,
            "label": "Attachment Mode",
            "type": "choice",
            "required": False,
            "choices": list(FILE_SEND_MODES),
            "description": "Send image attachments inline as data URIs or upload them to the file store.",
        },
        {
            "name": Capabilities.CHATGPT_RESPOND_AS_BOTIUM_JSON,
            "label": "Structured Replies",
            "type": "boolean",
            "required": False,
            "description": "Require replies with text, buttons, media, attachments, cards and intent.",
        },
    ]
