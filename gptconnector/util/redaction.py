"""Diagnostic redaction for provider payloads.

Provider responses and request parameters carry file contents (base64 images,
generated spreadsheets, data URIs). Before any of that reaches a log line or
the ``source_data`` of an outbound message it goes through :func:`redact`,
which returns a structurally identical copy with the heavy payloads replaced
by length-tagged placeholders.

Thresholds:

- a plain string is masked when its trimmed length is above
  ``BASE64_MIN_LENGTH``, it only contains base64 alphabet characters and at
  least ``ALNUM_RATIO`` of them are alphanumeric;
- payload-named fields (``buffer``, ``file_base64``) use the lower
  ``BUFFER_FIELD_MIN_LENGTH``;
- data URIs keep their ``data:<mime>;base64,`` prefix and only the payload is
  replaced.
"""

from __future__ import annotations

import functools
import json
import re
import traceback
from typing import Any

from pydantic import BaseModel

from gptconnector.util.logger import logger


BASE64_MIN_LENGTH = 50
BUFFER_FIELD_MIN_LENGTH = 20
ALNUM_RATIO = 0.8

_BASE64_ALPHABET_RE = re.compile(r"^[A-Za-z0-9+/=_-]+$")
_DATA_URI_RE = re.compile(r"^(data:[^,;]*(?:;[^,;]*)*;base64,)(.*)$", re.IGNORECASE | re.DOTALL)

_PAYLOAD_FIELDS = frozenset({"buffer", "mediaUri", "file_base64", "output", "output_text"})
_BUFFER_FIELDS = frozenset({"buffer", "file_base64"})
_ERROR_DIAGNOSTIC_ATTRS = ("response", "request", "data", "body", "config", "cause")


def base64_placeholder(length: int) -> str:
    return f"[base64 {length} chars]"


def binary_placeholder(size: int) -> str:
    return f"[binary {size} bytes]"


def looks_like_base64(text: str, min_length: int = BASE64_MIN_LENGTH) -> bool:
    candidate = text.strip()
    if len(candidate) <= min_length:
        return False
    if not _BASE64_ALPHABET_RE.match(candidate):
        return False
    alnum = sum(1 for ch in candidate if ch.isascii() and ch.isalnum())
    return alnum / len(candidate) >= ALNUM_RATIO


def _redact_text(text: str, min_length: int = BASE64_MIN_LENGTH) -> str:
    matched = _DATA_URI_RE.match(text)
    if matched:
        prefix, payload = matched.groups()
        if len(payload) > min_length:
            return f"{prefix}{base64_placeholder(len(payload))}"
        return text
    if looks_like_base64(text, min_length):
        return base64_placeholder(len(text.strip()))
    return text


def _redact_payload_field(key: str, text: str) -> str:
    stripped = text.strip()
    if stripped[:1] in ("{", "["):
        try:
            parsed = json.loads(stripped)
        except ValueError:
            parsed = None
        if isinstance(parsed, (dict, list)):
            return json.dumps(_redact(parsed), ensure_ascii=False)
    min_length = BUFFER_FIELD_MIN_LENGTH if key in _BUFFER_FIELDS else BASE64_MIN_LENGTH
    return _redact_text(text, min_length)


@functools.singledispatch
def _redact(value: Any, key: str | None = None) -> Any:
    return value


@_redact.register
def _(value: str, key: str | None = None) -> str:
    if key in _PAYLOAD_FIELDS:
        return _redact_payload_field(key, value)
    return _redact_text(value)


@_redact.register(bytes)
@_redact.register(bytearray)
def _(value: bytes | bytearray, key: str | None = None) -> str:
    return binary_placeholder(len(value))


@_redact.register
def _(value: memoryview, key: str | None = None) -> str:
    return binary_placeholder(value.nbytes)


@_redact.register
def _(value: dict, key: str | None = None) -> dict:
    return {k: _redact(v, k if isinstance(k, str) else None) for k, v in value.items()}


@_redact.register
def _(value: list, key: str | None = None) -> list:
    return [_redact(item, key) for item in value]


@_redact.register
def _(value: tuple, key: str | None = None) -> tuple:
    return tuple(_redact(item, key) for item in value)


@_redact.register
def _(value: BaseModel, key: str | None = None) -> dict:
    return _redact(value.model_dump(mode="python", by_alias=True), key)


@_redact.register
def _(value: BaseException, key: str | None = None) -> dict:
    name = type(value).__name__
    message = _redact_text(str(value))
    # frames only; chained causes are reported under "cause"
    frames = "".join(traceback.format_tb(value.__traceback__)) if value.__traceback__ else ""
    redacted: dict[str, Any] = {
        "name": name,
        "message": message,
        "stack": f"{frames}{name}: {message}" if message else f"{frames}{name}",
    }
    for attr, attr_value in getattr(value, "__dict__", {}).items():
        if attr.startswith("_"):
            continue
        redacted[attr] = _redact(attr_value, attr)
    for attr in _ERROR_DIAGNOSTIC_ATTRS:
        if attr in redacted:
            continue
        try:
            attr_value = getattr(value, attr, None)
        except Exception:  # httpx raises RuntimeError for unset .request/.response
            attr_value = None
        if attr == "cause" and attr_value is None:
            attr_value = value.__cause__
        if attr_value is not None:
            redacted[attr] = _redact(attr_value, attr)
    return redacted


def redact(value: Any) -> Any:
    """Return a log-safe copy of *value*; never raises and never mutates the input."""
    try:
        return _redact(value)
    except Exception as exc:
        logger.debug("redact failed type=%s error=%s", type(value).__name__, exc)
        return f"[unredactable {type(value).__name__}]"
