"""
DEBUG-only payload logging: every payload is redacted, serialized and truncated
before it reaches the log, so file contents never end up in log files.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from gptconnector.config.settings import settings
from gptconnector.util.logger import logger
from gptconnector.util.redaction import redact


def excerpt_for_debug(text: str, max_len: int | None = None) -> str:
    limit = max_len or settings.debug_excerpt_max_len
    if not text:
        return ""
    s = str(text).strip()
    if len(s) <= limit:
        return s
    return f"{s[:limit]} ... [truncated, total {len(s)} chars]"


def debug_log_payload(label: str, payload: Any, *, turn_id: str | None = None) -> None:
    """Log a redacted excerpt of *payload* when DEBUG is enabled."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    try:
        serialized = json.dumps(redact(payload), ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        serialized = str(redact(payload))
    logger.debug("%s turn_id=%s payload=%s", label, turn_id or "-", excerpt_for_debug(serialized))
