"""Turn lifecycle events."""

from __future__ import annotations

from gptconnector.util.logger import logger


def log_event(event: str, turn_id: str, **payload: object) -> None:
    logger.info("event=%s turn_id=%s payload=%s", event, turn_id, payload)
