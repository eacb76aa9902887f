"""Per-turn runtime context."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from gptconnector.core.models import OutboundAttachment
from gptconnector.util.logger import logger


class TurnState(str, Enum):
    IDLE = "idle"
    BUILDING_CONTENT = "building_content"
    AWAITING_RESPONSE = "awaiting_response"
    CHECKING_TOOLS = "checking_tools"
    AWAITING_FOLLOW_UP = "awaiting_follow_up"
    PARSING_OUTPUT = "parsing_output"
    EMITTING = "emitting"
    CLEANING_UP = "cleaning_up"
    FAILED = "failed"


class Disposition(str, Enum):
    IMAGE_INLINE = "image_inline"
    IMAGE_UPLOADED = "image_uploaded"
    TEXT_INLINE = "text_inline"
    SKIPPED = "skipped"


@dataclass(slots=True)
class TurnContext:
    turn_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    state: TurnState = TurnState.IDLE
    state_history: list[TurnState] = field(default_factory=list)
    dispositions: list[Disposition] = field(default_factory=list)
    uploaded_file_ids: list[str] = field(default_factory=list)
    tool_attachments: list[OutboundAttachment] = field(default_factory=list)
    tool_outputs: list[dict] = field(default_factory=list)

    def transition(self, state: TurnState) -> None:
        logger.debug("turn state turn_id=%s %s -> %s", self.turn_id, self.state.value, state.value)
        self.state_history.append(self.state)
        self.state = state
