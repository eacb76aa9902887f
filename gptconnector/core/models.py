"""Inbound/outbound message models and the structured reply contract."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InboundMedia(BaseModel):
    name: str | None = None
    mime_type: str | None = None
    buffer: bytes | None = None


class UserMessage(BaseModel):
    message_text: str | None = None
    media: list[InboundMedia] = Field(default_factory=list)


class Button(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    payload: str | None = None


class MediaItem(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    media_uri: str = Field(alias="uri")
    alt_text: str | None = Field(default=None, alias="altText")
    mime_type: str | None = Field(default=None, alias="mimeType")


class OutboundAttachment(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str
    mime_type: str = Field(alias="mimeType")
    base64: str


class Card(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: str
    subtitle: str | None = None
    image_uri: str | None = Field(default=None, alias="imageUri")
    buttons: list[Button] = Field(default_factory=list)


class StructuredReply(BaseModel):
    """Six-field reply; every field must be present on the wire, even when empty."""

    model_config = ConfigDict(extra="forbid")

    text: str
    buttons: list[Button]
    media: list[MediaItem]
    attachments: list[OutboundAttachment]
    cards: list[Card]
    intent: str | None


class OutboundMessage(BaseModel):
    sender: str = "bot"
    message_text: str | None = None
    buttons: list[Button] | None = None
    media: list[MediaItem] | None = None
    attachments: list[OutboundAttachment] | None = None
    cards: list[Card] | None = None
    intent: str | None = None
    source_data: Any = None

    @model_validator(mode="after")
    def _text_required_with_structure(self) -> "OutboundMessage":
        structured = (self.buttons, self.media, self.attachments, self.cards, self.intent)
        if any(item is not None for item in structured) and self.message_text is None:
            raise ValueError("message_text is required when structured fields are set")
        return self
