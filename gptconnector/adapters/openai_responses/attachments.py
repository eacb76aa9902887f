"""Attachment classification and encoding into Responses API input fragments."""

from __future__ import annotations

import base64
from pathlib import PurePath
from typing import Any

from gptconnector.adapters.openai_responses.upstream import ResponsesClient
from gptconnector.core.context import Disposition, TurnContext
from gptconnector.core.models import InboundMedia
from gptconnector.util.logger import get_logger

logger = get_logger("attachments")

TEXT_MIME_TYPES = frozenset(
    {
        "text/plain",
        "application/json",
        "text/json",
        "application/xml",
        "text/xml",
        "application/yaml",
        "application/x-yaml",
        "text/yaml",
        "text/x-yaml",
        "text/csv",
        "application/csv",
    }
)
TEXT_EXTENSIONS = frozenset({".txt", ".json", ".xml", ".yaml", ".yml", ".csv", ".md", ".log"})


def _base_mime(mime_type: str | None) -> str:
    return (mime_type or "").split(";", 1)[0].strip().lower()


def classify(media: InboundMedia, file_send_mode: str = "upload") -> Disposition:
    if not media.buffer:
        return Disposition.SKIPPED
    mime = _base_mime(media.mime_type)
    if mime.startswith("image/"):
        return Disposition.IMAGE_UPLOADED if file_send_mode == "upload" else Disposition.IMAGE_INLINE
    if mime in TEXT_MIME_TYPES:
        return Disposition.TEXT_INLINE
    if not mime and media.name and PurePath(media.name).suffix.lower() in TEXT_EXTENSIONS:
        return Disposition.TEXT_INLINE
    return Disposition.SKIPPED


def text_fragment(text: str) -> dict[str, Any]:
    return {"type": "input_text", "text": text}


class AttachmentEncoder:
    def __init__(self, client: ResponsesClient) -> None:
        self.client = client

    async def encode(self, media: InboundMedia, file_send_mode: str, ctx: TurnContext) -> dict[str, Any] | None:
        disposition = classify(media, file_send_mode)
        ctx.dispositions.append(disposition)
        name = media.name or "attachment"

        if disposition is Disposition.SKIPPED:
            logger.info(
                "attachment skipped turn_id=%s name=%s mime=%s bytes=%d",
                ctx.turn_id,
                name,
                media.mime_type,
                len(media.buffer or b""),
            )
            return None

        assert media.buffer is not None
        if disposition is Disposition.TEXT_INLINE:
            content = media.buffer.decode("utf-8", errors="replace")
            logger.debug("attachment inlined as text turn_id=%s name=%s chars=%d", ctx.turn_id, name, len(content))
            return text_fragment(f"Attached file: {name}\n\n{content}")

        mime = _base_mime(media.mime_type)
        if disposition is Disposition.IMAGE_INLINE:
            encoded = base64.b64encode(media.buffer).decode("ascii")
            logger.debug("attachment inlined as image turn_id=%s name=%s bytes=%d", ctx.turn_id, name, len(media.buffer))
            return {"type": "input_image", "image_url": f"data:{mime};base64,{encoded}"}

        # UploadError propagates: the user attached the image on purpose
        file_id = await self.client.upload_file(name, media.buffer, mime)
        ctx.uploaded_file_ids.append(file_id)
        logger.debug("attachment uploaded turn_id=%s name=%s file_id=%s", ctx.turn_id, name, file_id)
        return {"type": "input_image", "file_id": file_id}
