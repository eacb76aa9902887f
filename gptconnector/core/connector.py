"""Connector lifecycle and turn orchestration.

One call to :meth:`Connector.process_turn` runs a complete turn against the
Responses API:

1. encode the user text and attachments into input fragments,
2. create a response linked to the previous turn,
3. run any spreadsheet tool calls and send their (empty) results back in a
   follow-up response,
4. parse the final output as plain text or as a structured reply,
5. hand one outbound message (or one error) to the sink,
6. delete every file uploaded during the turn.

The only state kept between turns is ``previous_response_id``; callers must not
run turns concurrently on the same connector.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from gptconnector.adapters.openai_responses.attachments import AttachmentEncoder, text_fragment
from gptconnector.adapters.openai_responses.output import consolidated_text, function_calls, parse_structured_reply
from gptconnector.adapters.openai_responses.request_builder import build_request_params, user_input
from gptconnector.adapters.openai_responses.upstream import ResponsesClient
from gptconnector.config.capabilities import ConnectorConfig
from gptconnector.core.context import TurnContext, TurnState
from gptconnector.core.errors import ConnectorError, ConnectorNotBuiltError, SpreadsheetGenerationError
from gptconnector.core.models import OutboundAttachment, OutboundMessage, UserMessage
from gptconnector.observability.logging import log_event
from gptconnector.tools.spreadsheet import SPREADSHEET_MIME_TYPE, SPREADSHEET_TOOL_NAME, generate_spreadsheet
from gptconnector.util.debug_excerpt import debug_log_payload
from gptconnector.util.logger import get_logger
from gptconnector.util.redaction import redact

logger = get_logger("connector")

Sink = Callable[[Any], Any]


class Connector:
    def __init__(
        self,
        sink: Sink,
        caps: Mapping[str, Any],
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.sink = sink
        self.caps = dict(caps)
        self.config: ConnectorConfig | None = None
        self.client: ResponsesClient | None = None
        self.encoder: AttachmentEncoder | None = None
        self.previous_response_id: str | None = None
        self._transport = transport
        self._deliveries: set[asyncio.Future] = set()

    # lifecycle

    def validate(self) -> None:
        self.config = ConnectorConfig.from_caps(self.caps)
        logger.info(
            "capabilities validated model=%s file_send_mode=%s respond_as_json=%s tools=%s",
            self.config.model,
            self.config.file_send_mode,
            self.config.respond_as_json,
            list(self.config.tools),
        )

    def build(self) -> None:
        if self.config is None:
            self.validate()
        assert self.config is not None
        self.client = ResponsesClient(self.config.api_key, base_url=self.config.base_url, transport=self._transport)
        self.encoder = AttachmentEncoder(self.client)

    async def start(self) -> None:
        self.previous_response_id = None

    async def stop(self) -> None:
        self.previous_response_id = None

    async def clean(self) -> None:
        if self.client is not None:
            await self.client.aclose()
        self.client = None
        self.encoder = None

    # turn

    async def process_turn(self, message: UserMessage | Mapping[str, Any]) -> OutboundMessage | None:
        """Run one turn and return the delivered reply, or ``None`` when the model said nothing.

        A failure is delivered to the sink and then re-raised to the caller as the
        same exception object; hosts should report it through one of the two channels.
        """
        if self.client is None or self.encoder is None or self.config is None:
            raise ConnectorNotBuiltError("build() must run before process_turn()")
        if not isinstance(message, UserMessage):
            message = UserMessage.model_validate(message)

        ctx = TurnContext()
        try:
            return await self._run_turn(message, ctx)
        except Exception as exc:
            failed_in = ctx.state
            ctx.transition(TurnState.FAILED)
            error = exc if isinstance(exc, ConnectorError) else ConnectorError(f"turn failed: {exc}")
            logger.warning("turn failed turn_id=%s state=%s error=%s", ctx.turn_id, failed_in.value, redact(str(exc)))
            debug_log_payload("turn failure", exc, turn_id=ctx.turn_id)
            log_event("turn_failed", ctx.turn_id, state=failed_in.value, error=type(exc).__name__)
            self._emit(error)
            if error is exc:
                raise
            raise error from exc
        finally:
            ctx.transition(TurnState.CLEANING_UP)
            await self._release_uploads(ctx)
            ctx.transition(TurnState.IDLE)

    async def _run_turn(self, message: UserMessage, ctx: TurnContext) -> OutboundMessage | None:
        assert self.client is not None and self.encoder is not None and self.config is not None
        config = self.config

        ctx.transition(TurnState.BUILDING_CONTENT)
        fragments: list[dict[str, Any]] = []
        if message.message_text:
            fragments.append(text_fragment(message.message_text))
        for media in message.media:
            fragment = await self.encoder.encode(media, config.file_send_mode, ctx)
            if fragment is not None:
                fragments.append(fragment)
        if not fragments:
            logger.info("turn has no text and no usable attachments turn_id=%s, nothing sent", ctx.turn_id)
            return None

        ctx.transition(TurnState.AWAITING_RESPONSE)
        params = build_request_params(user_input(fragments), self.previous_response_id, config)
        response = await self.client.create_response(params)
        self._remember(response)

        ctx.transition(TurnState.CHECKING_TOOLS)
        self._run_tools(response, ctx)

        final = response
        if ctx.tool_outputs:
            ctx.transition(TurnState.AWAITING_FOLLOW_UP)
            params = build_request_params(list(ctx.tool_outputs), response.get("id"), config)
            final = await self.client.create_response(params)
            self._remember(final)

        ctx.transition(TurnState.PARSING_OUTPUT)
        outbound = self._parse_output(final, ctx)

        ctx.transition(TurnState.EMITTING)
        if outbound is not None:
            self._emit(outbound)
        log_event(
            "turn_completed",
            ctx.turn_id,
            emitted=outbound is not None,
            attachments=[d.value for d in ctx.dispositions],
            tool_results=len(ctx.tool_outputs),
        )
        return outbound

    def _remember(self, response: dict[str, Any]) -> None:
        response_id = response.get("id")
        if response_id:
            self.previous_response_id = str(response_id)

    def _run_tools(self, response: dict[str, Any], ctx: TurnContext) -> None:
        for call in function_calls(response):
            name = call.get("name")
            call_id = call.get("call_id")
            if name != SPREADSHEET_TOOL_NAME:
                logger.warning("unsupported tool call ignored turn_id=%s name=%s call_id=%s", ctx.turn_id, name, call_id)
                continue
            try:
                arguments = call.get("arguments") or "{}"
                if isinstance(arguments, str):
                    arguments = json.loads(arguments)
                rows = arguments.get("rows") if isinstance(arguments, dict) else None
                content = generate_spreadsheet(rows)
            except (ValueError, SpreadsheetGenerationError) as exc:
                logger.warning("tool call dropped turn_id=%s name=%s call_id=%s error=%s", ctx.turn_id, name, call_id, exc)
                continue

            index = len(ctx.tool_attachments) + 1
            filename = "spreadsheet.xlsx" if index == 1 else f"spreadsheet_{index}.xlsx"
            ctx.tool_attachments.append(
                OutboundAttachment(name=filename, mime_type=SPREADSHEET_MIME_TYPE, base64=content)
            )
            # the workbook itself stays out of the conversation history
            ctx.tool_outputs.append({"type": "function_call_output", "call_id": call_id, "output": ""})
            logger.info("tool call executed turn_id=%s name=%s call_id=%s file=%s", ctx.turn_id, name, call_id, filename)

    def _parse_output(self, response: dict[str, Any], ctx: TurnContext) -> OutboundMessage | None:
        assert self.config is not None
        text = consolidated_text(response)
        source_data = redact(response)

        reply = parse_structured_reply(text) if self.config.respond_as_json else None
        if reply is not None:
            return OutboundMessage(
                message_text=reply.text,
                buttons=reply.buttons,
                media=reply.media,
                attachments=list(ctx.tool_attachments) if ctx.tool_attachments else reply.attachments,
                cards=reply.cards,
                intent=reply.intent,
                source_data=source_data,
            )
        if text or ctx.tool_attachments:
            return OutboundMessage(
                message_text=text,
                attachments=list(ctx.tool_attachments) or None,
                source_data=source_data,
            )
        logger.info("empty reply turn_id=%s, nothing emitted", ctx.turn_id)
        return None

    def _emit(self, item: OutboundMessage | ConnectorError) -> None:
        asyncio.get_running_loop().call_soon(self._deliver, item)

    def _deliver(self, item: OutboundMessage | ConnectorError) -> None:
        result = self.sink(item)
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            self._deliveries.add(future)
            future.add_done_callback(self._deliveries.discard)

    async def _release_uploads(self, ctx: TurnContext) -> None:
        if not ctx.uploaded_file_ids or self.client is None:
            return
        for file_id in ctx.uploaded_file_ids:
            try:
                await self.client.delete_file(file_id)
            except Exception as exc:  # never mask the turn outcome
                logger.warning("file deletion failed turn_id=%s file_id=%s error=%s", ctx.turn_id, file_id, exc)
