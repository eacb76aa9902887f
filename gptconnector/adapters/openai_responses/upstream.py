"""
HTTP client for the Responses API and the file store. Every failure is raised
as a TransportError whose message keeps the upstream detail.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from gptconnector.config.settings import settings
from gptconnector.core.errors import TransportError, UploadError
from gptconnector.util.debug_excerpt import debug_log_payload
from gptconnector.util.logger import get_logger
from gptconnector.util.masking import mask_secret

logger = get_logger("upstream")


def _http_limits() -> httpx.Limits:
    return httpx.Limits(
        max_connections=max(1, int(settings.upstream_max_connections)),
        max_keepalive_connections=max(1, int(settings.upstream_max_keepalive_connections)),
    )


def _http_timeout() -> httpx.Timeout:
    timeout = float(settings.upstream_timeout_seconds)
    return httpx.Timeout(connect=timeout, read=timeout, write=timeout, pool=timeout)


def _decode_json_or_text(body: bytes) -> dict[str, Any] | str:
    text = body.decode("utf-8", errors="replace")
    if not text:
        return ""
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
        return text
    except json.JSONDecodeError:
        return text


def _safe_error_detail(payload: dict[str, Any] | str) -> str:
    if isinstance(payload, str):
        return payload[:600]
    error = payload.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"][:600]
    if isinstance(error, str):
        return error[:600]
    return json.dumps(payload, ensure_ascii=False)[:600]


class ResponsesClient:
    """Thin async wrapper over ``/responses`` and ``/files``."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.upstream_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=_http_timeout(),
            limits=_http_limits(),
            transport=transport,
        )
        logger.info("responses client ready base_url=%s api_key=%s", self.base_url, mask_secret(api_key))

    async def _request(self, method: str, path: str, error_cls: type[TransportError], **kwargs: Any) -> dict[str, Any] | str:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            detail = (str(exc) or "").strip() or "connection_failed_or_timeout"
            logger.warning("%s %s http_error error=%s", method, path, detail)
            raise error_cls(f"upstream_unreachable: {detail}") from exc
        body = _decode_json_or_text(response.content)
        if response.status_code >= 400:
            detail = _safe_error_detail(body)
            logger.warning("%s %s status=%s detail=%s", method, path, response.status_code, detail)
            raise error_cls(f"upstream_http_error:{response.status_code}:{detail}")
        logger.debug("%s %s status=%s", method, path, response.status_code)
        return body

    async def create_response(self, params: dict[str, Any]) -> dict[str, Any]:
        debug_log_payload("create_response params", params)
        body = await self._request("POST", "/responses", TransportError, json=params)
        if not isinstance(body, dict):
            raise TransportError(f"upstream_invalid_body: {str(body)[:200]}")
        debug_log_payload("create_response body", body)
        return body

    async def upload_file(self, filename: str, content: bytes, mime_type: str | None = None) -> str:
        files = {"file": (filename, content, mime_type or "application/octet-stream")}
        body = await self._request("POST", "/files", UploadError, data={"purpose": settings.upload_purpose}, files=files)
        file_id = body.get("id") if isinstance(body, dict) else None
        if not file_id:
            raise UploadError(f"upstream_invalid_body: upload of {filename} returned no file id")
        logger.debug("uploaded file name=%s bytes=%d file_id=%s", filename, len(content), file_id)
        return str(file_id)

    async def delete_file(self, file_id: str) -> None:
        await self._request("DELETE", f"/files/{file_id}", TransportError)
        logger.debug("deleted file file_id=%s", file_id)

    async def aclose(self) -> None:
        await self._client.aclose()
