import base64

import pytest

from gptconnector.adapters.openai_responses.attachments import AttachmentEncoder, classify
from gptconnector.core.context import Disposition, TurnContext
from gptconnector.core.errors import UploadError
from gptconnector.core.models import InboundMedia


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


class FakeFileStore:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.uploads: list[tuple[str, bytes, str | None]] = []

    async def upload_file(self, filename, content, mime_type=None):
        if self.fail:
            raise UploadError("upstream_http_error:500:storage down")
        self.uploads.append((filename, content, mime_type))
        return f"file-{len(self.uploads)}"


@pytest.mark.parametrize(
    ("media", "mode", "expected"),
    [
        (InboundMedia(name="a.png", mime_type="image/png", buffer=PNG_BYTES), "inline", Disposition.IMAGE_INLINE),
        (InboundMedia(name="a.png", mime_type="image/png", buffer=PNG_BYTES), "upload", Disposition.IMAGE_UPLOADED),
        (InboundMedia(name="a.txt", mime_type="text/plain", buffer=b"x"), "upload", Disposition.TEXT_INLINE),
        (InboundMedia(name="a", mime_type="application/json; charset=utf-8", buffer=b"{}"), "inline", Disposition.TEXT_INLINE),
        (InboundMedia(name="data.CSV", mime_type=None, buffer=b"a,b"), "inline", Disposition.TEXT_INLINE),
        (InboundMedia(name="data.csv", mime_type="application/pdf", buffer=b"%PDF"), "inline", Disposition.SKIPPED),
        (InboundMedia(name="a.bin", mime_type=None, buffer=b"\x00"), "inline", Disposition.SKIPPED),
        (InboundMedia(name="a.png", mime_type="image/png", buffer=None), "inline", Disposition.SKIPPED),
        (InboundMedia(name="a.png", mime_type="image/png", buffer=b""), "upload", Disposition.SKIPPED),
    ],
)
def test_classify(media, mode, expected):
    assert classify(media, mode) is expected


@pytest.mark.asyncio
async def test_inline_image_becomes_data_uri():
    store = FakeFileStore()
    ctx = TurnContext()
    fragment = await AttachmentEncoder(store).encode(
        InboundMedia(name="a.png", mime_type="image/png", buffer=PNG_BYTES), "inline", ctx
    )
    assert fragment == {
        "type": "input_image",
        "image_url": "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii"),
    }
    assert store.uploads == []
    assert ctx.uploaded_file_ids == []


@pytest.mark.asyncio
async def test_uploaded_image_references_file_and_is_tracked():
    store = FakeFileStore()
    ctx = TurnContext()
    fragment = await AttachmentEncoder(store).encode(
        InboundMedia(name="a.png", mime_type="image/png", buffer=PNG_BYTES), "upload", ctx
    )
    assert fragment == {"type": "input_image", "file_id": "file-1"}
    assert ctx.uploaded_file_ids == ["file-1"]
    assert store.uploads == [("a.png", PNG_BYTES, "image/png")]


@pytest.mark.asyncio
async def test_upload_failure_propagates():
    ctx = TurnContext()
    with pytest.raises(UploadError):
        await AttachmentEncoder(FakeFileStore(fail=True)).encode(
            InboundMedia(name="a.png", mime_type="image/png", buffer=PNG_BYTES), "upload", ctx
        )
    assert ctx.uploaded_file_ids == []


@pytest.mark.asyncio
async def test_text_attachment_is_inlined_whole_with_filename_header():
    content = "line\n" * 5000
    fragment = await AttachmentEncoder(FakeFileStore()).encode(
        InboundMedia(name="notes.txt", mime_type="text/plain", buffer=content.encode("utf-8")), "upload", TurnContext()
    )
    assert fragment["type"] == "input_text"
    assert fragment["text"].startswith("Attached file: notes.txt\n\n")
    assert fragment["text"].endswith(content)


@pytest.mark.asyncio
async def test_unsupported_attachment_is_skipped():
    ctx = TurnContext()
    fragment = await AttachmentEncoder(FakeFileStore()).encode(
        InboundMedia(name="doc.pdf", mime_type="application/pdf", buffer=b"%PDF-1.7"), "upload", ctx
    )
    assert fragment is None
    assert ctx.dispositions == [Disposition.SKIPPED]
