import logging

from gptconnector.core.context import TurnContext, TurnState
from gptconnector.util import debug_excerpt
from gptconnector.util.debug_excerpt import debug_log_payload, excerpt_for_debug
from gptconnector.util.logger import logger
from gptconnector.util.masking import mask_secret


def test_mask_secret_keeps_prefix_and_tail():
    assert mask_secret("sk-test-abcdefghijkl") == "sk-*************ijkl"
    assert mask_secret("short") == "*****"
    assert mask_secret(None) == ""


def test_excerpt_for_debug_truncates():
    text = "x" * 300
    out = excerpt_for_debug(text, max_len=100)
    assert out.startswith("x" * 100)
    assert "total 300 chars" in out


def test_debug_log_payload_redacts(monkeypatch):
    captured: list[str] = []

    def fake_debug(message, *args):
        captured.append(message % args)

    original_level = logger.level
    logger.setLevel(logging.DEBUG)
    monkeypatch.setattr(debug_excerpt.logger, "debug", fake_debug)
    try:
        debug_log_payload("create_response params", {"input": [{"image_url": "data:image/png;base64," + "A" * 80}]}, turn_id="t1")
    finally:
        logger.setLevel(original_level)

    assert captured
    assert "A" * 80 not in captured[-1]
    assert "[base64 80 chars]" in captured[-1]
    assert "turn_id=t1" in captured[-1]


def test_turn_context_records_transitions():
    ctx = TurnContext()
    ctx.transition(TurnState.BUILDING_CONTENT)
    ctx.transition(TurnState.FAILED)
    assert ctx.state is TurnState.FAILED
    assert ctx.state_history == [TurnState.IDLE, TurnState.BUILDING_CONTENT]


def test_settings_default_to_stderr_only_logging(monkeypatch):
    from gptconnector.config.settings import Settings

    monkeypatch.delenv("GPTCONNECTOR_LOG_FILE", raising=False)
    current = Settings()
    assert current.log_file == ""
    assert "app_name" not in Settings.model_fields
