import json

from gptconnector.adapters.openai_responses.output import consolidated_text, function_calls, parse_structured_reply


def test_consolidated_text_prefers_output_text():
    assert consolidated_text({"output_text": "hi", "output": []}) == "hi"


def test_consolidated_text_joins_message_parts():
    response = {
        "output": [
            {"type": "reasoning", "summary": []},
            {"type": "message", "content": [{"type": "output_text", "text": "Hello "}, {"type": "output_text", "text": "there"}]},
            {"type": "message", "content": [{"type": "output_text", "text": {"value": "again"}}]},
        ]
    }
    assert consolidated_text(response) == "Hello there\nagain"


def test_consolidated_text_empty_response():
    assert consolidated_text({"id": "resp_1"}) == ""


def test_function_calls_filters_output_items():
    call = {"type": "function_call", "name": "generate_excel", "call_id": "call_1", "arguments": "{}"}
    response = {"output": [{"type": "message", "content": []}, call, "junk"]}
    assert function_calls(response) == [call]


def test_parse_structured_reply_round_trip():
    payload = {
        "text": "pick one",
        "buttons": [{"text": "Yes", "payload": "yes"}],
        "media": [{"uri": "https://example.com/a.png", "altText": "a", "mimeType": "image/png"}],
        "attachments": [],
        "cards": [{"title": "Card", "subtitle": None, "imageUri": None, "buttons": []}],
        "intent": "choose",
    }
    reply = parse_structured_reply(json.dumps(payload))
    assert reply is not None
    assert reply.text == "pick one"
    assert reply.buttons[0].payload == "yes"
    assert reply.media[0].media_uri == "https://example.com/a.png"
    assert reply.cards[0].title == "Card"
    assert reply.intent == "choose"


def test_parse_structured_reply_rejects_plain_text_and_partial_payloads():
    assert parse_structured_reply("just words") is None
    assert parse_structured_reply("") is None
    assert parse_structured_reply(json.dumps({"text": "missing the rest"})) is None
