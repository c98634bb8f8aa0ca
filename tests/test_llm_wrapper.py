import asyncio
import json
import logging

import httpx
import pytest
from openai import AsyncOpenAI

from llm_wrapper import (
    SYSTEM_PROMPT,
    DelegatedInferenceStrategy,
    build_messages,
    parse_and_validate_json,
    strip_code_fences,
)
from prediction_errors import (
    CancelledError,
    EmptyInputError,
    MalformedResponseError,
    QuotaExceededError,
    RateLimitedError,
    TransportError,
    UpstreamError,
)


def completion(content):
    return httpx.Response(200, json={
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 0,
        "model": "google/gemini-3-flash-preview",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": content},
            "finish_reason": "stop",
        }],
    })


def make_strategy(handler):
    client = AsyncOpenAI(
        api_key="test-key",
        base_url="https://gateway.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    return DelegatedInferenceStrategy(client=client)


def predict(handler, symptoms, cancel_token=None):
    return asyncio.run(make_strategy(handler).predict(symptoms, cancel_token=cancel_token))


# prompt construction

def test_build_messages_keeps_original_order():
    messages = build_messages(["Fever", "Cough", "Cold"])
    assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert messages[1]["role"] == "user"
    assert messages[1]["content"] == (
        "Patient reports the following symptoms: Fever, Cough, Cold. "
        "Analyze these symptoms and provide your disease prediction as JSON."
    )


def test_system_prompt_describes_schema():
    for term in ("alternative_diagnoses", "when_to_see_doctor", "Always provide 2 alternative diagnoses",
                 "routine", "emergency", "0-100"):
        assert term in SYSTEM_PROMPT


def test_build_messages_rejects_empty():
    with pytest.raises(EmptyInputError):
        build_messages([])


# parsing

def test_fenced_json_parses_like_plain_json(record_json):
    fenced = f"```json\n{record_json}\n```"
    assert parse_and_validate_json(fenced) == parse_and_validate_json(record_json)
    assert parse_and_validate_json(f"```\n{record_json}```") == parse_and_validate_json(record_json)


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_missing_required_fields_rejected():
    raw = '{ "disease": "X" }'
    with pytest.raises(MalformedResponseError) as excinfo:
        parse_and_validate_json(raw)
    assert excinfo.value.raw_text == raw


@pytest.mark.parametrize("field, value", [
    ("confidence", 150),
    ("confidence", -1),
    ("confidence", "85"),
    ("severity", "critical"),
    ("urgency", "whenever"),
    ("tips", []),
    ("disease", ""),
])
def test_invalid_values_rejected(record_payload, field, value):
    record_payload[field] = value
    with pytest.raises(MalformedResponseError):
        parse_and_validate_json(json.dumps(record_payload))


def test_unknown_field_rejected(record_payload):
    record_payload["probability"] = 0.9
    with pytest.raises(MalformedResponseError):
        parse_and_validate_json(json.dumps(record_payload))


def test_optional_fields_may_be_absent(record_payload):
    for key in ("alternative_diagnoses", "urgency", "when_to_see_doctor"):
        del record_payload[key]
    record = parse_and_validate_json(json.dumps(record_payload))
    assert record.alternative_diagnoses == ()
    assert record.urgency is None


@pytest.mark.parametrize("raw", ["", "not json at all", "```json\n```", '{"disease": "X",'])
def test_unparseable_text_rejected(raw):
    with pytest.raises(MalformedResponseError):
        parse_and_validate_json(raw)


# gateway calls

def test_predict_sends_prompt_and_returns_record(record_json):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return completion(f"```json\n{record_json}\n```")

    record = predict(handler, ["Fever", "Cough", "Cold"])

    assert record.disease == "Common Flu"
    assert record.confidence == 85
    assert seen["url"] == "https://gateway.test/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "google/gemini-3-flash-preview"
    assert seen["body"]["messages"] == build_messages(["Fever", "Cough", "Cold"])


def test_empty_input_never_calls_gateway():
    calls = []

    def handler(request):
        calls.append(request)
        return completion("{}")

    with pytest.raises(EmptyInputError):
        predict(handler, [])
    assert calls == []


def test_partial_record_is_not_returned():
    with pytest.raises(MalformedResponseError):
        predict(lambda request: completion('{ "disease": "X" }'), ["Fever"])


def test_empty_completion_is_malformed():
    with pytest.raises(MalformedResponseError):
        predict(lambda request: completion(None), ["Fever"])


@pytest.mark.parametrize("status, error", [
    (429, RateLimitedError),
    (402, QuotaExceededError),
    (500, UpstreamError),
    (503, UpstreamError),
])
def test_status_mapping(status, error):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(status, json={"error": {"message": "nope"}})

    with pytest.raises(error):
        predict(handler, ["Fever"])
    assert len(calls) == 1


def test_upstream_error_keeps_status_and_body():
    def handler(request):
        return httpx.Response(500, text="gateway exploded " * 100)

    with pytest.raises(UpstreamError) as excinfo:
        predict(handler, ["Fever"])
    assert excinfo.value.status_code == 500
    assert excinfo.value.body_excerpt.startswith("gateway exploded")
    assert len(excinfo.value.body_excerpt) == 500


def test_no_response_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError):
        predict(handler, ["Fever"])


def test_cancel_token_discards_in_flight_call(record_json):
    async def handler(request):
        await asyncio.sleep(10)
        return completion(record_json)

    async def scenario():
        token = asyncio.Event()
        strategy = make_strategy(handler)
        task = asyncio.create_task(strategy.predict(["Fever"], cancel_token=token))
        await asyncio.sleep(0.05)
        token.set()
        return await task

    with pytest.raises(CancelledError):
        asyncio.run(scenario())


def test_from_settings_requires_credential(monkeypatch):
    from config import Settings
    from prediction_errors import ConfigurationError

    monkeypatch.delenv("AI_GATEWAY_API_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        DelegatedInferenceStrategy.from_settings(Settings())


def test_strategy_without_key_or_client():
    from prediction_errors import ConfigurationError

    with pytest.raises(ConfigurationError):
        DelegatedInferenceStrategy(api_key=None)


def test_non_json_success_body_is_malformed(caplog):
    def handler(request):
        return httpx.Response(200, text="<html>proxy page</html>", headers={"content-type": "text/html"})

    with caplog.at_level(logging.ERROR, logger="symptom_checker"):
        with pytest.raises(MalformedResponseError) as excinfo:
            predict(handler, ["Fever"])
    assert "proxy page" in excinfo.value.raw_text
    assert "Malformed AI response" in caplog.text


def chat_body(choices):
    return {"id": "chatcmpl-test", "object": "chat.completion", "created": 0,
            "model": "google/gemini-3-flash-preview", "choices": choices}


@pytest.mark.parametrize("choices", [
    [],
    [{"index": 0, "message": None, "finish_reason": "stop"}],
])
def test_completion_without_message_is_malformed(caplog, choices):
    def handler(request):
        return httpx.Response(200, json=chat_body(choices))

    with caplog.at_level(logging.ERROR, logger="symptom_checker"):
        with pytest.raises(MalformedResponseError) as excinfo:
            predict(handler, ["Fever"])
    assert "chatcmpl-test" in excinfo.value.raw_text
    assert "Malformed AI response" in caplog.text
