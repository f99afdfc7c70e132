from __future__ import annotations

import json

import pytest

from chatwire import ApiError, ChatResponse, DecodeFailure, Success
from chatwire.clients.parsing import (
    classify_chat_response,
    decode_stream_chunk,
    extract_chunk_text,
    extract_text,
)

from .fakes import make_chunk_payload, make_completion_payload, make_error_payload


def _body(payload: object) -> bytes:
    return json.dumps(payload).encode()


class TestApiErrors:
    @pytest.mark.parametrize(
        "payload",
        [
            make_error_payload(),
            make_error_payload("Rate limit reached", error_type="requests", code="rate_limit_exceeded"),
            make_error_payload("Bad value", error_type="invalid_request_error", param="temperature", code=None),
            {"error": {"message": "Server overloaded", "type": "server_error"}},
        ],
    )
    def test_error_payloads_become_api_errors(self, payload):
        result = classify_chat_response(_body(payload))

        assert isinstance(result, ApiError)
        detail = payload["error"]
        assert result.message == detail["message"]
        assert result.type == detail["type"]
        assert result.param == detail.get("param")
        assert result.code == detail.get("code")

    def test_numeric_codes_are_kept(self):
        result = classify_chat_response(_body(make_error_payload(code=429)))

        assert isinstance(result, ApiError)
        assert result.code == 429

    def test_error_wins_over_success_fields(self):
        payload = {**make_completion_payload(), **make_error_payload("quota")}

        result = classify_chat_response(_body(payload))

        assert isinstance(result, ApiError)
        assert result.message == "quota"


class TestSuccess:
    def test_success_payload_decodes(self):
        result = classify_chat_response(_body(make_completion_payload(text="Hi there")))

        assert isinstance(result, Success)
        response = result.value
        assert isinstance(response, ChatResponse)
        assert response.id == "chatcmpl_1"
        assert response.object == "chat.completion"
        assert response.usage.total_tokens == 6
        assert extract_text(response) == "Hi there"

    def test_accepts_text_input(self):
        result = classify_chat_response(json.dumps(make_completion_payload()))

        assert result.ok

    def test_missing_usage_is_not_a_success(self):
        payload = make_completion_payload()
        del payload["usage"]

        result = classify_chat_response(_body(payload))

        assert isinstance(result, DecodeFailure)


class TestDecodeFailure:
    @pytest.mark.parametrize(
        "body",
        [
            b"",
            b"<html>502 Bad Gateway</html>",
            b"{not json",
            b"[]",
            b'{"error": null}',
            b'{"error": {"message": "missing type"}}',
            b"\xff\xfe\x00",
        ],
    )
    def test_unrecognised_bodies_never_raise(self, body):
        result = classify_chat_response(body)

        assert isinstance(result, DecodeFailure)
        assert result.cause is not None

    def test_keeps_a_preview_of_the_payload(self):
        result = classify_chat_response(b"<html>" + b"x" * 500)

        assert isinstance(result, DecodeFailure)
        assert result.raw is not None
        assert result.raw.startswith("<html>")
        assert len(result.raw) == 200


class TestStreamChunks:
    def test_chunk_decodes(self):
        event = decode_stream_chunk(json.dumps(make_chunk_payload("Hel")))

        assert isinstance(event, Success)
        assert extract_chunk_text(event.value) == "Hel"

    def test_role_only_chunk_has_no_text(self):
        event = decode_stream_chunk(json.dumps(make_chunk_payload(None)))

        assert isinstance(event, Success)
        assert extract_chunk_text(event.value) == ""

    def test_chunk_error_payload(self):
        event = decode_stream_chunk(json.dumps(make_error_payload("boom", error_type="server_error")))

        assert isinstance(event, ApiError)
        assert event.type == "server_error"
