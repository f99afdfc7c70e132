from __future__ import annotations

from contextlib import nullcontext

import pytest

from chatwire import ChatAPI
from chatwire.core import ChatwireError, ErrorKind, instrument_chatwire, span
from chatwire.core.telemetry import STREAM_SPAN, record_stream

from ..fakes import FakeChatServer, stream_response, text_frames


class TestTelemetry:
    def test_span_noop_when_logfire_missing(self, monkeypatch):
        monkeypatch.setattr("chatwire.core.telemetry.logfire", None)
        instrumented = span("chatwire.test")
        assert isinstance(instrumented, nullcontext)

    def test_span_noop_until_instrumented(self, monkeypatch):
        monkeypatch.setattr("chatwire.core.telemetry._INSTRUMENTED", False)
        with span("chatwire.test", model="gpt-4o-mini"):
            pass

    def test_instrument_chatwire_requires_logfire(self, monkeypatch):
        monkeypatch.setattr("chatwire.core.telemetry.logfire", None)

        with pytest.raises(ChatwireError) as exc_info:
            instrument_chatwire()
        assert exc_info.value.kind == ErrorKind.CONFIG

    def test_instrumented_spans_use_logfire(self, monkeypatch):
        opened = []

        class FakeLogfire:
            def span(self, name, **attributes):
                opened.append((name, attributes))
                return nullcontext()

        monkeypatch.setattr("chatwire.core.telemetry.logfire", FakeLogfire())
        monkeypatch.setattr("chatwire.core.telemetry._INSTRUMENTED", False)
        instrument_chatwire()

        with span("chatwire.chat.create", model="gpt-4o-mini"):
            pass

        assert opened == [("chatwire.chat.create", {"model": "gpt-4o-mini"})]

    def test_streams_report_counters_on_their_span(self, monkeypatch):
        spans = []

        class FakeSpan:
            def __init__(self, name, attributes):
                self.name = name
                self.attributes = dict(attributes)

            def __enter__(self):
                return self

            def __exit__(self, *exc_info):
                return False

            def set_attribute(self, key, value):
                self.attributes[key] = value

        class FakeLogfire:
            def span(self, name, **attributes):
                spans.append(FakeSpan(name, attributes))
                return spans[-1]

        monkeypatch.setattr("chatwire.core.telemetry.logfire", FakeLogfire())
        monkeypatch.setattr("chatwire.core.telemetry._INSTRUMENTED", False)
        instrument_chatwire()
        server = FakeChatServer()
        server.queue(stream_response(text_frames("a", "b")))
        api = ChatAPI(model="gpt-4o-mini", api_key="sk-test", client_args={"transport": server.transport})

        events = list(api.chat.stream("Hi"))

        assert len(events) == 2
        (stream_span,) = spans
        assert stream_span.name == STREAM_SPAN
        assert stream_span.attributes["model"] == "gpt-4o-mini"
        assert stream_span.attributes["chatwire.stream.events"] == 2
        assert stream_span.attributes["chatwire.stream.completed"] is True
        assert stream_span.attributes["chatwire.stream.cancelled"] is False
        assert stream_span.attributes["chatwire.stream.bytes"] > 0

    def test_record_stream_noop_without_tracing(self, monkeypatch):
        monkeypatch.setattr("chatwire.core.telemetry._INSTRUMENTED", False)

        record_stream(object(), {"events": 1})
