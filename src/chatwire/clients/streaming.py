"""Server-sent-event bridge for streamed chat completions.

The bridge is push based and does no I/O: the transport hands it raw frames in
arrival order (``feed``), tells it when the connection ended (``close``), and
the bridge calls its two sinks. Frames are cut into SSE records on blank
lines; a record is only decoded once its terminating blank line has arrived.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from any_llm.types.completion import ChatCompletionChunk
from pydantic import BaseModel

from chatwire.clients.parsing import classify_response
from chatwire.core.results import ApiResult, TransportFailure

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"

ModelT = TypeVar("ModelT", bound=BaseModel)

EventCallback = Callable[[ApiResult[Any]], Any]
CompleteCallback = Callable[[], Any]


def _utf8_decoder() -> codecs.IncrementalDecoder:
    return codecs.getincrementaldecoder("utf-8")(errors="replace")


@dataclass
class StreamSession:
    """Sinks and undecoded input of one streaming request, owned by a single ``StreamBridge``."""

    on_event: EventCallback
    on_complete: CompleteCallback | None = None
    buffer: str = ""
    decoder: codecs.IncrementalDecoder = field(default_factory=_utf8_decoder)


def split_segments(buffer: str) -> tuple[list[str], str]:
    """Cut complete SSE records off ``buffer``; return them and the unfinished tail."""
    held = ""
    if buffer.endswith("\r"):
        # Might be the first half of a CRLF split across frames.
        buffer, held = buffer[:-1], "\r"
    normalized = buffer.replace("\r\n", "\n").replace("\r", "\n")
    *segments, tail = normalized.split("\n\n")
    return segments, tail + held


def parse_segment(segment: str) -> str | None:
    """Return the joined ``data:`` payload of one record, or ``None`` if it carries none."""
    data_lines: list[str] = []
    for line in segment.split("\n"):
        if not line or line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            data_lines.append(value)
    if not data_lines:
        return None
    return "\n".join(data_lines)


class StreamBridge(Generic[ModelT]):
    """Turns raw SSE frames into ordered typed events, completing exactly once."""

    def __init__(
        self,
        on_event: EventCallback,
        on_complete: CompleteCallback | None = None,
        *,
        chunk_type: type[ModelT] = ChatCompletionChunk,  # type: ignore[assignment]
    ) -> None:
        self._session: StreamSession | None = StreamSession(on_event=on_event, on_complete=on_complete)
        self._chunk_type = chunk_type
        self._completed = False
        self._cancelled = False
        self._position = 0
        self._events = 0

    @property
    def closed(self) -> bool:
        return self._session is None

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def position(self) -> int:
        """Number of raw bytes fed so far."""
        return self._position

    @property
    def events(self) -> int:
        """Number of events delivered to the event sink."""
        return self._events

    def stats(self) -> dict[str, int | bool]:
        return {
            "bytes": self._position,
            "events": self._events,
            "completed": self._completed,
            "cancelled": self._cancelled,
        }

    def feed(self, frame: bytes | str) -> None:
        session = self._session
        if session is None:
            return
        if isinstance(frame, str):
            frame = frame.encode("utf-8")
        self._position += len(frame)
        segments, session.buffer = split_segments(session.buffer + session.decoder.decode(frame))
        self._dispatch(segments)

    def close(self, error: BaseException | None = None) -> None:
        """The transport ended the stream, cleanly or with ``error``."""
        session = self._session
        if session is None:
            return
        tail = session.buffer + session.decoder.decode(b"", final=True)
        session.buffer = ""
        if tail.endswith("\r"):
            # No CRLF is coming; the held carriage return ends a line.
            segments, tail = split_segments(tail[:-1] + "\n")
            self._dispatch(segments)
            if self._session is None:
                return
        if error is not None:
            self._emit(TransportFailure(error))
            if self._session is None:
                return
        if tail.strip():
            logger.debug("Discarding %d characters of unterminated stream data", len(tail))
        self._complete()

    def reject(self, body: bytes) -> None:
        """The server refused the stream with an HTTP error status and a plain body."""
        if self._session is None:
            return
        self._emit(classify_response(body, self._chunk_type))
        if self._session is not None:
            self._complete()

    def cancel(self) -> None:
        if self._session is None:
            return
        self._session = None
        self._cancelled = True
        logger.debug("Stream cancelled after %d bytes", self._position)

    def _dispatch(self, segments: list[str]) -> None:
        for segment in segments:
            if self._session is None:
                return
            data = parse_segment(segment)
            if data is None:
                continue
            if data.strip() == DONE_SENTINEL:
                self._complete()
                return
            self._emit(classify_response(data, self._chunk_type))

    def _emit(self, event: ApiResult[Any]) -> None:
        session = self._session
        if session is None:
            return
        self._events += 1
        session.on_event(event)

    def _complete(self) -> None:
        session = self._session
        if session is None:
            return
        self._session = None
        self._completed = True
        if session.on_complete is not None:
            session.on_complete()
