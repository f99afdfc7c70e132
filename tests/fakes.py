from __future__ import annotations

import asyncio
import json
from collections import deque
from typing import Any

import httpx

SSE_DONE = b"data: [DONE]\n\n"


def make_completion_payload(
    *,
    text: str = "Hello",
    completion_id: str = "chatcmpl_1",
    model: str = "gpt-4o-mini",
    usage: dict[str, int] | None = None,
) -> dict[str, Any]:
    return {
        "id": completion_id,
        "object": "chat.completion",
        "created": 1700000000,
        "model": model,
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": text},
            }
        ],
        "usage": usage or {"prompt_tokens": 5, "completion_tokens": 1, "total_tokens": 6},
    }


def make_chunk_payload(
    text: str | None,
    *,
    chunk_id: str = "chatcmpl_stream_1",
    finish_reason: str | None = None,
) -> dict[str, Any]:
    delta: dict[str, Any] = {}
    if text is not None:
        delta["content"] = text
    return {
        "id": chunk_id,
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }


def make_error_payload(
    message: str = "Incorrect API key provided.",
    *,
    error_type: str = "invalid_request_error",
    param: str | None = None,
    code: str | int | None = "invalid_api_key",
) -> dict[str, Any]:
    return {"error": {"message": message, "type": error_type, "param": param, "code": code}}


def sse(payload: dict[str, Any] | str) -> bytes:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n".encode()


def text_frames(*parts: str) -> list[bytes]:
    return [sse(make_chunk_payload(part)) for part in parts] + [SSE_DONE]


class FrameStream(httpx.SyncByteStream, httpx.AsyncByteStream):
    """Response body that hands out pre-cut frames, for both sync and async clients."""

    def __init__(self, frames: list[bytes], *, error: Exception | None = None, hang: bool = False) -> None:
        self.frames = list(frames)
        self.error = error
        self.hang = hang
        self.served = 0
        self.closed = False

    def __iter__(self):
        for frame in self.frames:
            self.served += 1
            yield frame
        if self.error is not None:
            raise self.error

    async def __aiter__(self):
        for frame in self.frames:
            self.served += 1
            yield frame
        if self.hang:
            # Server keeps the connection open without sending anything.
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error

    def close(self) -> None:
        self.closed = True

    async def aclose(self) -> None:
        self.closed = True


def stream_response(frames: list[bytes], *, status_code: int = 200, error: Exception | None = None) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": "text/event-stream"},
        stream=FrameStream(frames, error=error),
    )


class FakeChatServer:
    """Queue of canned responses served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: deque[Any] = deque()

    def queue(self, *items: httpx.Response | Exception) -> None:
        self.responses.extend(items)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"No queued response for {request.method} {request.url}")
        item = self.responses.popleft()
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_json(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)
