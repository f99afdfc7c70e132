"""Classification of chat-completions payloads into typed results."""

from __future__ import annotations

from typing import TypeVar

from any_llm.types.completion import ChatCompletion, ChatCompletionChunk
from pydantic import BaseModel, model_validator

from chatwire.core.results import ApiError, ApiResult, DecodeFailure, Success

ModelT = TypeVar("ModelT", bound=BaseModel)

_PREVIEW_LIMIT = 200


class ErrorDetail(BaseModel):
    message: str
    type: str
    param: str | None = None
    code: str | int | None = None


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


class ChatResponse(ChatCompletion):
    """A complete (non-streaming) chat completion.

    The base type tolerates a missing ``usage`` block; a finished
    non-streaming response always reports it.
    """

    @model_validator(mode="after")
    def _require_usage(self) -> ChatResponse:
        if self.usage is None:
            raise ValueError("usage is required")
        return self


ChatResult = ApiResult[ChatResponse]
StreamEvent = ApiResult[ChatCompletionChunk]


def _preview(payload: bytes | str) -> str:
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    return payload[:_PREVIEW_LIMIT]


def decode_error(payload: bytes | str) -> ApiError | None:
    try:
        envelope = ErrorEnvelope.model_validate_json(payload)
    except ValueError:
        return None
    detail = envelope.error
    return ApiError(message=detail.message, type=detail.type, param=detail.param, code=detail.code)


def classify_response(payload: bytes | str, success_type: type[ModelT]) -> ApiResult[ModelT]:
    """Classify one complete payload: API error first, then success, else decode failure.

    The error shape is tried first because the service reports logical errors
    inside 2xx bodies too, and an error body is never a malformed success.
    Never raises.
    """
    error = decode_error(payload)
    if error is not None:
        return error
    try:
        return Success(success_type.model_validate_json(payload))
    except ValueError as exc:
        return DecodeFailure(exc, raw=_preview(payload))


def classify_chat_response(payload: bytes | str) -> ChatResult:
    return classify_response(payload, ChatResponse)


def decode_stream_chunk(data: str) -> StreamEvent:
    return classify_response(data, ChatCompletionChunk)


def extract_text(response: ChatCompletion) -> str:
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def extract_chunk_text(chunk: ChatCompletionChunk) -> str:
    if not chunk.choices:
        return ""
    delta = chunk.choices[0].delta
    if delta is None:
        return ""
    return delta.content or ""
