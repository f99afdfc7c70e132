"""Chat request models and their wire serialization."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from chatwire.core.errors import ChatwireError, ErrorKind


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single message in a conversation.

    Both fields are optional so that partial messages sent back by the service
    still decode; outgoing requests must set both.
    """

    model_config = ConfigDict(frozen=True)

    role: ChatRole | None = None
    content: str | None = None

    @classmethod
    def system(cls, content: str) -> ChatMessage:
        return cls(role=ChatRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(role=ChatRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> ChatMessage:
        return cls(role=ChatRole.ASSISTANT, content=content)


class ResponseFormat(BaseModel):
    """``{"type": "json_object"}`` enables JSON mode."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text", "json_object"] = "text"


class ChatConversation(BaseModel):
    """Request body for the chat-completions endpoint.

    Field names are the internal names; ``to_payload`` emits the wire keys.
    Optional parameters left as ``None`` are omitted from the payload.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    messages: list[ChatMessage]
    model: str
    stream: bool
    user: str | None = None
    temperature: float | None = None
    top_probability_mass: float | None = Field(default=None, alias="top_p")
    choice_count: int | None = Field(default=None, alias="n")
    stop: list[str] | None = None
    max_tokens: int | None = Field(default=None, alias="max_completion_tokens")
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    logit_bias: dict[int, float] | None = None
    response_format: ResponseFormat | None = None

    @field_validator("messages")
    @classmethod
    def _check_messages(cls, messages: list[ChatMessage]) -> list[ChatMessage]:
        if not messages:
            raise ValueError("at least one message is required")
        for index, message in enumerate(messages):
            if message.role is None:
                raise ValueError(f"message {index} has no role")
            if message.content is None:
                raise ValueError(f"message {index} has no content")
        return messages

    @field_validator("model")
    @classmethod
    def _check_model(cls, model: str) -> str:
        if not model.strip():
            raise ValueError("model must be a non-empty string")
        return model

    @field_serializer("logit_bias")
    def _serialize_logit_bias(self, value: dict[int, float] | None) -> dict[str, float] | None:
        # JSON object keys are strings; token ids go over the wire as "50256".
        if value is None:
            return None
        return {str(token): bias for token, bias in value.items()}

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


MessageInput = Union[ChatMessage, Mapping[str, Any]]


def build_conversation(
    messages: Sequence[MessageInput],
    *,
    model: str,
    stream: bool,
    **params: Any,
) -> ChatConversation:
    """Assemble a validated request; ``stream`` is always supplied by the send path."""
    try:
        return ChatConversation(
            messages=[dict(message) if isinstance(message, Mapping) else message for message in messages],
            model=model,
            stream=stream,
            **params,
        )
    except ValidationError as exc:
        raise ChatwireError(
            ErrorKind.INVALID_INPUT,
            f"Invalid chat request: {exc.errors()[0]['msg']}",
            cause=exc,
        ) from exc
