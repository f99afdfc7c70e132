"""Chat-completion operations for chatwire."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from functools import partial
from typing import Any

from chatwire.clients.channel import (
    DEFAULT_MAX_PENDING,
    AsyncResultStream,
    ResultCallback,
    ResultStream,
    first_result,
)
from chatwire.clients.parsing import ChatResult, classify_chat_response
from chatwire.clients.request import ChatConversation, ChatMessage, MessageInput, build_conversation
from chatwire.core.errors import ChatwireError, ErrorKind
from chatwire.core.results import TransportFailure
from chatwire.core.telemetry import REQUEST_SPAN, span
from chatwire.core.transport import CHAT_COMPLETIONS_PATH, ChatTransport

MessagesInput = str | Sequence[MessageInput]


class ChatClient:
    """Chat operations returning typed results instead of raising."""

    def __init__(
        self,
        transport: ChatTransport,
        *,
        model: str,
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        self._transport = transport
        self._model = model
        self._max_pending = max_pending

    @property
    def model(self) -> str:
        return self._model

    def __call__(self, messages: MessagesInput, *, model: str | None = None, **params: Any) -> ChatResult:
        return self.create(messages, model=model, **params)

    def _prepare(
        self,
        messages: MessagesInput,
        *,
        model: str | None,
        stream: bool,
        params: dict[str, Any],
    ) -> ChatConversation:
        if "stream" in params:
            raise ChatwireError(
                ErrorKind.INVALID_INPUT,
                "Do not pass 'stream'; use create() for a single result or stream() for events.",
            )
        if isinstance(messages, str):
            messages = [ChatMessage.user(messages)]
        return build_conversation(messages, model=model or self._model, stream=stream, **params)

    @staticmethod
    def _check_mode(conversation: ChatConversation, *, stream: bool) -> None:
        if conversation.stream is stream:
            return
        expected = "a stream method" if conversation.stream else "a create/send method"
        raise ChatwireError(
            ErrorKind.INVALID_INPUT,
            f"Request was built with stream={conversation.stream}; send it with {expected}.",
        )

    def _record(self, conversation: ChatConversation, result: ChatResult) -> ChatResult:
        self._transport.log_outcome(result, conversation.model)
        return result

    # Single result

    def create(self, messages: MessagesInput, *, model: str | None = None, **params: Any) -> ChatResult:
        conversation = self._prepare(messages, model=model, stream=False, params=params)
        return self.create_conversation(conversation)

    def create_conversation(self, conversation: ChatConversation) -> ChatResult:
        self._check_mode(conversation, stream=False)
        with span(REQUEST_SPAN, model=conversation.model):
            try:
                response = self._transport.post(CHAT_COMPLETIONS_PATH, conversation.to_payload())
            except Exception as exc:
                return self._record(conversation, TransportFailure(exc))
            return self._record(conversation, classify_chat_response(response.content))

    def send(
        self,
        messages: MessagesInput,
        on_result: ResultCallback,
        *,
        model: str | None = None,
        **params: Any,
    ) -> None:
        """Callback form of ``create``: ``on_result`` is called exactly once."""
        on_result(self.create(messages, model=model, **params))

    def send_async(
        self,
        messages: MessagesInput,
        on_result: ResultCallback,
        *,
        model: str | None = None,
        **params: Any,
    ) -> asyncio.Task[None]:
        """Schedule the request on the running loop; ``on_result`` is called exactly once."""
        conversation = self._prepare(messages, model=model, stream=False, params=params)
        return self._send_conversation_async(conversation, on_result)

    async def create_async(self, messages: MessagesInput, *, model: str | None = None, **params: Any) -> ChatResult:
        conversation = self._prepare(messages, model=model, stream=False, params=params)
        return await self.create_conversation_async(conversation)

    async def create_conversation_async(self, conversation: ChatConversation) -> ChatResult:
        self._check_mode(conversation, stream=False)
        return await first_result(partial(self._send_conversation_async, conversation))

    def _send_conversation_async(self, conversation: ChatConversation, on_result: ResultCallback) -> asyncio.Task[None]:
        return asyncio.get_running_loop().create_task(self._post_async(conversation, on_result))

    async def _post_async(self, conversation: ChatConversation, on_result: ResultCallback) -> None:
        with span(REQUEST_SPAN, model=conversation.model):
            try:
                response = await self._transport.apost(CHAT_COMPLETIONS_PATH, conversation.to_payload())
            except Exception as exc:
                result = self._record(conversation, TransportFailure(exc))
            else:
                result = self._record(conversation, classify_chat_response(response.content))
        on_result(result)

    # Streaming

    def stream(self, messages: MessagesInput, *, model: str | None = None, **params: Any) -> ResultStream:
        conversation = self._prepare(messages, model=model, stream=True, params=params)
        return self.stream_conversation(conversation)

    def stream_conversation(self, conversation: ChatConversation) -> ResultStream:
        self._check_mode(conversation, stream=True)
        return ResultStream(
            partial(self._transport.stream, CHAT_COMPLETIONS_PATH, conversation.to_payload()),
            attributes={"model": conversation.model},
        )

    def stream_async(self, messages: MessagesInput, *, model: str | None = None, **params: Any) -> AsyncResultStream:
        conversation = self._prepare(messages, model=model, stream=True, params=params)
        return self.stream_conversation_async(conversation)

    def stream_conversation_async(self, conversation: ChatConversation) -> AsyncResultStream:
        self._check_mode(conversation, stream=True)
        return AsyncResultStream(
            partial(self._transport.astream, CHAT_COMPLETIONS_PATH, conversation.to_payload()),
            max_pending=self._max_pending,
            attributes={"model": conversation.model},
        )
