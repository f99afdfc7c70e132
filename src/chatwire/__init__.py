"""chatwire public API."""

from chatwire.__about__ import DEFAULT_MODEL
from chatwire.client import ChatAPI
from chatwire.clients import (
    AsyncResultStream,
    ChatClient,
    ChatConversation,
    ChatMessage,
    ChatResponse,
    ChatRole,
    ResponseFormat,
    ResultStream,
    StreamBridge,
)
from chatwire.core import (
    ApiError,
    ApiResult,
    ChatwireError,
    DecodeFailure,
    ErrorKind,
    Success,
    TransportFailure,
    instrument_chatwire,
)

__all__ = [
    "DEFAULT_MODEL",
    "ApiError",
    "ApiResult",
    "AsyncResultStream",
    "ChatAPI",
    "ChatClient",
    "ChatConversation",
    "ChatMessage",
    "ChatResponse",
    "ChatRole",
    "ChatwireError",
    "DecodeFailure",
    "ErrorKind",
    "ResponseFormat",
    "ResultStream",
    "StreamBridge",
    "Success",
    "TransportFailure",
    "instrument_chatwire",
]
