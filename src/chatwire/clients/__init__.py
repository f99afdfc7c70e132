"""Client helpers for chatwire."""

from chatwire.clients.channel import AsyncResultStream, ResultStream, first_result
from chatwire.clients.chat import ChatClient
from chatwire.clients.parsing import ChatResponse, classify_chat_response, classify_response
from chatwire.clients.request import ChatConversation, ChatMessage, ChatRole, ResponseFormat, build_conversation
from chatwire.clients.streaming import StreamBridge, StreamSession

__all__ = [
    "AsyncResultStream",
    "ChatClient",
    "ChatConversation",
    "ChatMessage",
    "ChatResponse",
    "ChatRole",
    "ResponseFormat",
    "ResultStream",
    "StreamBridge",
    "StreamSession",
    "build_conversation",
    "classify_chat_response",
    "classify_response",
    "first_result",
]
