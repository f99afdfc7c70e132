"""Core primitives for chatwire."""

from chatwire.core.errors import ChatwireError, ErrorKind
from chatwire.core.results import ApiError, ApiResult, DecodeFailure, Success, TransportFailure
from chatwire.core.telemetry import instrument_chatwire, span
from chatwire.core.transport import ChatTransport

__all__ = [
    "ApiError",
    "ApiResult",
    "ChatTransport",
    "ChatwireError",
    "DecodeFailure",
    "ErrorKind",
    "Success",
    "TransportFailure",
    "instrument_chatwire",
    "span",
]
