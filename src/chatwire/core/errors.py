"""Error definitions for chatwire."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class ErrorKind(str, Enum):
    """Stable error kinds for caller decisions."""

    INVALID_INPUT = "invalid_input"
    CONFIG = "config"
    API = "api"
    TRANSPORT = "transport"
    DECODE = "decode"
    UNKNOWN = "unknown"


@dataclass
class ChatwireError(Exception):
    """Public error type for chatwire.

    Attributes:
        kind: Stable, actionable error kind.
        message: Human-readable description.
        cause: Original exception for debugging.
    """

    kind: ErrorKind
    message: str
    cause: BaseException | None = None

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"

    def with_cause(self, cause: BaseException) -> ChatwireError:
        return replace(self, cause=cause)
