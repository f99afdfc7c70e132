"""Optional Logfire tracing for chatwire requests and streams.

Spans are opened only after ``instrument_chatwire()``; until then every helper
here is a no-op, so chatwire never configures Logfire on its own.
"""

from __future__ import annotations

from collections.abc import Mapping
from contextlib import nullcontext
from typing import Any

try:  # pragma: no cover - optional dependency
    import logfire  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover - optional dependency
    logfire = None

from chatwire.core.errors import ChatwireError, ErrorKind

_INSTRUMENTED = False

REQUEST_SPAN = "chatwire.chat.create"
STREAM_SPAN = "chatwire.chat.stream"


def tracing_enabled() -> bool:
    return _INSTRUMENTED and logfire is not None


def span(name: str, **attributes: Any):
    if not tracing_enabled():
        return nullcontext()
    return logfire.span(name, **attributes)


def record_stream(active: Any, stats: Mapping[str, Any]) -> None:
    """Attach a stream's final counters (bytes, events, completed, cancelled) to ``active``."""
    if active is None or not tracing_enabled():
        return
    for key, value in stats.items():
        active.set_attribute(f"chatwire.stream.{key}", value)


def instrument_chatwire() -> None:
    """Enable chatwire's request and stream spans after users configure Logfire themselves."""
    if logfire is None:
        raise ChatwireError(
            ErrorKind.CONFIG,
            "Tracing needs Logfire. Install 'chatwire[observability]' and call logfire.configure() first.",
        )
    global _INSTRUMENTED
    _INSTRUMENTED = True
