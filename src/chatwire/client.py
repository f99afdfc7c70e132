"""chatwire API facade."""

from __future__ import annotations

import warnings
from typing import Any

from chatwire.__about__ import DEFAULT_MODEL
from chatwire.clients.channel import DEFAULT_MAX_PENDING
from chatwire.clients.chat import ChatClient
from chatwire.core.errors import ChatwireError, ErrorKind
from chatwire.core.transport import ChatTransport


class ChatAPI:
    """Typed chat-completion client over an OpenAI-compatible HTTP API."""

    def __init__(
        self,
        model: str | None = None,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        organization: str | None = None,
        timeout: float | None = 60.0,
        max_retries: int = 0,
        client_args: dict[str, Any] | None = None,
        verbose: int = 0,
        max_pending: int = DEFAULT_MAX_PENDING,
    ) -> None:
        if verbose not in (0, 1, 2):
            raise ChatwireError(ErrorKind.INVALID_INPUT, "verbose must be 0, 1, or 2")
        if max_retries < 0:
            raise ChatwireError(ErrorKind.INVALID_INPUT, "max_retries must be >= 0")
        if max_pending < 1:
            raise ChatwireError(ErrorKind.INVALID_INPUT, "max_pending must be >= 1")

        if not model:
            model = DEFAULT_MODEL
            warnings.warn(f"No model was provided, defaulting to {model}", UserWarning, stacklevel=2)

        self._transport = ChatTransport(
            api_key=api_key,
            api_base=api_base,
            organization=organization,
            timeout=timeout,
            max_retries=max_retries,
            client_args=client_args or {},
            verbose=verbose,
        )
        self.chat: ChatClient = ChatClient(self._transport, model=model, max_pending=max_pending)

    @property
    def model(self) -> str:
        return self.chat.model

    @property
    def api_base(self) -> str:
        return self._transport.api_base

    def close(self) -> None:
        self._transport.close()

    async def aclose(self) -> None:
        await self._transport.aclose()

    def __enter__(self) -> ChatAPI:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> ChatAPI:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"<ChatAPI model={self.model} api_base={self.api_base}>"
