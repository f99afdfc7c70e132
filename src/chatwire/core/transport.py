"""HTTP transport collaborator for chatwire."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import httpx

from chatwire.__about__ import DEFAULT_API_BASE
from chatwire.core.errors import ChatwireError, ErrorKind
from chatwire.core.results import ApiResult, describe

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "chat/completions"


class ChatTransport:
    """Owns the httpx clients used to reach the remote API (auth, endpoint, pooling)."""

    def __init__(
        self,
        *,
        api_key: str | None,
        api_base: str | None,
        organization: str | None,
        timeout: float | None,
        max_retries: int,
        client_args: dict[str, Any],
        verbose: int,
    ) -> None:
        self._api_key = self.resolve_api_key(api_key)
        self._api_base = self.resolve_api_base(api_base)
        self._organization = organization
        self._timeout = timeout
        self._max_retries = max_retries
        self._client_args = client_args
        self._verbose = verbose
        self._client: httpx.Client | None = None
        self._async_client: httpx.AsyncClient | None = None

    @staticmethod
    def resolve_api_key(api_key: str | None) -> str:
        resolved = api_key or os.getenv("OPENAI_API_KEY")
        if not resolved:
            raise ChatwireError(ErrorKind.CONFIG, "No API key provided. Pass api_key or set OPENAI_API_KEY.")
        return resolved

    @staticmethod
    def resolve_api_base(api_base: str | None) -> str:
        return (api_base or os.getenv("OPENAI_BASE_URL") or DEFAULT_API_BASE).rstrip("/")

    @property
    def api_base(self) -> str:
        return self._api_base

    @property
    def verbose(self) -> int:
        return self._verbose

    def headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if self._organization:
            headers["OpenAI-Organization"] = self._organization
        extra = self._client_args.get("headers") or {}
        return {**headers, **extra}

    def _client_kwargs(self, *, use_async: bool) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "timeout": self._timeout,
            **{k: v for k, v in self._client_args.items() if k != "headers"},
            "base_url": self._api_base,
            "headers": self.headers(),
        }
        if "transport" not in kwargs and self._max_retries:
            transport_type = httpx.AsyncHTTPTransport if use_async else httpx.HTTPTransport
            kwargs["transport"] = transport_type(retries=self._max_retries)
        return kwargs

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(**self._client_kwargs(use_async=False))
        return self._client

    @property
    def async_client(self) -> httpx.AsyncClient:
        if self._async_client is None:
            self._async_client = httpx.AsyncClient(**self._client_kwargs(use_async=True))
        return self._async_client

    def post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        self.log_dispatch(path, payload)
        return self.client.post(path, json=payload)

    async def apost(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        self.log_dispatch(path, payload)
        return await self.async_client.post(path, json=payload)

    @contextmanager
    def stream(self, path: str, payload: dict[str, Any]) -> Iterator[httpx.Response]:
        self.log_dispatch(path, payload)
        with self.client.stream("POST", path, json=payload, headers={"Accept": "text/event-stream"}) as response:
            yield response

    @asynccontextmanager
    async def astream(self, path: str, payload: dict[str, Any]) -> AsyncIterator[httpx.Response]:
        self.log_dispatch(path, payload)
        async with self.async_client.stream(
            "POST", path, json=payload, headers={"Accept": "text/event-stream"}
        ) as response:
            yield response

    def log_dispatch(self, path: str, payload: dict[str, Any]) -> None:
        if self._verbose < 2:
            return
        logger.debug(
            "POST %s/%s model=%s stream=%s messages=%d",
            self._api_base,
            path,
            payload.get("model"),
            payload.get("stream"),
            len(payload.get("messages") or []),
        )

    def log_outcome(self, result: ApiResult[Any], model: str) -> None:
        if self._verbose == 0 or result.ok:
            return
        logger.warning("[%s] %s", model, describe(result))

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def aclose(self) -> None:
        if self._async_client is not None:
            await self._async_client.aclose()
            self._async_client = None
