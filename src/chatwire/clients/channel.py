"""Callback and pull-based views over one streaming bridge.

``ResultStream`` and ``AsyncResultStream`` own a lazily opened streaming HTTP
response and exactly one ``StreamBridge``. ``run`` makes the caller's callbacks
the bridge's sinks; iterating yields the very same events, exhaustion standing
in for the completion callback.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator, Mapping
from contextlib import (
    AbstractAsyncContextManager,
    AbstractContextManager,
    AsyncExitStack,
    ExitStack,
    aclosing,
    closing,
)
from dataclasses import dataclass
from itertools import chain
from typing import Any

import httpx
from any_llm.types.completion import ChatCompletionChunk

from chatwire.clients.parsing import StreamEvent
from chatwire.clients.streaming import CompleteCallback, EventCallback, StreamBridge
from chatwire.core.errors import ChatwireError, ErrorKind
from chatwire.core.results import ApiResult
from chatwire.core.telemetry import STREAM_SPAN, record_stream, span

logger = logging.getLogger(__name__)

StreamOpener = Callable[[], AbstractContextManager[httpx.Response]]
AsyncStreamOpener = Callable[[], AbstractAsyncContextManager[httpx.Response]]
ResultCallback = Callable[[ApiResult[Any]], Any]

DEFAULT_MAX_PENDING = 64

_COMPLETE = object()
_STOP = object()


@dataclass(frozen=True)
class _Raised:
    error: Exception


def _pump(
    open_stream: StreamOpener,
    bridge: StreamBridge[Any],
    attributes: Mapping[str, Any],
) -> Iterator[None]:
    """Read frames into ``bridge``; yields after each frame so callers can interleave."""
    if bridge.closed:
        return
    with ExitStack() as stack:
        active = stack.enter_context(span(STREAM_SPAN, **attributes))
        stack.callback(lambda: record_stream(active, bridge.stats()))
        try:
            response = stack.enter_context(open_stream())
        except Exception as exc:
            bridge.close(error=exc)
            return
        if response.is_error:
            try:
                body = response.read()
            except Exception as exc:
                bridge.close(error=exc)
                return
            bridge.reject(body)
            return
        frames = stack.enter_context(closing(response.iter_bytes()))
        while not bridge.closed:
            try:
                frame = next(frames)
            except StopIteration:
                bridge.close()
                return
            except Exception as exc:
                bridge.close(error=exc)
                return
            bridge.feed(frame)
            yield


async def _apump(
    open_stream: AsyncStreamOpener,
    bridge: StreamBridge[Any],
    attributes: Mapping[str, Any],
    after_frame: Callable[[], Awaitable[None]] | None = None,
) -> None:
    if bridge.closed:
        return
    async with AsyncExitStack() as stack:
        active = stack.enter_context(span(STREAM_SPAN, **attributes))
        stack.callback(lambda: record_stream(active, bridge.stats()))
        try:
            response = await stack.enter_async_context(open_stream())
        except Exception as exc:
            bridge.close(error=exc)
            return
        if response.is_error:
            try:
                body = await response.aread()
            except Exception as exc:
                bridge.close(error=exc)
                return
            bridge.reject(body)
            return
        frames = await stack.enter_async_context(aclosing(response.aiter_bytes()))
        while not bridge.closed:
            try:
                frame = await anext(frames)
            except StopAsyncIteration:
                bridge.close()
                return
            except Exception as exc:
                bridge.close(error=exc)
                return
            bridge.feed(frame)
            if after_frame is not None:
                await after_frame()


class _StreamBase:
    def __init__(self, *, chunk_type: type[Any], attributes: Mapping[str, Any] | None) -> None:
        self._chunk_type = chunk_type
        self._attributes = dict(attributes or {})
        self._bridge: StreamBridge[Any] | None = None
        self._consumed = False
        self._cancel_requested = False

    @property
    def completed(self) -> bool:
        return self._bridge is not None and self._bridge.completed

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    def _claim(self, on_event: EventCallback, on_complete: CompleteCallback | None) -> StreamBridge[Any]:
        if self._consumed:
            raise ChatwireError(ErrorKind.INVALID_INPUT, "A result stream can only be consumed once.")
        self._consumed = True
        bridge: StreamBridge[Any] = StreamBridge(on_event, on_complete, chunk_type=self._chunk_type)
        if self._cancel_requested:
            bridge.cancel()
        self._bridge = bridge
        return bridge

    def _request_cancel(self) -> bool:
        """Mark the stream cancelled; ``False`` when it already completed."""
        if self.completed:
            return False
        self._cancel_requested = True
        if self._bridge is not None:
            self._bridge.cancel()
        return True


class ResultStream(_StreamBase):
    """Blocking stream of ``StreamEvent`` values for one streaming request."""

    def __init__(
        self,
        open_stream: StreamOpener,
        *,
        chunk_type: type[Any] = ChatCompletionChunk,
        attributes: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(chunk_type=chunk_type, attributes=attributes)
        self._open = open_stream

    def run(self, on_event: EventCallback, on_complete: CompleteCallback | None = None) -> None:
        """Callback mode: deliver events on the calling thread until the stream ends."""
        bridge = self._claim(on_event, on_complete)
        for _ in _pump(self._open, bridge, self._attributes):
            pass

    def __iter__(self) -> Iterator[StreamEvent]:
        pending: deque[StreamEvent] = deque()
        bridge = self._claim(pending.append, None)
        return self._iterate(bridge, pending)

    def _iterate(self, bridge: StreamBridge[Any], pending: deque[StreamEvent]) -> Iterator[StreamEvent]:
        steps = _pump(self._open, bridge, self._attributes)
        try:
            for _ in chain(steps, [None]):
                while pending:
                    if bridge.cancelled:
                        return
                    yield pending.popleft()
        finally:
            bridge.cancel()
            steps.close()

    def cancel(self) -> None:
        self._request_cancel()

    close = cancel

    def __enter__(self) -> ResultStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


class AsyncResultStream(_StreamBase):
    """Async stream of ``StreamEvent`` values for one streaming request.

    Every mode reads the transport in a pump task so ``cancel()`` can interrupt
    a pending read. Pull mode feeds a bounded queue: the pump waits while the
    queue is full and the consumer waits while it is empty.
    """

    def __init__(
        self,
        open_stream: AsyncStreamOpener,
        *,
        chunk_type: type[Any] = ChatCompletionChunk,
        max_pending: int = DEFAULT_MAX_PENDING,
        attributes: Mapping[str, Any] | None = None,
    ) -> None:
        if max_pending < 1:
            raise ChatwireError(ErrorKind.INVALID_INPUT, "max_pending must be >= 1")
        super().__init__(chunk_type=chunk_type, attributes=attributes)
        self._open = open_stream
        self._max_pending = max_pending
        self._task: asyncio.Task[None] | None = None
        self._queue: asyncio.Queue[Any] | None = None

    async def run(self, on_event: EventCallback, on_complete: CompleteCallback | None = None) -> None:
        """Callback mode: deliver events until the stream ends or ``cancel()`` is called."""
        task = self.start(on_event, on_complete)
        try:
            await asyncio.wait([task])
        finally:
            await self._finish()
        if not task.cancelled():
            task.result()

    def start(self, on_event: EventCallback, on_complete: CompleteCallback | None = None) -> asyncio.Task[None]:
        """Callback mode in a background task; ``cancel()`` stops it."""
        bridge = self._claim(on_event, on_complete)
        self._task = asyncio.get_running_loop().create_task(_apump(self._open, bridge, self._attributes))
        return self._task

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        pending: deque[Any] = deque()
        bridge = self._claim(pending.append, lambda: pending.append(_COMPLETE))
        return self._iterate(bridge, pending)

    async def _iterate(self, bridge: StreamBridge[Any], pending: deque[Any]) -> AsyncIterator[StreamEvent]:
        queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=self._max_pending)
        self._queue = queue

        async def flush() -> None:
            while pending:
                await queue.put(pending.popleft())

        async def pump() -> None:
            try:
                await _apump(self._open, bridge, self._attributes, after_frame=flush)
                await flush()
            except Exception as exc:
                pending.clear()
                await queue.put(_Raised(exc))

        if bridge.closed:
            return
        self._task = asyncio.get_running_loop().create_task(pump())
        try:
            while True:
                item = await queue.get()
                if item is _COMPLETE or item is _STOP:
                    return
                if isinstance(item, _Raised):
                    raise item.error
                yield item
        finally:
            await self._finish()

    def cancel(self) -> None:
        # After completion every event is already queued for the consumer.
        if not self._request_cancel():
            return
        logger.debug("Async result stream cancelled")
        self._stop_pump()
        queue = self._queue
        if queue is not None:
            # Wake a consumer blocked on get(); events not yet pulled are dropped.
            while not queue.empty():
                queue.get_nowait()
            queue.put_nowait(_STOP)

    def _stop_pump(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        # A sink cancelling from inside the pump only needs the bridge released.
        if task is asyncio.current_task():
            return
        task.cancel()

    async def _finish(self) -> None:
        if self._bridge is not None:
            self._bridge.cancel()
        task = self._task
        if task is None:
            return
        if not task.done():
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def aclose(self) -> None:
        self.cancel()
        await self._finish()

    async def __aenter__(self) -> AsyncResultStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def first_result(send: Callable[[ResultCallback], Any]) -> ApiResult[Any]:
    """Suspend until ``send`` reports its first result through the callback it is given.

    ``send`` may return the task doing the work; it is cancelled if the caller
    stops waiting, and its failure is re-raised here if it dies before reporting.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[ApiResult[Any]] = loop.create_future()

    def _resolve(result: ApiResult[Any]) -> None:
        if not future.done():
            future.set_result(result)

    def _propagate(task: asyncio.Future[Any]) -> None:
        if future.done():
            return
        if task.cancelled():
            future.cancel()
        elif task.exception() is not None:
            future.set_exception(task.exception())  # type: ignore[arg-type]

    handle = send(_resolve)
    if isinstance(handle, asyncio.Future):
        handle.add_done_callback(_propagate)
    try:
        return await future
    finally:
        if isinstance(handle, asyncio.Future) and not handle.done():
            handle.cancel()
