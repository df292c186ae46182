"""EventStream — handle on one long-lived streaming GET."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from typing import Awaitable, Callable

import httpx

from fbrtdb.events import StreamEvent, parse_chunk
from fbrtdb.protocol import ACCEPT_EVENT_STREAM, MAX_REDIRECTS

log = logging.getLogger(__name__)

Dispatch = Callable[[StreamEvent], Awaitable[None]]


class StreamState(str, enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    REDIRECTING = "redirecting"
    CLOSED = "closed"


class EventStream:
    """Background task reading server-sent events and dispatching them.

    Each readable chunk is parsed on its own: first line is the event header,
    the remainder is the data. A redirect answer re-opens the stream against
    the new location; any other end of the response closes it for good, with
    no notification to the listener.

    Usage::

        stream = client.listen('orderBy="name"')
        ...
        await stream.close()
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        url: str,
        dispatch: Dispatch,
        *,
        max_redirects: int = MAX_REDIRECTS,
    ) -> None:
        self._http = http
        self._dispatch = dispatch
        self._max_redirects = max_redirects
        self._task: asyncio.Task | None = None
        self.url = url
        self.redirects = 0
        self.state = StreamState.IDLE

    def __repr__(self) -> str:
        return f"<EventStream {self.state.value} {self.url}>"

    @property
    def closed(self) -> bool:
        return self.state is StreamState.CLOSED

    def start(self) -> EventStream:
        """Schedule the connection on the running loop. Returns self."""
        if self._task is None and not self.closed:
            self.state = StreamState.CONNECTING
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    async def close(self) -> None:
        """Cancel the connection and release the response. Idempotent."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            # Called from a listener callback: the task is us, it unwinds on its own.
            if task is not asyncio.current_task():
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self.state = StreamState.CLOSED

    async def wait_closed(self) -> None:
        """Wait until the server ends the stream (or close() is called)."""
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    # ------------------------------------------------------------------
    async def _run(self) -> None:
        try:
            while True:
                location = await self._connect(self.url)
                if location is None:
                    break
                self.redirects += 1
                if self.redirects > self._max_redirects:
                    log.warning("stream gave up after %d redirects", self._max_redirects)
                    break
                self.state = StreamState.REDIRECTING
                log.info("stream redirected to %s", location)
                self.url = location
        except httpx.HTTPError as exc:
            log.warning("stream %s ended: %s", self.url, exc)
        except Exception:
            log.exception("stream %s error", self.url)
        finally:
            self.state = StreamState.CLOSED
            log.debug("stream %s closed", self.url)

    async def _connect(self, url: str) -> str | None:
        """Read one response to the end. Returns a redirect target or None."""
        self.state = StreamState.CONNECTING
        request = self._http.build_request(
            "GET", url, headers={"accept": ACCEPT_EVENT_STREAM},
        )
        response = await self._http.send(request, stream=True, follow_redirects=False)
        try:
            if response.has_redirect_location:
                return str(response.url.join(response.headers["location"]))
            if response.is_error:
                log.warning("stream %s answered %d", url, response.status_code)
                return None

            self.state = StreamState.STREAMING
            async for chunk in response.aiter_bytes():
                event = parse_chunk(chunk)
                if event is not None:
                    await self._dispatch(event)
        finally:
            await response.aclose()
        return None
