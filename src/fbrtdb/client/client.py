"""FirebaseClient — async REST client SDK for the Firebase Realtime Database."""

from __future__ import annotations

import inspect
import json
import logging
import os
from typing import Any, Callable

import httpx

from fbrtdb.client.stream import EventStream
from fbrtdb.events import KeepAlive, Put, StreamEvent
from fbrtdb.protocol import (
    CONTENT_TYPE_WRITE,
    DEFAULT_VERB,
    ENV_AUTH_TOKEN,
    ENV_DB_PATH,
    ENV_FUNCTION_HOST,
    ENV_HOST,
    JSON_SUFFIX,
)

log = logging.getLogger(__name__)

Callback = Callable[..., Any]


def force_end_char(string: str, end: str) -> str:
    if not string.endswith(end):
        return string + end
    return string


def force_start_char(string: str, start: str) -> str:
    if string and not string.startswith(start):
        return start + string
    return string


def normalize_host(host: str, db_path: str) -> str:
    """``https://x.firebaseio.com`` + ``users`` -> ``https://x.firebaseio.com/users``."""
    return force_end_char(host.strip(), "/") + db_path.strip()


class FirebaseClient:
    """Thin client for one location of a Firebase Realtime Database.

    Requests are issued through a shared ``httpx.AsyncClient``. Results reach
    the caller through the returned values and through the listener
    callbacks; callbacks may be plain functions or coroutine functions.

    Args:
        host: Database URL, e.g. ``https://<project>.firebaseio.com``. May be
            empty to operate on the database root.
        function_host: Prefix for Cloud Function calls.
        db_path: Location inside the database. ``.json`` is appended when
            building request URLs if it is missing.
        on_put: Called with the JSON object of every ``put`` event.
        on_keep_alive: Called with no arguments on every ``keep-alive`` event.
        on_function_result: Called with the raw body of a function call.
        on_response: Called with the raw body of a read or write.
        auth_token: Sent as the ``auth`` query parameter when non-empty.
        timeout: httpx timeout. ``None`` leaves streams open indefinitely.
        http: Bring your own ``httpx.AsyncClient`` (not closed by ``aclose``).
    """

    def __init__(
        self,
        host: str = "",
        function_host: str = "",
        db_path: str = "",
        *,
        on_put: Callback | None = None,
        on_keep_alive: Callback | None = None,
        on_function_result: Callback | None = None,
        on_response: Callback | None = None,
        auth_token: str = "",
        timeout: float | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.host = normalize_host(host, db_path)
        self.function_host = function_host
        self.auth_token = auth_token

        self.on_put = on_put
        self.on_keep_alive = on_keep_alive
        self.on_function_result = on_function_result
        self.on_response = on_response

        self._owns_http = http is None
        self._http = http if http is not None else httpx.AsyncClient(timeout=timeout)
        self._streams: list[EventStream] = []

    @classmethod
    def from_env(cls, **kwargs: Any) -> FirebaseClient:
        """Build a client from ``FIREBASE_*`` environment variables."""
        return cls(
            os.environ.get(ENV_HOST, ""),
            os.environ.get(ENV_FUNCTION_HOST, ""),
            os.environ.get(ENV_DB_PATH, ""),
            auth_token=os.environ.get(ENV_AUTH_TOKEN, ""),
            **kwargs,
        )

    async def aclose(self) -> None:
        for stream in self._streams:
            await stream.close()
        self._streams.clear()
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    # --- Endpoint -----------------------------------------------------------

    def reset_host(self, host: str, db_path: str) -> None:
        """Point the client at a new location.

        Streams opened earlier keep running against the old URL; close them
        through their handles and call :meth:`listen` again.
        """
        self.host = normalize_host(host, db_path)
        self._forget_closed()
        if self._streams:
            log.debug("host reset with %d stream(s) still open", len(self._streams))

    def build_path(self, query: str = "") -> str:
        """URL a request with *query* would use."""
        destination = self.host
        if len(destination) <= len(JSON_SUFFIX) or not destination.endswith(JSON_SUFFIX):
            destination += JSON_SUFFIX

        if self.auth_token:
            auth = f"auth={self.auth_token}"
            query = query.lstrip("?")
            query = f"{query}&{auth}" if query else auth

        if query:
            destination += force_start_char(query, "?")
        return destination

    get_path = build_path

    # --- One-shot requests --------------------------------------------------

    async def write(
        self,
        body: Any,
        verb: str = DEFAULT_VERB,
        query: str = "",
    ) -> httpx.Response:
        """Send *body* as compact JSON with PUT, POST, PATCH or DELETE."""
        payload = json.dumps(body, separators=(",", ":"))
        resp = await self._http.request(
            verb,
            self.build_path(query),
            content=payload.encode(),
            headers={"content-type": CONTENT_TYPE_WRITE},
        )
        log.debug("%s %s -> %d", verb, resp.request.url, resp.status_code)
        await _notify(self.on_response, resp.content)
        return resp

    async def read(self, query: str = "") -> bytes:
        resp = await self._http.get(self.build_path(query))
        log.debug("GET %s -> %d", resp.request.url, resp.status_code)
        await _notify(self.on_response, resp.content)
        return resp.content

    async def call_function(self, name: str) -> bytes:
        resp = await self._http.get(self.function_host + name)
        await _notify(self.on_function_result, resp.content)
        return resp.content

    # --- Streaming ----------------------------------------------------------

    def listen(self, query: str = "") -> EventStream:
        """Start streaming changes at the current location.

        Must be called from a running event loop. Returns the handle; use
        ``await handle.close()`` to drop the connection.
        """
        stream = EventStream(self._http, self.build_path(query), self._dispatch)
        self._forget_closed()
        self._streams.append(stream)
        return stream.start()

    def _forget_closed(self) -> None:
        self._streams = [s for s in self._streams if not s.closed]

    async def _dispatch(self, event: StreamEvent) -> None:
        if isinstance(event, KeepAlive):
            await _notify(self.on_keep_alive)
        elif isinstance(event, Put):
            await _notify(self.on_put, event.payload)


async def _notify(callback: Callback | None, *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
