"""All HTTP endpoints of the Realtime Database emulator."""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from fbrtdb.emulator.tree import DataTree, join_path
from fbrtdb.protocol import ACCEPT_EVENT_STREAM, EP_FUNCTIONS, JSON_SUFFIX

router = APIRouter()

PARSE_ERROR = "Invalid data; couldn't parse JSON object, array, or value."


# --- Helpers -----------------------------------------------------------------

def _location(path: str) -> str | None:
    """``users/ada.json`` -> ``/users/ada``; None when the suffix is missing."""
    if not path.endswith(JSON_SUFFIX):
        return None
    return join_path(path[: -len(JSON_SUFFIX)])


def _not_found(path: str) -> JSONResponse:
    return JSONResponse({"error": f"{path!r} is not a .json location"}, status_code=404)


async def _body(request: Request) -> Any:
    # Clients declare form-urlencoded but send JSON; parse it regardless.
    raw = await request.body()
    return json.loads(raw)


def sse(event: str, data: Any) -> bytes:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n".encode()


def relative_change(watched: str, changed: str, tree: DataTree, value: Any) -> dict | None:
    """Put payload a listener on *watched* sees for a write at *changed*."""
    if changed == watched:
        return {"path": "/", "data": value}
    if changed.startswith(watched.rstrip("/") + "/"):
        return {"path": changed[len(watched.rstrip("/")):], "data": value}
    if watched.startswith(changed.rstrip("/") + "/"):
        return {"path": "/", "data": tree.get(watched)}
    return None


async def stream_changes(
    tree: DataTree,
    watched: str,
    keepalive: float,
) -> AsyncIterator[bytes]:
    """Initial put, then one put per relevant change, keep-alive when idle."""
    queue = tree.subscribe()
    try:
        yield sse("put", {"path": "/", "data": tree.get(watched)})
        while True:
            try:
                changed, value = await asyncio.wait_for(queue.get(), keepalive)
            except asyncio.TimeoutError:
                yield sse("keep-alive", None)
                continue
            payload = relative_change(watched, changed, tree, value)
            if payload is not None:
                yield sse("put", payload)
    finally:
        tree.unsubscribe(queue)


# --- Routes ------------------------------------------------------------------

@router.get(EP_FUNCTIONS + "/{name}")
async def call_function(name: str, request: Request):
    return {"function": name, "query": dict(request.query_params)}


@router.get("/{path:path}")
async def read(path: str, request: Request):
    location = _location(path)
    if location is None:
        return _not_found(path)
    tree: DataTree = request.app.state.tree

    if ACCEPT_EVENT_STREAM in request.headers.get("accept", ""):
        return StreamingResponse(
            stream_changes(tree, location, request.app.state.keepalive),
            media_type=ACCEPT_EVENT_STREAM,
            headers={"cache-control": "no-cache"},
        )
    value = tree.get(location)
    if request.query_params.get("shallow") == "true" and isinstance(value, dict):
        value = {key: True for key in value}
    return JSONResponse(value)


@router.put("/{path:path}")
async def put(path: str, request: Request):
    location = _location(path)
    if location is None:
        return _not_found(path)
    try:
        value = await _body(request)
    except ValueError:
        return JSONResponse({"error": PARSE_ERROR}, status_code=400)
    return JSONResponse(request.app.state.tree.set(location, value))


@router.patch("/{path:path}")
async def patch(path: str, request: Request):
    location = _location(path)
    if location is None:
        return _not_found(path)
    try:
        children = await _body(request)
    except ValueError:
        return JSONResponse({"error": PARSE_ERROR}, status_code=400)
    if not isinstance(children, dict):
        return JSONResponse({"error": "PATCH expects a JSON object"}, status_code=400)
    return JSONResponse(request.app.state.tree.update(location, children))


@router.post("/{path:path}")
async def post(path: str, request: Request):
    location = _location(path)
    if location is None:
        return _not_found(path)
    try:
        value = await _body(request)
    except ValueError:
        return JSONResponse({"error": PARSE_ERROR}, status_code=400)
    return {"name": request.app.state.tree.push(location, value)}


@router.delete("/{path:path}")
async def delete(path: str, request: Request):
    location = _location(path)
    if location is None:
        return _not_found(path)
    request.app.state.tree.delete(location)
    return JSONResponse(None)
