"""Stream events: chunk framing ↔ KeepAlive / Put."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from fbrtdb.protocol import EVENT_KEEP_ALIVE, EVENT_PUT

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeepAlive:
    """Periodic no-op event telling the listener the stream is alive."""


@dataclass(frozen=True)
class Put:
    """Data at the watched location changed.

    The first put on a fresh stream carries the initial contents.
    """
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str | None:
        return self.payload.get("path")

    @property
    def data(self) -> Any:
        return self.payload.get("data")


StreamEvent = Union[KeepAlive, Put]


def split_chunk(chunk: bytes) -> tuple[bytes, bytes]:
    """Split a chunk into its header line (newline kept) and the rest."""
    idx = chunk.find(b"\n")
    if idx < 0:
        return chunk, b""
    return chunk[: idx + 1], chunk[idx + 1:]


def trim_value(line: bytes) -> bytes:
    """Drop everything up to the first ``:`` (e.g. ``data: ``) and strip."""
    idx = line.find(b":")
    value = line[idx + 1:] if idx > 0 else b""
    return value.strip()


def parse_put(data: bytes) -> Put | None:
    value = trim_value(data)
    try:
        doc = json.loads(value)
    except ValueError as exc:
        log.warning("malformed put data %r: %s", value, exc)
        return None
    if not isinstance(doc, dict):
        log.warning("malformed put data %r: not a JSON object", value)
        return None
    return Put(doc)


def parse_event(header: bytes, data: bytes) -> StreamEvent | None:
    """Turn one header line + its data into an event, or None if dropped."""
    if header == EVENT_KEEP_ALIVE:
        return KeepAlive()
    if header == EVENT_PUT:
        return parse_put(data)
    log.warning("unknown event %r", header)
    return None


def parse_chunk(chunk: bytes) -> StreamEvent | None:
    """Parse one readable chunk of an event stream.

    The first line is the event header; every other byte in the chunk is
    taken as its data line.
    """
    if not chunk:
        return None
    header, data = split_chunk(chunk)
    return parse_event(header, data)
