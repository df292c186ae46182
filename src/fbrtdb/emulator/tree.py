"""In-memory JSON tree addressed by ``/``-separated paths.

Mirrors how a Realtime Database stores data:
  - writing ``None`` (JSON null) deletes the location
  - empty objects disappear, so their parents do too
  - every write is published to subscribers as ``(path, value)``
"""

from __future__ import annotations

import asyncio
import copy
import itertools
import logging
import time
from typing import Any

log = logging.getLogger(__name__)


def split_path(path: str) -> list[str]:
    return [key for key in path.strip("/").split("/") if key]


def join_path(*parts: str) -> str:
    keys = [key for part in parts for key in split_path(part)]
    return "/" + "/".join(keys)


def prune(value: Any) -> Any:
    """Drop null members and empty objects, recursively."""
    if isinstance(value, dict):
        out = {k: prune(v) for k, v in value.items()}
        out = {k: v for k, v in out.items() if v is not None}
        return out or None
    return value


class DataTree:
    """The emulator's database. Single event loop, no locking."""

    def __init__(self, root: Any = None) -> None:
        self._root = prune(copy.deepcopy(root))
        self._subscribers: set[asyncio.Queue] = set()
        self._seq = itertools.count()

    # ------------------------------------------------------------------
    def get(self, path: str = "/") -> Any:
        node = self._root
        for key in split_path(path):
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return copy.deepcopy(node)

    def set(self, path: str, value: Any) -> Any:
        value = prune(copy.deepcopy(value))
        keys = split_path(path)
        if not keys:
            self._root = value
        else:
            if not isinstance(self._root, dict):
                self._root = {}
            node = self._root
            for key in keys[:-1]:
                child = node.get(key)
                if not isinstance(child, dict):
                    child = node[key] = {}
                node = child
            if value is None:
                node.pop(keys[-1], None)
            else:
                node[keys[-1]] = value
            self._root = prune(self._root)

        self._publish(join_path(path), value)
        return copy.deepcopy(value)

    def update(self, path: str, children: dict[str, Any]) -> dict[str, Any]:
        """Write each child of *children* under *path*, leaving siblings alone."""
        if not isinstance(children, dict):
            raise TypeError("update expects a JSON object")
        for key, value in children.items():
            self.set(join_path(path, key), value)
        return children

    def push(self, path: str, value: Any) -> str:
        """Append *value* under a new chronologically ordered key."""
        key = f"-{int(time.time() * 1000):013d}{next(self._seq):07d}"
        self.set(join_path(path, key), value)
        return key

    def delete(self, path: str) -> None:
        self.set(path, None)

    # --- Change feed ------------------------------------------------------

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)

    def _publish(self, path: str, value: Any) -> None:
        log.debug("changed %s (%d subscriber(s))", path, len(self._subscribers))
        for queue in self._subscribers:
            queue.put_nowait((path, copy.deepcopy(value)))
