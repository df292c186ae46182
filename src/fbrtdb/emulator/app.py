"""FastAPI app factory + lifespan for the Realtime Database emulator."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from fbrtdb.emulator.routes import router
from fbrtdb.emulator.tree import DataTree
from fbrtdb.protocol import DEFAULT_KEEPALIVE

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("fbrtdb emulator starting up (keep-alive every %ss)", app.state.keepalive)
    yield
    log.info("fbrtdb emulator shutting down")


def create_app(data: Any = None, keepalive: float | None = None) -> FastAPI:
    app = FastAPI(
        title="fbrtdb emulator",
        description="In-memory stand-in for the Firebase Realtime Database REST API",
        lifespan=lifespan,
    )
    app.state.tree = DataTree(data)
    if keepalive is None:
        keepalive = float(os.environ.get("FBRTDB_KEEPALIVE", DEFAULT_KEEPALIVE))
    app.state.keepalive = keepalive
    app.include_router(router)
    return app
