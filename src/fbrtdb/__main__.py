"""python -m fbrtdb [query] — stream changes at FIREBASE_HOST/FIREBASE_DB_PATH and log them."""

import asyncio
import json
import logging
import sys

from fbrtdb.client.client import FirebaseClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
log = logging.getLogger("fbrtdb")


def on_put(payload: dict) -> None:
    log.info("put %s", json.dumps(payload))


def on_keep_alive() -> None:
    log.info("keep-alive")


async def main(query: str) -> None:
    async with FirebaseClient.from_env(on_put=on_put, on_keep_alive=on_keep_alive) as client:
        stream = client.listen(query)
        log.info("listening on %s", stream.url)
        await stream.wait_closed()
        log.info("stream closed")


try:
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else ""))
except KeyboardInterrupt:
    pass
