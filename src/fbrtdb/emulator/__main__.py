"""python -m fbrtdb.emulator [seed.json]

Serves an empty database, or the JSON document given as the first argument.
"""

import json
import logging
import os
import sys

import uvicorn

from fbrtdb.emulator.app import create_app
from fbrtdb.protocol import DEFAULT_EMULATOR_HOST, DEFAULT_EMULATOR_PORT, DEFAULT_KEEPALIVE

log = logging.getLogger("fbrtdb.emulator")


def main(argv: list[str]) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    seed = None
    if argv:
        with open(argv[0], encoding="utf-8") as f:
            seed = json.load(f)
        log.info("seeded from %s", argv[0])

    app = create_app(
        seed,
        keepalive=float(os.environ.get("FBRTDB_KEEPALIVE", DEFAULT_KEEPALIVE)),
    )
    uvicorn.run(
        app,
        host=os.environ.get("FBRTDB_EMULATOR_HOST", DEFAULT_EMULATOR_HOST),
        port=int(os.environ.get("FBRTDB_EMULATOR_PORT", DEFAULT_EMULATOR_PORT)),
        log_level="info",
    )


if __name__ == "__main__":
    main(sys.argv[1:])
