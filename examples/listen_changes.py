"""Streaming example: print every change under /scores as it happens.

Run the emulator (``python -m fbrtdb.emulator``), start this script, then
write to /scores from another shell, e.g. ``python examples/basic_read_write.py``.
"""

import asyncio

from fbrtdb import FirebaseClient


def on_put(payload):
    print(f"put {payload['path']}: {payload['data']}")


def on_keep_alive():
    print("(keep-alive)")


async def main():
    client = FirebaseClient(
        "http://127.0.0.1:9000",
        db_path="scores",
        on_put=on_put,
        on_keep_alive=on_keep_alive,
    )

    stream = client.listen()
    print(f"--- Listening on {stream.url} for 60s ---")
    try:
        await asyncio.wait_for(stream.wait_closed(), 60)
    except asyncio.TimeoutError:
        pass

    print(f"--- Done: {stream.redirects} redirect(s), state={stream.state.value} ---")
    await client.aclose()

asyncio.run(main())
