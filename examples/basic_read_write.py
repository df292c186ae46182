"""Basic example: write, update, push, read and delete against the emulator.

Start the emulator first::

    python -m fbrtdb.emulator
"""

import asyncio
import json

from fbrtdb import FirebaseClient

HOST = "http://127.0.0.1:9000"


async def main():
    async with FirebaseClient(HOST, db_path="scores") as client:
        print("URL:", client.get_path())

        # Replace the whole location
        await client.write({"ada": 3, "bob": 1}, "PUT")

        # Update one child, leave the rest alone (PATCH is the default)
        await client.write({"bob": 2})

        # Append under a generated key
        resp = await client.write({"by": "eve"}, "POST")
        print("Pushed:", resp.json()["name"])

        print("Now:", json.loads(await client.read()))
        print("Shallow:", json.loads(await client.read("shallow=true")))

        # Clean up
        await client.write(None, "DELETE")

asyncio.run(main())
