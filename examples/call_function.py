"""Call a function and print its raw answer."""

import asyncio

from fbrtdb import FirebaseClient


async def main():
    client = FirebaseClient(
        function_host="http://127.0.0.1:9000/functions/",
        on_function_result=lambda data: print("Result:", data.decode()),
    )
    await client.call_function("tally?season=2024")
    await client.aclose()

asyncio.run(main())
