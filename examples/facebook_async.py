# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "apibinding",
# ]
#
# [tool.uv.sources]
# apibinding = { path = "../", editable = true }
# ///

import asyncio

from apibinding.lib.facebook import AsyncFacebook


async def main() -> None:
    async with AsyncFacebook.from_env() as facebook:
        profile, friends = await asyncio.gather(facebook.get_profile(), facebook.get_friends(timeout=10.0))

    print(f"{profile.name} has {len(friends)} friends using this app")


asyncio.run(main())
