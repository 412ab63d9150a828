# badgesmith/infrastructure/io/fetch.py
import asyncio
import logging
from typing import Optional

import aiofiles
import aiohttp

logger = logging.getLogger(__name__)


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


async def read_location(location: str, session: Optional[aiohttp.ClientSession] = None) -> bytes:
    """Read bytes from an http(s) URL or a local file."""
    if is_url(location):
        if session is None:
            async with aiohttp.ClientSession() as own_session:
                return await read_location(location, own_session)
        async with session.get(location) as response:
            response.raise_for_status()
            return await response.read()
    async with aiofiles.open(location, "rb") as f:
        return await f.read()


async def fetch_with_retry(location: str, timeout: float, retries: int,
                           session: Optional[aiohttp.ClientSession] = None) -> bytes:
    """``read_location`` bounded by ``timeout`` per attempt, retried ``retries`` times.

    The last error is re-raised once every attempt has failed.
    """
    attempts = max(0, retries) + 1
    for attempt in range(1, attempts + 1):
        try:
            async with asyncio.timeout(timeout):
                return await read_location(location, session)
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Fetch {attempt}/{attempts} for '{location[:70]}' failed: {type(e).__name__}")
            if attempt == attempts:
                raise
