from redis import asyncio as aioredis

from app.config import REDIS_URL

# ---- SHARED CLIENT (one connection pool per process) ----
_client = None


def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(REDIS_URL, decode_responses=True)
    return _client


async def close_redis():
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
