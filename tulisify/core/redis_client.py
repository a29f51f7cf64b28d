from typing import Optional

import redis.asyncio as redis

from tulisify.core.config import settings

redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """
    Return the shared Redis client, or None when REDIS_URL is not configured.
    """
    global redis_client
    if not settings.REDIS_URL:
        return None
    if redis_client is None:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True
        )
    return redis_client
