"""
Fixed-window rate limiting on Redis
"""

from __future__ import annotations

import logging
import time

from tulisify.core.redis_client import get_redis_client

logger = logging.getLogger(__name__)


async def check_rate_limit(bucket: str, max_requests: int, window_seconds: int = 60) -> tuple[bool, int]:
    """
    Fixed window rate limit.
    Returns (allowed, remaining).
    """
    client = get_redis_client()
    if client is None:
        return (True, max_requests)

    window = int(time.time()) // window_seconds
    key = f"rl:{bucket}:{window}"
    try:
        count = await client.incr(key)
        if count == 1:
            await client.expire(key, window_seconds)
        remaining = max(0, max_requests - count)
        return (count <= max_requests, remaining)
    except Exception as e:
        # Redis outage: let the request through
        logger.warning(f"[rate_limit] redis unavailable, skipping limit: {e}")
        return (True, max_requests)
