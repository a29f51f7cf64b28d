"""
Analytics events kept in a capped Redis list
"""

from __future__ import annotations

import json
import logging
import datetime as dt
from typing import Any, Dict

from tulisify.core.redis_client import get_redis_client

logger = logging.getLogger(__name__)

EVENTS_KEY = "analytics:events"
MAX_EVENTS = 5000


async def track_event(name: str, props: Dict[str, Any] | None = None) -> None:
    client = get_redis_client()
    if client is None:
        return
    try:
        payload = {
            "name": name,
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
        }
        if props:
            payload.update(props)
        data = json.dumps(payload, ensure_ascii=False, default=str)
        await client.lpush(EVENTS_KEY, data)
        await client.ltrim(EVENTS_KEY, 0, MAX_EVENTS - 1)
    except Exception as e:
        logger.debug(f"[analytics] dropped event {name}: {e}")
