"""
Realtime Broadcast Layer

Publishes training progress on a Redis pub/sub channel so the admin
dashboard can watch sets being completed live.

Fire-and-forget: there is no acknowledgement or delivery guarantee, and an
unavailable Redis never fails the request that triggered the publish.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import redis
from redis.exceptions import ConnectionError, TimeoutError, RedisError

from core.config import settings

logger = logging.getLogger(__name__)

# Redis connection pool (shared by all broadcasters)
_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """Get Redis client with connection pooling. Returns None if Redis unavailable."""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    try:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            retry_on_timeout=False,
            health_check_interval=30
        )
        _redis_client.ping()
        logger.info("Redis connection established")
        return _redis_client
    except (ConnectionError, TimeoutError, RedisError) as e:
        logger.warning(f"Redis unavailable: {e}. Realtime broadcast disabled.")
        _redis_client = None
        return None


class RealtimeBroadcaster:
    """Publishes JSON events on a single named channel."""

    def __init__(self, client: Optional[Any] = None, channel: Optional[str] = None):
        self._client = client
        self.channel = channel or settings.REALTIME_CHANNEL

    def _resolve_client(self) -> Optional[Any]:
        if self._client is None:
            self._client = get_redis_client()
        return self._client

    def publish(self, event: str, payload: Dict[str, Any]) -> bool:
        """
        Publish ``payload`` under ``event``. Returns True if Redis accepted it.
        """
        client = self._resolve_client()
        if client is None:
            logger.debug(f"Skipping broadcast of {event}: no Redis client")
            return False

        message = json.dumps(
            {
                "type": "broadcast",
                "event": event,
                "payload": payload,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            default=str,  # datetimes, UUIDs
        )
        try:
            client.publish(self.channel, message)
            return True
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"Broadcast of {event} on {self.channel} failed: {e}")
            return False


def get_broadcaster() -> RealtimeBroadcaster:
    """FastAPI dependency."""
    return RealtimeBroadcaster()
