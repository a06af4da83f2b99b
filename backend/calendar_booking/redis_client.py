from typing import Optional

from redis import Redis

REDIS_SOCKET_TIMEOUT = 2.0


def create_redis_client(redis_url: Optional[str]) -> Optional[Redis]:
    """Sync client used for publishing events; None when Redis is not configured."""
    if not redis_url:
        return None
    return Redis.from_url(
        redis_url,
        decode_responses=True,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
    )
