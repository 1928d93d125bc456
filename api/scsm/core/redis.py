# ruff: noqa: PLW0603
"""Redis connection management.

Redis is optional. When enabled it backs the per-student locks so several
API workers serialize updates to the same student.
"""

import redis.asyncio as redis

from scsm.config.settings import Settings
from scsm.core.logging import get_logger


logger = get_logger(__name__)

# Global Redis client
_redis_client: redis.Redis | None = None


async def init_redis(settings: Settings) -> redis.Redis:
    """Initialize the Redis connection pool and check connectivity.

    Raises:
        redis.ConnectionError: If Redis is unreachable
    """
    global _redis_client

    client = redis.from_url(
        settings.redis_url,
        max_connections=settings.redis_max_connections,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        retry_on_timeout=settings.redis_retry_on_timeout,
        health_check_interval=settings.redis_health_check_interval,
        decode_responses=True,
    )

    try:
        await client.ping()
    except redis.ConnectionError as e:
        logger.warning("redis_connection_failed", error=str(e))
        await client.aclose()
        raise

    logger.info("redis_connected", url=settings.redis_url)
    _redis_client = client
    return client


async def shutdown_redis() -> None:
    """Close the Redis connection."""
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        logger.info("redis_disconnected")
        _redis_client = None
