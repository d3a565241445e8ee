"""
Redis connection management.
Handles the process-wide connection pool and per-operation connection borrowing.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from redis.asyncio import ConnectionPool, Redis

from enqueuer.config import get_settings

logger = logging.getLogger(__name__)

# Global client instance
_client: Redis | None = None


def get_redis() -> Redis:
    """
    Get or create the Redis client backed by the shared connection pool.

    Returns:
        Redis: The shared Redis client.
    """
    global _client
    if _client is None:
        settings = get_settings()
        pool = ConnectionPool.from_url(
            settings.redis_url,
            max_connections=settings.redis_max_connections,
            socket_timeout=settings.redis_socket_timeout,
        )
        _client = Redis(connection_pool=pool)
    return _client


async def init_redis() -> None:
    """
    Initialize the Redis connection pool and verify it is reachable.
    Should be called on application startup.
    """
    client = get_redis()
    await client.ping()
    logger.info("Redis connection initialized")


async def close_redis() -> None:
    """
    Close the Redis connection pool.
    Should be called on application shutdown.
    """
    global _client
    if _client is not None:
        await _client.aclose(close_connection_pool=True)
        _client = None
        logger.info("Redis connection closed")


@asynccontextmanager
async def borrow_connection(client: Redis) -> AsyncGenerator[Redis]:
    """
    Borrow a single pooled connection for the duration of one operation.

    Every command issued on the yielded client runs on the same connection,
    which goes back to the pool on exit whether the block succeeded or not.

    Args:
        client: Client whose pool to borrow from.

    Yields:
        Redis: A client pinned to one connection.
    """
    async with client.client() as conn:
        yield conn
