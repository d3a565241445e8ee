"""
Store module.
Contains the Redis connection handling and key layout.
"""

from enqueuer.store.connection import (
    borrow_connection,
    close_redis,
    get_redis,
    init_redis,
)
from enqueuer.store.keys import RedisKeys

__all__ = [
    "get_redis",
    "init_redis",
    "close_redis",
    "borrow_connection",
    "RedisKeys",
]
