"""Redis-backed cache adapter for sharing verification keys across processes."""

from __future__ import annotations

import logging

import redis

logger = logging.getLogger(__name__)


class RedisCache:
    """
    ``CacheAdapter`` over a synchronous redis client.

    Redis errors are logged and treated as a miss (``get``) or a skipped write
    (``set``); the key resolver then falls back to fetching the key remotely.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisCache:
        return cls(
            redis.Redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
        )

    def get(self, key: str) -> str | None:
        try:
            value = self._client.get(key)
        except redis.RedisError as e:
            logger.warning("Redis get failed key=%s: %s", key, type(e).__name__)
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._client.set(key, value, ex=ttl_seconds)
        except redis.RedisError as e:
            logger.warning("Redis set failed key=%s: %s", key, type(e).__name__)
