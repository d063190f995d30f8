"""
Distributed lock on Redis.

Prevents two workers from running the same distribution concurrently.
Without a Redis client the lock degrades to an in-process asyncio lock.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from loguru import logger


_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class LockNotAcquiredError(Exception):
    """Raised when a lock is held by another worker."""


class DistributedLock:
    """Redis SET NX lock with token-checked release."""

    _local_locks: dict[str, asyncio.Lock] = {}

    def __init__(self, redis_client: redis.Redis | None = None, prefix: str = "lock:") -> None:
        self.redis_client = redis_client
        self.prefix = prefix

    @asynccontextmanager
    async def lock(self, key: str, timeout: int = 60) -> AsyncIterator[None]:
        """
        Hold the lock for the duration of the block.

        Args:
            key: Lock name
            timeout: Lock TTL in seconds

        Raises:
            LockNotAcquiredError: If another holder owns the lock
        """
        if self.redis_client is None:
            local = self._local_locks.setdefault(key, asyncio.Lock())
            if local.locked():
                raise LockNotAcquiredError(key)
            async with local:
                yield
            return

        name = f"{self.prefix}{key}"
        token = uuid.uuid4().hex
        acquired = await self.redis_client.set(name, token, nx=True, ex=timeout)
        if not acquired:
            raise LockNotAcquiredError(key)

        logger.debug(f"Lock acquired: {name}")
        try:
            yield
        finally:
            await self.redis_client.eval(_RELEASE_SCRIPT, 1, name, token)
            logger.debug(f"Lock released: {name}")
