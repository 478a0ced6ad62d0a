"""Redis lease so that one replica at a time runs a periodic job."""

import uuid

import redis.asyncio as redis

from seatclaim.config import get_settings

settings = get_settings()


class DistributedLock:
    """
    Redis-based lock.

    Acquired with SET NX EX so a crashed holder's lock still expires.
    Released with a Lua compare-and-delete so a holder never frees a
    lock that has since passed to someone else.
    """

    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        key: str,
        timeout_seconds: int | None = None,
    ):
        self.redis = redis_client
        self.key = f"lock:{key}"
        self.timeout_seconds = timeout_seconds or settings.LOCK_TIMEOUT_SECONDS
        self.token: str | None = None
        self._release_script = self.redis.register_script(self.RELEASE_SCRIPT)

    async def acquire(self) -> bool:
        """Try once to take the lock. Returns True if acquired."""
        self.token = str(uuid.uuid4())
        acquired = await self.redis.set(
            self.key,
            self.token,
            nx=True,
            ex=self.timeout_seconds,
        )
        if not acquired:
            self.token = None
        return bool(acquired)

    async def release(self) -> bool:
        """Release the lock if we still own it."""
        if self.token is None:
            return False

        result = await self._release_script(keys=[self.key], args=[self.token])
        self.token = None
        return bool(result)
