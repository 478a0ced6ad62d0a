"""Background tasks for the seat claim service."""

import asyncio
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seatclaim.clock import Clock, system_clock
from seatclaim.config import get_settings
from seatclaim.database import get_db_context
from seatclaim.distributed_lock import DistributedLock
from seatclaim.redis_client import get_redis
from seatclaim.services.reservation_service import ReservationService

settings = get_settings()
logger = logging.getLogger(__name__)

SWEEP_LOCK_KEY = "sweep:reservations"


async def sweep_once(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    clock: Clock = system_clock,
) -> int:
    """Expire every reservation past its deadline. Returns the count."""
    async with get_db_context(session_factory) as db:
        service = ReservationService(db, clock)
        return await service.cleanup_expired_reservations()


async def guarded_sweep(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    clock: Clock = system_clock,
    redis_client: redis.Redis | None = None,
) -> int | None:
    """
    Run one sweep under the Redis lease.

    Returns None when another replica holds the lease. If Redis cannot be
    reached the sweep runs anyway; expiry is idempotent, so overlapping
    sweeps only cost duplicate work.
    """
    if redis_client is None:
        redis_client = await get_redis()

    lock = DistributedLock(
        redis_client, SWEEP_LOCK_KEY, timeout_seconds=settings.SWEEP_INTERVAL_SECONDS
    )
    try:
        acquired = await lock.acquire()
    except RedisError as e:
        logger.warning(f"Sweep lease unavailable, sweeping unguarded: {e}")
        return await sweep_once(session_factory, clock)

    if not acquired:
        logger.debug("Sweep lease held elsewhere, skipping")
        return None

    try:
        return await sweep_once(session_factory, clock)
    finally:
        try:
            await lock.release()
        except RedisError as e:
            logger.warning(f"Failed to release sweep lease: {e}")


async def cleanup_expired_reservations(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    clock: Clock = system_clock,
    interval_seconds: float | None = None,
) -> None:
    """
    Background task to cleanup expired reservations.

    Runs periodically so that holds whose timers were lost (restart,
    crash, another replica) still get released.
    """
    interval = interval_seconds or settings.SWEEP_INTERVAL_SECONDS
    logger.info("Starting expired reservation sweep every %ss", interval)

    while True:
        try:
            await guarded_sweep(session_factory, clock)
        except Exception as e:
            logger.error(f"Error in sweep task: {e}")

        await asyncio.sleep(interval)


class BackgroundTaskManager:
    """Manager for background tasks."""

    def __init__(self):
        self.tasks: list[asyncio.Task] = []

    async def start(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        clock: Clock = system_clock,
    ) -> None:
        """Start all background tasks."""
        if not settings.SWEEP_ENABLED:
            logger.info("Expiry sweep disabled")
            return
        self.tasks.append(
            asyncio.create_task(cleanup_expired_reservations(session_factory, clock))
        )
        logger.info("Background tasks started")

    async def stop(self) -> None:
        """Stop all background tasks."""
        for task in self.tasks:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.tasks.clear()
        logger.info("Background tasks stopped")


# Global instance
background_tasks = BackgroundTaskManager()
