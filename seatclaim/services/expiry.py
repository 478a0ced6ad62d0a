"""Per-reservation expiry timers."""

import asyncio
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from seatclaim.clock import Clock, system_clock
from seatclaim.database import get_db_context

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    """
    Schedules one expiry action per reservation deadline.

    Timers live in this process only. They are an optimisation: the
    periodic sweep catches anything a lost timer misses, and the action
    re-checks the deadline, so a timer for a superseded deadline is
    harmless.

    The most recent timer for a claim re-arms itself when it fires early,
    i.e. the hold is still reserved with a stored deadline in the future.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = system_clock,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self._tasks: set[asyncio.Task] = set()
        self._latest: dict[str, asyncio.Task] = {}

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def timer_for(self, claim_id: str) -> asyncio.Task | None:
        """Most recently scheduled timer for a claim, if it is still tracked."""
        return self._latest.get(claim_id)

    def schedule(self, claim_id: str, expires_at: datetime) -> asyncio.Task:
        delay = max(0.0, (expires_at - self.clock.now()).total_seconds())
        task = asyncio.create_task(self._fire(claim_id, delay))
        self._tasks.add(task)
        self._latest[claim_id] = task
        task.add_done_callback(self._tasks.discard)
        logger.debug("Scheduled expiry of %s in %.1fs", claim_id, delay)
        return task

    async def _fire(self, claim_id: str, delay: float) -> None:
        await asyncio.sleep(delay)

        # Deferred to avoid a cycle with reservation_service
        from seatclaim.services.reservation_service import ReservationService

        try:
            async with get_db_context(self.session_factory) as db:
                service = ReservationService(db, self.clock)
                deadline = None
                if not await service.expire_reservation(claim_id):
                    deadline = await service.pending_deadline(claim_id)
        except Exception as e:
            logger.error(f"Error expiring reservation {claim_id}: {e}")
            if self._latest.get(claim_id) is asyncio.current_task():
                del self._latest[claim_id]
            return

        # A later schedule() call owns this claim now
        if self._latest.get(claim_id) is not asyncio.current_task():
            return

        if deadline is None:
            del self._latest[claim_id]
        else:
            logger.debug("Reservation %s not yet due, re-arming for %s", claim_id, deadline)
            self.schedule(claim_id, deadline)

    async def stop(self) -> None:
        """Cancel every pending timer."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._latest.clear()
        logger.info("Expiry scheduler stopped (%s timers cancelled)", len(tasks))
