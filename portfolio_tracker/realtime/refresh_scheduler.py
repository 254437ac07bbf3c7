"""
Refresh scheduler: re-fetch every holding on a fixed interval and publish
the whole refreshed collection.

States: idle -> running -> idle. Ticks are serialized: a tick that fires
while the previous one is still fetching is skipped.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Sequence

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from portfolio_tracker.domain.models import HybridView
from portfolio_tracker.domain.services.hybrid_merge_engine import HybridMergeEngine
from portfolio_tracker.realtime.subscription_bus import SubscriptionBus
from portfolio_tracker.utils.time import now_utc

logger = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_RUNNING = "running"

REFRESH_JOB_ID = "portfolio_refresh"


class RefreshScheduler:
    def __init__(
        self,
        engine: HybridMergeEngine,
        bus: SubscriptionBus,
        interval_seconds: float = 15,
        timezone: str = "Asia/Kolkata",
        scheduler: Optional[AsyncIOScheduler] = None,
    ):
        self.engine = engine
        self.bus = bus
        self.interval_seconds = interval_seconds
        self.scheduler = scheduler or AsyncIOScheduler(timezone=pytz.timezone(timezone))
        self._views: List[HybridView] = []
        self._state = STATE_IDLE
        self._in_flight = False
        # Bumped on every start/stop so late results from an older run are dropped
        self._generation = 0
        self._last_refreshed: Optional[datetime] = None

    # ------------------------------------------------------------------
    # STATE
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == STATE_RUNNING

    @property
    def views(self) -> List[HybridView]:
        return list(self._views)

    @property
    def last_refreshed(self) -> Optional[datetime]:
        return self._last_refreshed

    def active_jobs(self) -> int:
        return len([job for job in self.scheduler.get_jobs() if job.id == REFRESH_JOB_ID])

    def seed(self, views: Sequence[HybridView]) -> None:
        """Set the current collection without starting the timer."""
        self._views = list(views)

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    def start(self, initial_views: Sequence[HybridView]) -> None:
        """Begin periodic refresh. A second start replaces the first timer."""
        self._views = list(initial_views)
        self._generation += 1

        if not self.scheduler.running:
            self.scheduler.start()

        self.scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=REFRESH_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._state = STATE_RUNNING
        logger.info(
            "Refresh started: %d holdings every %ss", len(self._views), self.interval_seconds
        )

    def stop(self) -> None:
        """Cancel the timer. In-flight fetches finish but are not published."""
        if self.scheduler.get_job(REFRESH_JOB_ID) is not None:
            self.scheduler.remove_job(REFRESH_JOB_ID)
        if self._state == STATE_RUNNING:
            logger.info("Refresh stopped")
        self._generation += 1
        self._state = STATE_IDLE

    def shutdown(self) -> None:
        self.stop()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    # ------------------------------------------------------------------
    # TICKS
    # ------------------------------------------------------------------

    async def tick(self) -> None:
        if self._state != STATE_RUNNING:
            return
        await self._refresh(require_running=True)

    async def refresh_now(self) -> Optional[List[HybridView]]:
        """On-demand refresh. Returns None if a refresh is already in flight."""
        return await self._refresh(require_running=False)

    async def _refresh(self, require_running: bool) -> Optional[List[HybridView]]:
        if self._in_flight:
            logger.info("Previous refresh still in flight; skipping tick")
            return None

        self._in_flight = True
        generation = self._generation
        current = list(self._views)
        try:
            refreshed = list(
                await asyncio.gather(*(self.engine.refresh_view(view) for view in current))
            )
        except Exception:
            logger.exception("Refresh tick failed; keeping previous collection")
            return None
        finally:
            self._in_flight = False

        if generation != self._generation or (require_running and self._state != STATE_RUNNING):
            logger.debug("Discarding refresh results from a stopped run")
            return None

        self._views = refreshed
        self._last_refreshed = now_utc()
        live = sum(1 for view in refreshed if view.is_live)
        logger.info("Refreshed %d holdings (%d live)", len(refreshed), live)
        await self.bus.publish(refreshed)
        return list(refreshed)
