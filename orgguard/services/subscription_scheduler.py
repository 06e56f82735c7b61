"""
Lightweight in-process scheduler for the subscription status sweep.
Runs sweep_subscription_statuses on a cron expression.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from croniter import croniter
from sqlalchemy.orm import Session

from orgguard.services.subscription_status import sweep_subscription_statuses
from orgguard.services.timezone import utc_now

logger = logging.getLogger(__name__)


class SubscriptionSweepScheduler:
    """Sleeps until the next cron slot, then sweeps subscription statuses."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        schedule_cron: str,
        grace_days: int = 30,
        warning_days: int = 3,
        clock: Callable[[], datetime] = utc_now,
    ):
        if not croniter.is_valid(schedule_cron):
            raise ValueError(f"Invalid cron expression: {schedule_cron}")
        self.session_factory = session_factory
        self.schedule_cron = schedule_cron
        self.grace_days = grace_days
        self.warning_days = warning_days
        self.clock = clock
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        """Start scheduler loop as background task."""
        if self._task and not self._task.done():
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        logger.info("SubscriptionSweepScheduler started (%s)", self.schedule_cron)

    async def stop(self) -> None:
        """Stop scheduler loop and wait for completion."""
        self._stop_event.set()
        if self._task:
            await self._task
        logger.info("SubscriptionSweepScheduler stopped")

    def next_run(self, from_dt: datetime) -> datetime:
        return croniter(self.schedule_cron, from_dt).get_next(datetime)

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            now = self.clock()
            delay = max((self.next_run(now) - now).total_seconds(), 0)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                break
            except asyncio.TimeoutError:
                pass
            try:
                self.run_once()
            except Exception as exc:
                logger.exception("Subscription sweep failed: %s", exc)

    def run_once(self) -> int:
        db = self.session_factory()
        try:
            changes = sweep_subscription_statuses(
                db,
                now=self.clock(),
                grace_days=self.grace_days,
                warning_days=self.warning_days,
            )
            logger.info("Subscription sweep complete: %s change(s)", len(changes))
            return len(changes)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
