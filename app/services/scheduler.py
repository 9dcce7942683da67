"""
Fixed-interval background jobs.

Each job runs its blocking function in the default executor with a fresh db
session, sleeps for its interval and repeats until stopped. Jobs are started
and stopped from the application lifespan.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import SessionLocal
from app.services.pending_sessions import sweep_pending_sessions
from app.services.reconciliation import reconcile_stale_bindings

logger = logging.getLogger(__name__)

JobFunc = Callable[[Session], Any]


def _run_with_session(func: JobFunc) -> Any:
    db = SessionLocal()
    try:
        return func(db)
    finally:
        db.close()


@dataclass
class PeriodicJob:
    name: str
    interval_seconds: float
    func: JobFunc
    run_on_start: bool = False
    task: Optional[asyncio.Task] = None
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)

    async def run_once(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _run_with_session, self.func)
        except Exception as e:
            logger.exception("[%s] run failed: %s", self.name, e)

    async def _loop(self) -> None:
        logger.info("[%s] started, interval %ss", self.name, self.interval_seconds)
        if self.run_on_start:
            await self.run_once()
        while not self.stop_event.is_set():
            try:
                await asyncio.wait_for(self.stop_event.wait(), timeout=self.interval_seconds)
                break  # stop event was set
            except asyncio.TimeoutError:
                pass
            await self.run_once()
        logger.info("[%s] stopped", self.name)

    def start(self) -> None:
        if self.task is None or self.task.done():
            self.stop_event.clear()
            self.task = asyncio.create_task(self._loop(), name=self.name)

    async def stop(self) -> None:
        self.stop_event.set()
        if self.task is not None:
            try:
                await asyncio.wait_for(self.task, timeout=30)
            except asyncio.TimeoutError:
                self.task.cancel()
            self.task = None


def default_jobs() -> List[PeriodicJob]:
    return [
        PeriodicJob(
            name="reconcile-holders",
            interval_seconds=settings.RECONCILE_INTERVAL_SECONDS,
            func=reconcile_stale_bindings,
        ),
        PeriodicJob(
            name="sweep-pending-sessions",
            interval_seconds=settings.PENDING_SWEEP_INTERVAL_SECONDS,
            func=sweep_pending_sessions,
        ),
    ]


async def start_jobs(jobs: List[PeriodicJob]) -> None:
    for job in jobs:
        job.start()


async def stop_jobs(jobs: List[PeriodicJob]) -> None:
    for job in jobs:
        await job.stop()
