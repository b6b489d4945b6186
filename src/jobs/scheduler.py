"""Periodic feed rebuilds on the application's event loop."""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from src.collectors.base import Collector
from src.curation.engine import CurationEngine
from src.errors import BuildError

logger = logging.getLogger(__name__)

JOB_ID = "rebuild_feed"


async def rebuild_job(engine: CurationEngine, collectors: Sequence[Collector]) -> None:
    """Scheduler wrapper: a failed build is logged, the previous feed stays."""
    try:
        feed = await engine.rebuild_feed(collectors)
    except BuildError as exc:
        logger.error("Scheduled feed build failed: %s", exc)
        return
    logger.info("Scheduled build done; serving %d offers built at %s", len(feed.items), feed.built_at)


class FeedScheduler:
    def __init__(self, engine: CurationEngine, collectors: Sequence[Collector], interval_minutes: float):
        self.engine = engine
        self.collectors = list(collectors)
        self.interval_minutes = interval_minutes
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self, run_now: bool = True) -> None:
        if self.running:
            self.stop()
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            rebuild_job,
            "interval",
            minutes=self.interval_minutes,
            args=[self.engine, self.collectors],
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if run_now:
            # one build at startup, then every interval
            self._scheduler.add_job(
                rebuild_job,
                args=[self.engine, self.collectors],
                id=f"{JOB_ID}_startup",
                replace_existing=True,
            )
        self._scheduler.start()
        logger.info("Scheduler started: rebuilding feed every %s minutes", self.interval_minutes)

    def stop(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")
