from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query

from src.api.schemas import BuildStatus, DailyFeedResponse, FeedItem, FeedResponse
from src.config import Settings, load_settings
from src.curation.engine import CurationEngine
from src.errors import BuildError
from src.jobs.build_feed import create_engine, make_collectors
from src.jobs.scheduler import FeedScheduler
from src.logger import setup_logging


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[CurationEngine] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    # configuration errors surface here, before any build runs
    settings = settings or load_settings()
    setup_logging()
    engine = engine or create_engine(settings)
    collectors = make_collectors(settings)
    scheduler = FeedScheduler(engine, collectors, settings.build_interval_minutes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_scheduler:
            scheduler.start()
        yield
        scheduler.stop()

    app = FastAPI(title="Curated Deals Feed API", version="0.1.0", lifespan=lifespan)
    app.state.engine = engine
    app.state.scheduler = scheduler

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/feed", response_model=FeedResponse)
    def get_feed() -> FeedResponse:
        return FeedResponse.from_feed(engine.get_current_feed())

    @app.get("/feed/daily", response_model=DailyFeedResponse)
    def get_daily_feed(
        region: str = Query(default=settings.region, min_length=2, max_length=2),
        locale: str = Query(default=settings.locale),
        day: Optional[str] = Query(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    ) -> DailyFeedResponse:
        items = engine.daily_window(region, locale, day)
        return DailyFeedResponse(
            region=region.upper(),
            locale=locale,
            day=day,
            items=[FeedItem.from_offer(o) for o in items],
        )

    @app.post("/feed/refresh", response_model=FeedResponse)
    async def refresh_feed() -> FeedResponse:
        try:
            feed = await engine.rebuild_feed(collectors)
        except BuildError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return FeedResponse.from_feed(feed)

    @app.get("/status/latest", response_model=Optional[BuildStatus])
    def get_latest_status() -> Optional[BuildStatus]:
        report = engine.last_report
        if report is None:
            return None
        return BuildStatus.from_report(report, engine.is_building, engine.stage.value)

    return app
