from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from src.collectors.base import Collector
from src.collectors.games_demo import collect_demo_games
from src.collectors.hardware_demo import collect_demo_hardware
from src.collectors.json_feed import JsonFeedCollector
from src.config import Settings, load_settings
from src.curation.engine import CurationEngine
from src.curation.rotation import JsonFileRotationStore, RotationStore, SqlRotationStore
from src.logger import setup_logging

logger = logging.getLogger(__name__)


def make_rotation_store(settings: Settings) -> RotationStore:
    if settings.rotation_backend == "db":
        return SqlRotationStore(settings.db_path)
    return JsonFileRotationStore(settings.rotation_file)


def make_collectors(settings: Settings) -> list[Collector]:
    collectors: list[Collector] = [
        JsonFeedCollector(store, url, timeout=settings.collector_timeout_seconds)
        for store, url in settings.feed_sources
    ]
    if settings.use_demo_collectors:
        collectors.extend([collect_demo_games, collect_demo_hardware])
    return collectors


def create_engine(settings: Settings) -> CurationEngine:
    return CurationEngine(settings, make_rotation_store(settings))


async def run_build(settings: Settings) -> CurationEngine:
    engine = create_engine(settings)
    await engine.rebuild_feed(make_collectors(settings))
    return engine


def main() -> None:
    settings = load_settings()
    setup_logging()
    engine = asyncio.run(run_build(settings))
    report = engine.last_report
    feed = engine.get_current_feed()
    print(f"Build {report.status if report else 'unknown'} at {datetime.now(timezone.utc).isoformat()}")
    for collector in report.collectors if report else []:
        suffix = f" (error: {collector.error})" if collector.error else ""
        print(f"  {collector.name}: {collector.count} offers{suffix}")
    for offer in feed.items:
        discount = f"-{offer.discount_pct}%" if offer.discount_pct is not None else "n/a"
        print(f"  [{offer.store}] {offer.title} {offer.price_final / 100:.2f} {discount}")


if __name__ == "__main__":
    main()
